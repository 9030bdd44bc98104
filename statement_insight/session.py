"""Session state: the ordered list of processed statements.

The session is the only shared mutable state. Batches of files are processed
in selection order (sequentially by default, or through a bounded worker pool
when ``extract_concurrency > 1``) and applied all-or-nothing: if any file of
a batch fails, none of the batch is added and a
:class:`~statement_insight.errors.BatchProcessingError` naming the failing
file is raised. Statements accepted earlier are never rolled back.

A batch that was started before :meth:`StatementSession.reset` is dropped
when it completes instead of repopulating the cleared session.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping, Sequence
from os import PathLike
from pathlib import Path

from .compare import TrendCommenter, compare, generate_trend_comments
from .config import Settings
from .errors import BatchProcessingError, StatementProcessingError
from .logging_setup import get_logger
from .models import ComparisonMatrix, Statement
from .pmap import p_map

type StatementProcessor = Callable[[bytes, str], Statement]

_logger = get_logger(__name__)


def _default_processor(pdf_bytes: bytes, file_name: str) -> Statement:
    from .extraction import process_statement

    return process_statement(pdf_bytes, file_name=file_name)


class StatementSession:
    """Holds the statements of one user session plus the active selection.

    ``active_index`` is ``None`` when no statement is selected (the "add
    more" state) and otherwise indexes :attr:`statements`.
    """

    def __init__(
        self,
        processor: StatementProcessor | None = None,
        *,
        settings: Settings | None = None,
    ) -> None:
        self._processor = processor or _default_processor
        self._settings = settings or Settings.from_env()
        self._statements: list[Statement] = []
        self._active: int | None = None
        self._generation = 0
        self._lock = threading.RLock()

    # ---- Read access ---------------------------------------------------------

    @property
    def statements(self) -> tuple[Statement, ...]:
        with self._lock:
            return tuple(self._statements)

    @property
    def active_index(self) -> int | None:
        with self._lock:
            return self._active

    @property
    def active(self) -> Statement | None:
        with self._lock:
            return None if self._active is None else self._statements[self._active]

    def __len__(self) -> int:
        with self._lock:
            return len(self._statements)

    # ---- Intake --------------------------------------------------------------

    def add_files(self, paths: Iterable[str | PathLike[str]]) -> list[Statement]:
        """Read PDFs from disk and add them as one batch (see :meth:`add_statements`)."""

        files: list[tuple[str, bytes]] = []
        for raw in paths:
            p = Path(raw)
            try:
                files.append((p.name, p.read_bytes()))
            except OSError as e:
                _logger.error("session:batch_aborted file=%s error=%s", p.name, e.__class__.__name__)
                raise BatchProcessingError(
                    f"Failed to read {p.name}: {e.strerror or e}", file_name=p.name
                ) from e
        return self.add_statements(files)

    def add_statements(self, files: Sequence[tuple[str, bytes]]) -> list[Statement]:
        """Process ``(file_name, pdf_bytes)`` pairs and append them in the given order.

        Returns the statements added (empty when the batch was superseded by a
        :meth:`reset`). The first added statement becomes active.
        """

        if not files:
            return []

        with self._lock:
            generation = self._generation

        def _process(item: tuple[str, bytes]) -> Statement:
            file_name, pdf_bytes = item
            return self._processor(pdf_bytes, file_name)

        try:
            results: list[Statement] = p_map(
                files,
                _process,
                concurrency=self._settings.extract_concurrency,
                thread_name_prefix="si-extract",
            )
        except StatementProcessingError as e:
            _logger.error("session:batch_aborted file=%s files=%d", e.file_name, len(files))
            raise BatchProcessingError(str(e), file_name=e.file_name) from e
        except Exception as e:
            _logger.error(
                "session:batch_aborted files=%d error=%s", len(files), e.__class__.__name__
            )
            raise BatchProcessingError(f"Failed to process statements: {e}") from e

        with self._lock:
            if generation != self._generation:
                _logger.info("session:batch_discarded files=%d reason=reset", len(files))
                return []
            first_new = len(self._statements)
            self._statements.extend(results)
            self._active = first_new
        _logger.info("session:batch_added files=%d total=%d", len(results), first_new + len(results))
        return results

    # ---- Mutation ------------------------------------------------------------

    def select(self, index: int | None) -> None:
        with self._lock:
            if index is not None and not 0 <= index < len(self._statements):
                raise IndexError(f"statement index out of range: {index}")
            self._active = index

    def remove(self, index: int) -> Statement:
        """Remove one statement and keep the selection pointing at a sensible tab."""

        with self._lock:
            if not 0 <= index < len(self._statements):
                raise IndexError(f"statement index out of range: {index}")
            removed = self._statements.pop(index)
            if not self._statements:
                self._active = None
            elif self._active == index:
                self._active = 0
            elif self._active is not None and self._active > index:
                self._active -= 1
            return removed

    def reset(self) -> None:
        with self._lock:
            self._statements.clear()
            self._active = None
            self._generation += 1

    # ---- Comparison ----------------------------------------------------------

    def compare(self) -> ComparisonMatrix:
        return compare(self.statements)

    def trend_comments(
        self,
        matrix: ComparisonMatrix | None = None,
        commenter: TrendCommenter | None = None,
    ) -> Mapping[str, str]:
        return generate_trend_comments(
            matrix if matrix is not None else self.compare(),
            commenter,
            concurrency=self._settings.comment_concurrency,
        )


__all__ = ["StatementProcessor", "StatementSession"]
