"""Ordered fan-out over a bounded thread pool.

The package has two fan-out points: extraction of a multi-file batch and one
trend-comment request per comparison row. Both need the same thing: results in
input order, at most ``concurrency`` calls in flight, and no new call started
once one has failed. The first failure is re-raised after the calls already
running have finished.

``concurrency=1`` runs the mapper inline on the calling thread, one item after
the other.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TypeVar

InT = TypeVar("InT")
OutT = TypeVar("OutT")


def p_map(
    items: Iterable[InT],
    mapper: Callable[[InT], OutT],
    *,
    concurrency: int,
    thread_name_prefix: str = "si-pmap",
) -> list[OutT]:
    """Return ``[mapper(x) for x in items]`` with up to ``concurrency`` calls at once."""

    if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    queue = list(items)
    if concurrency == 1 or len(queue) <= 1:
        return [mapper(item) for item in queue]

    results: list[OutT | None] = [None] * len(queue)
    pending = iter(enumerate(queue))
    inflight: dict[Future[OutT], int] = {}

    with ThreadPoolExecutor(
        max_workers=min(concurrency, len(queue)), thread_name_prefix=thread_name_prefix
    ) as pool:

        def _top_up() -> None:
            for idx, item in pending:
                inflight[pool.submit(mapper, item)] = idx
                if len(inflight) >= concurrency:
                    return

        _top_up()
        while inflight:
            done, _ = wait(inflight, return_when=FIRST_COMPLETED)
            for fut in done:
                # Raises on failure; the pool then drains what is running.
                results[inflight.pop(fut)] = fut.result()
            _top_up()

    return results  # type: ignore[return-value]


__all__ = ["p_map"]
