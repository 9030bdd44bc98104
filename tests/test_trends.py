import pytest

from statement_insight import openai_client
from statement_insight.compare import compare, generate_trend_comments
from statement_insight.models import DataPoint, Statement, Transaction, TransactionType
from statement_insight.prompting import build_trend_prompt, format_data_points
from statement_insight.trends import EMPTY_COMMENT, FAILED_COMMENT, comment_on_category
from tests.helpers.openai_stub import OpenAIStub, StatusError

POINTS = [DataPoint("jan.pdf", 120.0), DataPoint("feb.pdf", 80.5)]


def _install(monkeypatch: pytest.MonkeyPatch, stub: OpenAIStub) -> OpenAIStub:
    monkeypatch.setattr(openai_client, "OpenAI", lambda *a, **kw: stub)
    monkeypatch.setattr(openai_client, "_sleep_backoff", lambda attempt_no: None)
    return stub


def test_prompt_lists_data_points_in_order():
    assert format_data_points(POINTS) == "jan.pdf: $120.00, feb.pdf: $80.50"
    prompt = build_trend_prompt("grocery", POINTS)
    assert 'category "grocery"' in prompt
    assert "Data: jan.pdf: $120.00, feb.pdf: $80.50" in prompt
    assert "max 15 words" in prompt


def test_comment_is_stripped(monkeypatch: pytest.MonkeyPatch):
    stub = _install(monkeypatch, OpenAIStub(lambda kw: "  Spending dropped by a third.\n"))

    assert comment_on_category("grocery", POINTS) == "Spending dropped by a third."
    assert 'category "grocery"' in stub.calls[0]["input"]


def test_empty_reply_yields_no_analysis(monkeypatch: pytest.MonkeyPatch):
    _install(monkeypatch, OpenAIStub(lambda kw: "   "))
    assert comment_on_category("grocery", POINTS) == EMPTY_COMMENT


def test_provider_failure_yields_unavailable(monkeypatch: pytest.MonkeyPatch):
    def respond(kw):
        raise StatusError(401)

    _install(monkeypatch, OpenAIStub(respond))
    assert comment_on_category("grocery", POINTS) == FAILED_COMMENT == "Analysis unavailable."


def test_client_construction_failure_yields_unavailable(monkeypatch: pytest.MonkeyPatch):
    def _no_key(*a, **kw):
        raise RuntimeError("missing api key")

    monkeypatch.setattr(openai_client, "OpenAI", _no_key)
    assert comment_on_category("grocery", POINTS) == FAILED_COMMENT


def test_default_commenter_used_for_matrix(monkeypatch: pytest.MonkeyPatch):
    def respond(kw):
        if 'category "taxi"' in kw["input"]:
            raise StatusError(400)
        return "Consistent spending."

    stub = _install(monkeypatch, OpenAIStub(respond, sleep_per_call=0.02))

    def _tx(tag: str, amount: float, date: str) -> Transaction:
        return Transaction(
            id=f"{tag}-{date}",
            date=date,
            detail=tag,
            type=TransactionType.WITHDRAWAL,
            amount=amount,
            balance=0.0,
            tag=tag,
        )

    matrix = compare(
        [
            Statement("feb.pdf", [_tx("grocery", 80, "2025-02-02"), _tx("taxi", 12, "2025-02-03")]),
            Statement("jan.pdf", [_tx("grocery", 120, "2025-01-02")]),
        ]
    )
    comments = generate_trend_comments(matrix, concurrency=3)

    assert comments["grocery"] == "Consistent spending."
    assert comments["taxi"] == FAILED_COMMENT
    assert len(stub.calls) == 3
    assert stub.max_inflight > 1
