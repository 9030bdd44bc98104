import base64
from typing import Any

import pytest

from statement_insight import openai_client
from statement_insight.errors import StatementProcessingError
from statement_insight.extraction import encode_pdf, extract_statement, process_statement
from tests.helpers.openai_stub import OpenAIStub, StatusError, prompt_text, records_json

PDF = b"%PDF-1.4 fake statement"


def _row(detail: str, amount: float, balance: float, tag: str | None = None) -> dict[str, Any]:
    return {
        "date": "2025-01-05",
        "detail": detail,
        "type": "withdrawal",
        "amount": amount,
        "balance": balance,
        "tag": tag or detail,
    }


def _install(monkeypatch: pytest.MonkeyPatch, stub: OpenAIStub) -> OpenAIStub:
    monkeypatch.setattr(openai_client, "OpenAI", lambda *a, **kw: stub)
    monkeypatch.setattr(openai_client, "_sleep_backoff", lambda attempt_no: None)
    return stub


def _always_fails(status_code: int):
    def respond(kw: dict[str, Any]) -> str:
        raise StatusError(status_code)

    return respond


# ---- Request shape ----------------------------------------------------------


def test_encode_pdf_data_url():
    url = encode_pdf(PDF)
    prefix = "data:application/pdf;base64,"
    assert url.startswith(prefix)
    assert base64.b64decode(url[len(prefix) :]) == PDF


def test_request_carries_pdf_instructions_and_schema(monkeypatch: pytest.MonkeyPatch):
    stub = _install(monkeypatch, OpenAIStub(lambda kw: records_json([])))
    monkeypatch.setenv("STATEMENT_INSIGHT_MODEL", "gpt-test")

    assert extract_statement(PDF, file_name="jan.pdf") == []

    assert len(stub.calls) == 1
    call = stub.calls[0]
    assert call["model"] == "gpt-test"

    content = call["input"][0]["content"]
    file_part = next(p for p in content if p["type"] == "input_file")
    assert file_part["filename"] == "jan.pdf"
    assert file_part["file_data"] == encode_pdf(PDF)

    text = prompt_text(call)
    assert "perform robust OCR" in text
    assert '"DU" must be a standalone word' in text
    assert 'tag is "transfers"' in text

    fmt = call["text"]["format"]
    assert fmt["type"] == "json_schema"
    assert fmt["strict"] is True
    assert "transactions" in fmt["schema"]["properties"]


def test_explicit_model_wins(monkeypatch: pytest.MonkeyPatch):
    stub = _install(monkeypatch, OpenAIStub(lambda kw: records_json([])))
    extract_statement(PDF, file_name="a.pdf", model="other-model")
    assert stub.calls[0]["model"] == "other-model"


# ---- Processing -------------------------------------------------------------


def test_process_statement_reconciles_rows(monkeypatch: pytest.MonkeyPatch):
    rows = [
        _row("SPINNEYS MALL", 50, 950),
        _row("VAT CHG", 2.5, 947.5),
        _row("NETFLIX.COM", 45, 902.5, tag="subscription"),
    ]
    _install(monkeypatch, OpenAIStub(lambda kw: records_json(rows)))

    statement = process_statement(PDF, file_name="jan.pdf")

    assert statement.file_name == "jan.pdf"
    assert [(t.detail, t.tag) for t in statement.transactions] == [
        ("SPINNEYS MALL", "grocery"),
        ("NETFLIX.COM", "subscription"),
    ]
    assert statement.transactions[0].amount == pytest.approx(52.5)


def test_bare_array_response_is_accepted(monkeypatch: pytest.MonkeyPatch):
    _install(monkeypatch, OpenAIStub(lambda kw: records_json([_row("LULU", 5, 5)], envelope=False)))
    assert len(extract_statement(PDF, file_name="a.pdf")) == 1


def test_client_argument_skips_construction(monkeypatch: pytest.MonkeyPatch):
    def _boom(*a: Any, **kw: Any):
        raise AssertionError("client should not be constructed")

    monkeypatch.setattr(openai_client, "OpenAI", _boom)
    stub = OpenAIStub(lambda kw: records_json([]))
    assert extract_statement(PDF, file_name="a.pdf", client=stub) == []
    assert len(stub.calls) == 1


# ---- Failures ---------------------------------------------------------------


@pytest.mark.parametrize(
    "text",
    [
        "Sorry, I cannot read this document.",
        '{"transactions": [{"detail": "X"}]}',
        '{"rows": []}',
    ],
)
def test_malformed_response_names_file(monkeypatch: pytest.MonkeyPatch, text: str):
    _install(monkeypatch, OpenAIStub(lambda kw: text))

    with pytest.raises(StatementProcessingError) as ei:
        process_statement(PDF, file_name="broken.pdf")

    assert ei.value.file_name == "broken.pdf"
    assert str(ei.value).startswith("Failed to process broken.pdf:")
    assert "valid bank statement" in str(ei.value)


def test_empty_response_is_an_error(monkeypatch: pytest.MonkeyPatch):
    _install(monkeypatch, OpenAIStub(lambda kw: None))

    with pytest.raises(StatementProcessingError) as ei:
        extract_statement(PDF, file_name="empty.pdf")
    assert ei.value.file_name == "empty.pdf"


def test_transient_errors_are_retried(monkeypatch: pytest.MonkeyPatch):
    attempts: list[int] = []

    def respond(kw: dict[str, Any]) -> str:
        attempts.append(1)
        if len(attempts) < 3:
            raise StatusError(429 if len(attempts) == 1 else 503)
        return records_json([_row("LULU", 5, 5)])

    _install(monkeypatch, OpenAIStub(respond))

    assert len(extract_statement(PDF, file_name="a.pdf")) == 1
    assert len(attempts) == 3


def test_retries_give_up_after_three_attempts(monkeypatch: pytest.MonkeyPatch):
    stub = _install(monkeypatch, OpenAIStub(_always_fails(500)))

    with pytest.raises(StatementProcessingError) as ei:
        process_statement(PDF, file_name="a.pdf")

    assert len(stub.calls) == 3
    assert isinstance(ei.value.__cause__, StatusError)


def test_client_errors_are_not_retried(monkeypatch: pytest.MonkeyPatch):
    stub = _install(monkeypatch, OpenAIStub(_always_fails(400)))

    with pytest.raises(StatementProcessingError):
        process_statement(PDF, file_name="a.pdf")
    assert len(stub.calls) == 1


# ---- Output text shapes -----------------------------------------------------


def test_output_text_fallback_shapes():
    class _Text:
        value = "from value"

    class _Part:
        def __init__(self, text: Any) -> None:
            self.text = text

    class _Item:
        def __init__(self, text: Any) -> None:
            self.content = [_Part(text)]

    class _Resp:
        def __init__(self, text: Any) -> None:
            self.output_text = ""
            self.output = [_Item(text)]

    assert openai_client.extract_output_text(_Resp("plain")) == "plain"
    assert openai_client.extract_output_text(_Resp(_Text())) == "from value"
    assert openai_client.extract_output_text(object()) is None
