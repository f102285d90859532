import json
import logging

import pytest

from shared.core import (
    LoggerAdapter,
    RedactionFilter,
    StructuredFormatter,
    get_trace_context,
    set_request_context,
)
from shared.core.logging_config import correlation_id_var, request_id_var, user_id_var, user_role_var


@pytest.fixture(autouse=True)
def clean_context():
    tokens = [var.set(None) for var in (request_id_var, correlation_id_var, user_id_var, user_role_var)]
    yield
    for var, token in zip((request_id_var, correlation_id_var, user_id_var, user_role_var), tokens):
        var.reset(token)


def make_record(msg, *args, **attrs):
    record = logging.LogRecord("app.test", logging.INFO, __file__, 10, msg, args, None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_trace_and_custom_fields():
    set_request_context(request_id="req-1", user_id="user-1", user_role="CUSTOMER")
    record = make_record("Order placed: %s", "ORD-1", extra_fields={"order_id": "o-1"})

    payload = json.loads(StructuredFormatter().format(record))

    assert payload["message"] == "Order placed: ORD-1"
    assert payload["level"] == "INFO"
    assert payload["trace"] == {"request_id": "req-1", "user_id": "user-1", "user_role": "CUSTOMER"}
    assert payload["custom"] == {"order_id": "o-1"}


def test_trace_context_omits_unset_values():
    assert get_trace_context() == {}
    set_request_context(correlation_id="corr-9")
    assert get_trace_context() == {"correlation_id": "corr-9"}


def test_adapter_merges_context_into_extra_fields():
    set_request_context(request_id="req-2")
    adapter = LoggerAdapter(logging.getLogger("app.test"), {})

    _, kwargs = adapter.process("msg", {"extra": {"extra_fields": {"order_id": "o-2"}}})

    assert kwargs["extra"]["extra_fields"] == {"order_id": "o-2", "request_id": "req-2"}


@pytest.mark.parametrize("message, leaked", [
    ("Authorization: Bearer abc.def.ghi", "abc.def.ghi"),
    ("login with password=hunter2", "hunter2"),
])
def test_redaction(message, leaked):
    record = make_record(message)
    assert RedactionFilter().filter(record)
    assert leaked not in record.getMessage()
    assert "***REDACTED***" in record.getMessage()


def test_redaction_leaves_plain_messages_alone():
    record = make_record("Order %s cancelled", "o-3")
    RedactionFilter().filter(record)
    assert record.getMessage() == "Order o-3 cancelled"
