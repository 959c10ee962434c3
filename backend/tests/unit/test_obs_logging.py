from __future__ import annotations

import json
import logging

import pytest

from cph.obs import logging as obs_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("cph.test", logging.INFO, __file__, 1, "application_submitted", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_includes_context_and_redacts():
    tokens = obs_logging.bind_context(request_id="req-1", user_id="u1")
    try:
        line = obs_logging.JSONLogFormatter().format(
            _record(event_slug="lent-hack-2026", member_emails=["a@x.com"], members=list(range(20)))
        )
    finally:
        obs_logging.reset_context(tokens)

    payload = json.loads(line)
    assert payload["msg"] == "application_submitted"
    assert payload["request_id"] == "req-1"
    assert payload["user_id"] == "u1"
    assert payload["event_slug"] == "lent-hack-2026"
    assert payload["member_emails"] == "[redacted]"
    assert len(payload["members"]) == 11
    assert obs_logging.current_request_id() == "unknown"


def test_unknown_context_field_rejected():
    with pytest.raises(KeyError):
        obs_logging.bind_context(tenant="x")
