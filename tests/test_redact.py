from __future__ import annotations

import json
import logging

import pytest

from pyhomepanel._redact import redact_for_log, redact_url
from pyhomepanel._store.firebase import notification_from_event
from pyhomepanel._store.sse import ServerSentEvent


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "door": "open",
        "auth": "database-secret",
        "nested": {"mqtt_password": "pw", "light": "on"},
    }

    redacted = redact_for_log(payload)
    assert redacted["door"] == "open"
    assert redacted["auth"] == "<redacted>"
    assert redacted["nested"]["mqtt_password"] == "<redacted>"
    assert redacted["nested"]["light"] == "on"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_url_hides_auth_parameter() -> None:
    url = "https://home.firebaseio.com/panel/door.json?auth=database-secret&print=silent"
    redacted = redact_url(url)
    assert "database-secret" not in redacted
    assert "auth=<redacted>" in redacted
    assert "print=silent" in redacted


def test_redact_url_without_query_is_unchanged() -> None:
    url = "https://home.firebaseio.com/.json"
    assert redact_url(url) == url


def test_redact_for_log_decodes_message_bytes() -> None:
    assert redact_for_log(b"open") == "open"
    assert redact_for_log([b"\xff"]) == ["\ufffd"]


def test_stream_payload_logs_are_redacted(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="pyhomepanel._store.firebase")
    event = ServerSentEvent(event="put", data=json.dumps({"auth": "database-secret", "data": "on"}))

    assert notification_from_event(event) is None

    assert "Unexpected put payload shape" in caplog.text
    assert "database-secret" not in caplog.text
    assert "<redacted>" in caplog.text
