from __future__ import annotations

import json

from framegate.core.errors import ConfigError, LinkLookupError, SecureStoreError, Severity, ValidationError, http_status_for
from framegate.core.events import EventLogger, redact
from framegate.core.security_events import SecurityAuditLogger


def test_redact_nested():
    out = redact({"secret": "x", "inner": [{"token": "y", "ok": 1}], "Authorization": "z"})
    assert out == {"secret": "***REDACTED***", "inner": [{"token": "***REDACTED***", "ok": 1}], "Authorization": "***REDACTED***"}


def test_event_logger_writes_jsonl(tmp_path):
    p = tmp_path / "sub" / "events.jsonl"
    EventLogger(str(p)).log("t1", "x.happened", {"secret": "S", "n": 1})
    obj = json.loads(p.read_text(encoding="utf-8").splitlines()[-1])
    assert obj["trace_id"] == "t1"
    assert obj["event"] == "x.happened"
    assert obj["details"] == {"secret": "***REDACTED***", "n": 1}


def test_security_audit_logger(tmp_path):
    p = tmp_path / "security.jsonl"
    SecurityAuditLogger(path=str(p)).log(trace_id="t", severity="WARN", event="web.frame_nonce", ip="127.0.0.1", endpoint="/editor", outcome="denied", details={"token": "t0k"})
    obj = json.loads(p.read_text(encoding="utf-8"))
    assert obj["outcome"] == "denied"
    assert obj["details"]["token"] == "***REDACTED***"


def test_error_types_and_status_codes():
    assert http_status_for(ValidationError()) == 400
    assert http_status_for(LinkLookupError()) == 502
    assert http_status_for(SecureStoreError()) == 503
    assert http_status_for(ConfigError()) == 500
    err = ConfigError("Broken.", file="frame.json", secret="nope")
    d = err.to_dict()
    assert d["code"] == "config_error"
    assert d["severity"] == Severity.CRITICAL.value
    assert d["recoverable"] is False
    assert d["context"] == {"file": "frame.json", "secret": "***REDACTED***"}


def test_setup_logging_is_idempotent(tmp_path):
    import logging
    from logging.handlers import RotatingFileHandler

    from framegate.core.logger import setup_logging

    logger = setup_logging(str(tmp_path / "logs"))
    again = setup_logging(str(tmp_path / "logs"))
    assert logger is again is logging.getLogger("framegate")
    assert sum(isinstance(h, RotatingFileHandler) for h in logger.handlers) == 1
    assert (tmp_path / "logs" / "framegate.log").exists()
