from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from framegate.core.events import redact


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class FrameGateError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }


# ---- Core types ----
class ConfigError(FrameGateError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class SecureStoreError(FrameGateError):
    def __init__(self, user_message: str = "Secure store error.", **ctx: Any):
        super().__init__("secure_store_error", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


class LinkLookupError(FrameGateError):
    def __init__(self, user_message: str = "Unable to look up the connected user.", **ctx: Any):
        super().__init__("link_lookup_error", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class ValidationError(FrameGateError):
    def __init__(self, user_message: str = "Invalid request.", **ctx: Any):
        super().__init__("validation_error", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


def http_status_for(err: FrameGateError) -> int:
    if err.code == "validation_error":
        return 400
    if err.code == "link_lookup_error":
        return 502
    if err.code == "secure_store_error":
        return 503
    return 500
