"""
Time-windowed frame nonces.

A nonce is characters [-12:-2] of the hex HMAC-MD5 of
``f"{tick}{action}{linked_user_id}"`` keyed with the user's token secret,
where ``tick = ceil(now / (nonce_life / 2))``. The current and the previous
tick are accepted, so a nonce lives between ~0 and ~nonce_life seconds
depending on where in its tick it was issued.

The keying secret is always an argument; nothing process-wide is swapped.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
import math
import time
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Optional, Protocol, Union

from framegate.core.errors import ValidationError
from framegate.core.events import EventLogger
from framegate.core.identity.models import Principal
from framegate.core.identity.resolver import PrincipalResolver
from framegate.core.trace import current_user_id, resolve_trace_id

logger = logging.getLogger("framegate.nonce")

NONCE_LIFE_SECONDS = 86400
UNSCOPED_ACTION = -1

Action = Union[str, int]


class VerificationResult(IntEnum):
    INVALID = 0
    VALID_RECENT = 1
    VALID_STALE = 2


class SecretSource(Protocol):
    def get_secret(self, principal: Principal) -> Optional[bytes]: ...


@dataclass
class NonceClock:
    nonce_life: int = NONCE_LIFE_SECONDS
    time_fn: Callable[[], float] = field(default=time.time, repr=False)

    def __post_init__(self) -> None:
        if int(self.nonce_life) < 2:
            raise ValueError("nonce_life must be at least 2 seconds.")

    def tick(self, now: Optional[float] = None) -> int:
        t = self.time_fn() if now is None else float(now)
        return int(math.ceil(t / (self.nonce_life / 2)))


def frame_action(install_id: Union[str, int]) -> str:
    return f"frame-{install_id}"


def keyed_hash(data: str, secret: bytes) -> str:
    return hmac.new(secret, data.encode("utf-8"), hashlib.md5).hexdigest()


def _equals(expected: str, provided: str) -> bool:
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


def compute_frame_nonce(tick: int, action: Action, linked_user_id: int, secret: bytes) -> str:
    digest = keyed_hash(f"{int(tick)}{action}{int(linked_user_id)}", secret)
    return digest[-12:-2]


class FrameNonceIssuer:
    """Issues nonces for the current tick (partner side, tooling, tests)."""

    def __init__(self, *, secrets: SecretSource, clock: Optional[NonceClock] = None):
        self.secrets = secrets
        self.clock = clock or NonceClock()

    def create(self, action: Action, principal: Principal, *, tick: Optional[int] = None) -> str:
        secret = self.secrets.get_secret(principal)
        if not secret:
            raise ValidationError("No token secret for this user.", local_user_id=principal.local_user_id)
        t = self.clock.tick() if tick is None else int(tick)
        return compute_frame_nonce(t, action, principal.linked_user_id, secret)


class FrameNonceVerifier:
    """
    Verifies a frame nonce against the current and the previous tick.

    Every failure (empty nonce, unresolved principal, missing secret, no match
    in either tick) is reported as ``VerificationResult.INVALID``. Only the
    no-match case emits the ``nonce.verify_failed`` audit event.
    """

    def __init__(
        self,
        *,
        resolver: PrincipalResolver,
        secrets: SecretSource,
        clock: Optional[NonceClock] = None,
        event_logger: Optional[EventLogger] = None,
        current_user: Callable[[], Optional[str]] = current_user_id,
    ):
        self.resolver = resolver
        self.secrets = secrets
        self.clock = clock or NonceClock()
        self.event_logger = event_logger
        self.current_user = current_user

    def verify(self, nonce: Optional[str], action: Action = UNSCOPED_ACTION, *, local_user_id: Optional[str] = None) -> VerificationResult:
        nonce = "" if nonce is None else str(nonce)
        if not nonce:
            return VerificationResult.INVALID

        principal = self.resolver.resolve(local_user_id or self.current_user())
        if principal is None:
            logger.info("Frame nonce rejected: no linked user")
            return VerificationResult.INVALID

        secret = self.secrets.get_secret(principal)
        if not secret:
            logger.info("Frame nonce rejected: no token secret for user %s", principal.local_user_id)
            return VerificationResult.INVALID

        tick = self.clock.tick()

        # Issued 0-12 hours ago (with the default nonce life).
        expected = compute_frame_nonce(tick, action, principal.linked_user_id, secret)
        if _equals(expected, nonce):
            return VerificationResult.VALID_RECENT

        # Issued 12-24 hours ago.
        expected = compute_frame_nonce(tick - 1, action, principal.linked_user_id, secret)
        if _equals(expected, nonce):
            return VerificationResult.VALID_STALE

        self._report_failure(nonce, action, principal)
        return VerificationResult.INVALID

    def _report_failure(self, nonce: str, action: Action, principal: Principal) -> None:
        logger.info("Frame nonce verification failed for user %s", principal.local_user_id)
        if self.event_logger is None:
            return
        self.event_logger.log(
            resolve_trace_id(),
            "nonce.verify_failed",
            {
                "nonce": nonce,
                "action": str(action),
                "principal": principal.model_dump(),
                "reserved": "",
            },
        )
