from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Union

from framegate.core.nonce import FrameNonceVerifier, VerificationResult, frame_action

logger = logging.getLogger("framegate.web.gate")

IFRAMED_BODY_CLASS = "is-iframed"


class FrameSink(Protocol):
    def suppress_framing_header(self) -> None: ...

    def mark_iframe_request(self) -> None: ...


@dataclass
class FrameState:
    """
    Per-request frame decision and the header/flag sink the gate writes to.

    Both sink operations are idempotent.
    """

    decision: Optional[bool] = None
    result: VerificationResult = VerificationResult.INVALID
    header_suppressed: bool = False
    iframe_request: bool = False

    def suppress_framing_header(self) -> None:
        self.header_suppressed = True

    def mark_iframe_request(self) -> None:
        self.iframe_request = True


def iframed_body_classes(classes: str, state: Optional[FrameState]) -> str:
    if state is not None and state.iframe_request:
        classes += f" {IFRAMED_BODY_CLASS} "
    return classes


class FrameGate:
    """
    Decides whether a request may be rendered inside the trusted editor iframe.

    The nonce comes from the ``frame-nonce`` query parameter and is checked
    with the action ``frame-<install_id>``. An install id of 0 means the site
    is not connected, and nothing is ever allowed.
    """

    def __init__(self, *, verifier: FrameNonceVerifier, install_id: Union[int, str], query_param: str = "frame-nonce"):
        self.verifier = verifier
        self.install_id = install_id
        self.query_param = query_param

    @property
    def action(self) -> str:
        return frame_action(self.install_id)

    def check(self, nonce: Optional[str], *, local_user_id: Optional[str] = None) -> VerificationResult:
        if not nonce or not self.install_id:
            return VerificationResult.INVALID
        return self.verifier.verify(nonce, self.action, local_user_id=local_user_id)

    def is_framing_allowed(self, request: Any, sink: Optional[FrameSink] = None, *, local_user_id: Optional[str] = None) -> bool:
        if isinstance(sink, FrameState) and sink.decision is not None:
            return sink.decision

        params: Mapping[str, str] = getattr(request, "query_params", None) or {}
        nonce = params.get(self.query_param)
        result = self.check(nonce, local_user_id=local_user_id)
        allowed = result in (VerificationResult.VALID_RECENT, VerificationResult.VALID_STALE)

        if isinstance(sink, FrameState):
            sink.decision = allowed
            sink.result = result
        if allowed and sink is not None:
            sink.suppress_framing_header()
            sink.mark_iframe_request()
        if nonce and not allowed:
            logger.info("Framing denied for action %s", self.action)
        return allowed
