from __future__ import annotations

import time
import uuid
from typing import Callable, Optional

from fastapi import Request
from starlette.concurrency import run_in_threadpool

from framegate.core.security_events import SecurityAuditLogger
from framegate.core.trace import request_context
from framegate.web.gate import FrameGate, FrameState

FRAME_OPTIONS_HEADER = "X-Frame-Options"


def _client_ip(request: Request) -> Optional[str]:
    return getattr(getattr(request, "client", None), "host", None)


class FrameOptionsMiddleware:
    """
    Frame-options chain (order matters):
    1) trace_id + per-request FrameState on request.state.frame
    2) frame-nonce check (only when the query parameter is present)
    3) downstream handler
    4) X-Frame-Options on the response unless the gate suppressed it
    5) audit outcome
    """

    def __init__(
        self,
        *,
        gate: FrameGate,
        current_user: Callable[[Request], Optional[str]],
        audit_logger: SecurityAuditLogger,
        frame_options: str = "SAMEORIGIN",
    ):
        self.gate = gate
        self.current_user = current_user
        self.audit_logger = audit_logger
        self.frame_options = frame_options

    async def __call__(self, request: Request, call_next):  # noqa: ANN001
        trace_id = uuid.uuid4().hex
        request.state.trace_id = trace_id
        state = FrameState()
        request.state.frame = state
        ip = _client_ip(request)
        path = request.url.path
        t0 = time.time()

        user_id = self.current_user(request)
        request.state.user_id = user_id

        if request.query_params.get(self.gate.query_param):

            def decide() -> bool:
                # Runs in a worker thread: the principal lookup may hit the network.
                with request_context(trace_id, user_id):
                    return self.gate.is_framing_allowed(request, state, local_user_id=user_id)

            try:
                allowed = await run_in_threadpool(decide)
            except Exception as e:  # noqa: BLE001
                # Fail closed: keep the header and serve the page unframed.
                state.header_suppressed = False
                state.iframe_request = False
                self.audit_logger.log(
                    trace_id=trace_id,
                    severity="ERROR",
                    event="web.frame_nonce",
                    ip=ip,
                    endpoint=path,
                    outcome="error",
                    details={"error": f"{type(e).__name__}: {e}", "user_id": user_id},
                )
            else:
                self.audit_logger.log(
                    trace_id=trace_id,
                    severity="INFO" if allowed else "WARN",
                    event="web.frame_nonce",
                    ip=ip,
                    endpoint=path,
                    outcome="allowed" if allowed else "denied",
                    details={"result": state.result.name, "user_id": user_id},
                )

        try:
            with request_context(trace_id, user_id):
                resp = await call_next(request)
        except Exception as e:
            self.audit_logger.log(trace_id=trace_id, severity="ERROR", event="web.exception", ip=ip, endpoint=path, outcome="error", details={"error": str(e)})
            raise

        if state.header_suppressed:
            if FRAME_OPTIONS_HEADER in resp.headers:
                del resp.headers[FRAME_OPTIONS_HEADER]
        else:
            resp.headers[FRAME_OPTIONS_HEADER] = self.frame_options

        self.audit_logger.log(
            trace_id=trace_id,
            severity="INFO",
            event="web.response",
            ip=ip,
            endpoint=path,
            outcome=str(resp.status_code),
            details={"iframe_request": state.iframe_request, "latency_ms": round((time.time() - t0) * 1000.0, 2)},
        )
        return resp
