from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from framegate.core.errors import FrameGateError, http_status_for
from framegate.core.events import EventLogger
from framegate.core.security_events import SecurityAuditLogger
from framegate.web.gate import FrameGate, iframed_body_classes
from framegate.web.middleware import FrameOptionsMiddleware
from framegate.web.models import EditorResponse, HealthResponse

ADMIN_BODY_CLASSES = "admin-ui"


def create_app(
    *,
    gate: FrameGate,
    current_user: Callable[[Request], Optional[str]],
    event_logger: EventLogger,
    audit_logger: Optional[SecurityAuditLogger] = None,
    frame_options: str = "SAMEORIGIN",
    logger: Optional[logging.Logger] = None,
) -> FastAPI:
    """
    Build the admin-facing app.

    ``current_user`` maps a request to the local user id authenticated by the
    host; framing is only ever allowed for an authenticated, linked user.
    """
    app = FastAPI(title="framegate", version="0.1.0")
    log = logger or logging.getLogger("framegate.web")

    app.middleware("http")(
        FrameOptionsMiddleware(
            gate=gate,
            current_user=current_user,
            audit_logger=audit_logger or SecurityAuditLogger(),
            frame_options=frame_options,
        )
    )

    @app.exception_handler(FrameGateError)
    async def framegate_error_handler(request: Request, exc: FrameGateError):
        trace_id = getattr(getattr(request, "state", None), "trace_id", "web")
        event_logger.log(trace_id, "web.error", exc.to_dict())
        log.warning("Request failed: %s", exc.code)
        return JSONResponse(status_code=http_status_for(exc), content={"detail": exc.user_message, "code": exc.code})

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return {"status": "ok"}

    @app.get("/editor", response_model=EditorResponse)
    async def editor(request: Request):
        state = getattr(request.state, "frame", None)
        return EditorResponse(
            trace_id=request.state.trace_id,
            user_id=getattr(request.state, "user_id", None),
            iframe_request=bool(state and state.iframe_request),
            body_classes=iframed_body_classes(ADMIN_BODY_CLASSES, state),
        )

    return app
