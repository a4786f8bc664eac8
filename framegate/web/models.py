from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str


class EditorResponse(BaseModel):
    trace_id: str
    user_id: Optional[str] = None
    iframe_request: bool
    body_classes: str
