"""
HTTP client for the partner's connected-user endpoint.

Flow:
1. GET {api_base}/users/{local_user_id}/connection
2. 200 with a JSON object carrying "ID" -> connected user data
3. 404, empty body or no "ID" -> user is not connected
"""
from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from framegate.core.errors import LinkLookupError


class ConnectedUserClient:
    def __init__(self, *, api_base: str, timeout_seconds: float = 5.0, session: Optional[requests.Session] = None) -> None:
        self.api_base = api_base.rstrip("/")
        self.timeout_seconds = float(timeout_seconds)
        self.session = session or requests.Session()

    def _url(self, local_user_id: str) -> str:
        uid = quote(str(local_user_id), safe="")
        return f"{self.api_base}/users/{uid}/connection"

    def get_connected_user_data(self, local_user_id: str) -> Optional[Dict[str, Any]]:
        try:
            r = self.session.get(self._url(local_user_id), timeout=self.timeout_seconds)
        except requests.RequestException as e:
            raise LinkLookupError(local_user_id=local_user_id, error=str(e)) from e
        if r.status_code == 404:
            return None
        if r.status_code != 200:
            raise LinkLookupError(local_user_id=local_user_id, status=r.status_code)
        if not r.content:
            return None
        try:
            data = r.json()
        except ValueError as e:
            raise LinkLookupError(local_user_id=local_user_id, error="invalid json") from e
        if not isinstance(data, dict) or not data.get("ID"):
            return None
        return data
