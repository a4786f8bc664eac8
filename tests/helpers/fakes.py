from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from framegate.core.errors import LinkLookupError
from framegate.core.identity.models import Principal

TICK_SECONDS = 43200.0


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self._t = float(start)

    def time(self) -> float:
        return self._t

    def advance(self, seconds: float) -> None:
        self._t += float(seconds)

    def at_tick(self, tick: int) -> None:
        # Last second of the tick: ceil(t / 43200) == tick.
        self._t = float(tick) * TICK_SECONDS


@dataclass
class FakeConnectedUsers:
    """Remote connected-user source keyed by local user id."""

    linked: Dict[str, int] = field(default_factory=dict)
    fail: bool = False
    calls: List[str] = field(default_factory=list)

    def get_connected_user_data(self, local_user_id: str) -> Optional[Dict[str, Any]]:
        self.calls.append(local_user_id)
        if self.fail:
            raise LinkLookupError(local_user_id=local_user_id, error="unreachable")
        if local_user_id not in self.linked:
            return None
        return {"ID": self.linked[local_user_id], "login": f"user{local_user_id}"}


class BrokenConnectedUsers:
    """Source whose lookup fails with an unexpected error."""

    def get_connected_user_data(self, local_user_id: str) -> Optional[Dict[str, Any]]:
        raise RuntimeError(f"directory offline for {local_user_id}")


@dataclass
class DictSecrets:
    secrets: Dict[str, bytes] = field(default_factory=dict)
    calls: int = 0

    def get_secret(self, principal: Principal) -> Optional[bytes]:
        self.calls += 1
        return self.secrets.get(principal.local_user_id)


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, content: Optional[bytes] = None):
        self.status_code = status_code
        self._payload = payload
        if content is not None:
            self.content = content
        else:
            self.content = b"" if payload is None else b"{}"

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, response: Any = None, exc: Optional[Exception] = None):
        self.response = response
        self.exc = exc
        self.requests: List[Dict[str, Any]] = []

    def get(self, url: str, timeout: float = 0.0) -> Any:
        self.requests.append({"url": url, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.response
