from __future__ import annotations

import threading
from typing import Dict, Optional, Protocol

from framegate.core.crypto import SecureStore


class LinkCache(Protocol):
    def get(self, local_user_id: str) -> Optional[int]: ...

    def set(self, local_user_id: str, linked_user_id: int) -> None: ...


class MemoryLinkCache:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids: Dict[str, int] = {}

    def get(self, local_user_id: str) -> Optional[int]:
        with self._lock:
            return self._ids.get(local_user_id)

    def set(self, local_user_id: str, linked_user_id: int) -> None:
        with self._lock:
            self._ids[local_user_id] = int(linked_user_id)


class StoreLinkCache:
    """
    Linked-user ids persisted in the encrypted secure store.

    Secure store key:
    - identity.linked_users: {local_user_id: linked_user_id}

    Entries are never evicted here; refresh policy belongs to the integrator.
    """

    KEY = "identity.linked_users"

    def __init__(self, secure_store: SecureStore):
        self.secure_store = secure_store

    def _load(self) -> Dict[str, int]:
        raw = self.secure_store.secure_get(self.KEY) or {}
        out: Dict[str, int] = {}
        if isinstance(raw, dict):
            for k, v in raw.items():
                try:
                    out[str(k)] = int(v)
                except (TypeError, ValueError):
                    continue
        return out

    def get(self, local_user_id: str) -> Optional[int]:
        return self._load().get(local_user_id)

    def set(self, local_user_id: str, linked_user_id: int) -> None:
        ids = self._load()
        ids[local_user_id] = int(linked_user_id)
        self.secure_store.secure_set(self.KEY, ids)
