from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from framegate.core.crypto import SecureStoreLockedError
from framegate.core.errors import LinkLookupError, SecureStoreError
from framegate.core.identity.cache import LinkCache
from framegate.core.identity.models import MAX_LOCAL_USER_ID_LENGTH, Principal

logger = logging.getLogger("framegate.identity")


class ConnectedUserSource(Protocol):
    def get_connected_user_data(self, local_user_id: str) -> Optional[Dict[str, Any]]: ...


class PrincipalResolver:
    """
    Maps a local user id to a Principal carrying the linked remote user id.

    The cache is consulted first and is best-effort: a cache that cannot be
    read or written is logged and bypassed. A missing id falls through to the
    remote source, and a successful remote lookup is written back.
    """

    def __init__(self, *, cache: LinkCache, source: ConnectedUserSource):
        self.cache = cache
        self.source = source

    def _cached(self, local_user_id: str) -> Optional[int]:
        try:
            linked = self.cache.get(local_user_id)
        except (SecureStoreLockedError, SecureStoreError, ValueError) as e:
            logger.warning("Link cache unavailable for user %s: %s", local_user_id, e)
            return None
        try:
            linked = int(linked) if linked else None
        except (TypeError, ValueError):
            return None
        return linked if linked and linked > 0 else None

    def _remember(self, local_user_id: str, linked_user_id: int) -> None:
        try:
            self.cache.set(local_user_id, linked_user_id)
        except (SecureStoreLockedError, SecureStoreError, ValueError) as e:
            logger.warning("Could not cache linked id for user %s: %s", local_user_id, e)

    def resolve(self, local_user_id: Optional[str]) -> Optional[Principal]:
        if not local_user_id:
            return None
        local_user_id = str(local_user_id)
        if len(local_user_id) > MAX_LOCAL_USER_ID_LENGTH:
            logger.warning("Rejected over-long local user id (%d chars)", len(local_user_id))
            return None

        linked = self._cached(local_user_id)
        if linked:
            return Principal(local_user_id=local_user_id, linked_user_id=linked)

        try:
            data = self.source.get_connected_user_data(local_user_id)
        except LinkLookupError as e:
            logger.warning("Connected user lookup failed for user %s: %s", local_user_id, e.context)
            return None
        if not data:
            return None
        try:
            linked = int(data["ID"])
        except (KeyError, TypeError, ValueError):
            return None
        if linked <= 0:
            return None

        self._remember(local_user_id, linked)
        return Principal(local_user_id=local_user_id, linked_user_id=linked)
