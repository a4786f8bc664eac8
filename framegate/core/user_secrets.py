from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from framegate.core.crypto import SecureStore, SecureStoreLockedError
from framegate.core.errors import SecureStoreError
from framegate.core.identity.models import Principal

logger = logging.getLogger("framegate.user_secrets")


def _store_key(local_user_id: str) -> str:
    return f"tokens.user.{local_user_id}"


class UserSecretStore:
    """
    Per-user access-token secrets, kept in the encrypted secure store.

    Secure store keys:
    - tokens.user.<local_user_id>: {"secret": str}

    The secret is the keying material for frame nonces of that user. A locked,
    undecryptable or corrupt store yields no secret, so verification fails
    closed.
    """

    def __init__(self, secure_store: SecureStore):
        self.secure_store = secure_store

    def _load(self, local_user_id: str) -> Optional[Dict[str, Any]]:
        try:
            raw = self.secure_store.secure_get(_store_key(local_user_id))
        except SecureStoreLockedError:
            logger.warning("Secure store locked: no token secret for user %s", local_user_id)
            return None
        except (SecureStoreError, ValueError) as e:
            logger.warning("Secure store unreadable: no token secret for user %s: %s", local_user_id, e)
            return None
        return raw if isinstance(raw, dict) else None

    def get_secret(self, principal: Principal) -> Optional[bytes]:
        rec = self._load(principal.local_user_id)
        if not rec or not rec.get("secret"):
            return None
        return str(rec["secret"]).encode("utf-8")

    def set_secret(self, local_user_id: str, secret: str) -> None:
        if not local_user_id:
            raise ValueError("local_user_id required.")
        if not secret:
            raise ValueError("secret cannot be empty.")
        self.secure_store.secure_set(_store_key(local_user_id), {"secret": secret})

    def delete_secret(self, local_user_id: str) -> None:
        self.secure_store.secure_delete(_store_key(local_user_id))
