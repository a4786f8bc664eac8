from __future__ import annotations

import getpass
import sys

from framegate.core.config import ConfigFsPaths, ConfigManager
from framegate.core.identity import StoreLinkCache
from framegate.core.user_secrets import UserSecretStore


def main() -> None:
    if len(sys.argv) < 2:
        raise SystemExit("Usage: python scripts/set_user_secret.py <local_user_id> [linked_user_id]")

    local_user_id = sys.argv[1].strip()
    if not local_user_id:
        raise SystemExit("local_user_id cannot be empty.")
    linked_user_id = int(sys.argv[2]) if len(sys.argv) >= 3 else None
    if linked_user_id is not None and linked_user_id <= 0:
        raise SystemExit("linked_user_id must be a positive integer.")

    secret = getpass.getpass(f"Token secret for {local_user_id}: ")
    if not secret:
        raise SystemExit("Secret cannot be empty.")

    cm = ConfigManager(fs=ConfigFsPaths("."))
    cm.load_all()
    store = cm.secure_store()
    if not store.is_unlocked():
        raise SystemExit("Master key missing: cannot set encrypted secrets.")

    UserSecretStore(store).set_secret(local_user_id, secret)
    print(f"Saved token secret for user: {local_user_id}")
    if linked_user_id is not None:
        StoreLinkCache(store).set(local_user_id, linked_user_id)
        print(f"Linked user {local_user_id} -> {linked_user_id}")


if __name__ == "__main__":
    main()
