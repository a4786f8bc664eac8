from __future__ import annotations

import os

from framegate.core.config import ConfigFsPaths, ConfigManager
from framegate.core.crypto import best_effort_restrict_permissions, generate_master_key_bytes, key_id_from_key_bytes, write_master_key


def main() -> None:
    cm = ConfigManager(fs=ConfigFsPaths("."))
    cm.load_all()
    key_path = cm.secure_store().master_key_path

    if os.path.exists(key_path):
        print(f"Master key already exists at: {key_path}")
        return

    key = generate_master_key_bytes()
    write_master_key(key_path, key)
    best_effort_restrict_permissions(key_path)
    print(f"Created master key at: {key_path}")
    print(f"Key fingerprint (key_id): {key_id_from_key_bytes(key)}")


if __name__ == "__main__":
    main()
