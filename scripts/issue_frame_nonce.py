from __future__ import annotations

import argparse

from framegate.core.config import ConfigFsPaths, ConfigManager
from framegate.core.identity import Principal
from framegate.core.nonce import FrameNonceIssuer, NonceClock, frame_action
from framegate.core.user_secrets import UserSecretStore


def main() -> None:
    ap = argparse.ArgumentParser(description="Issue a frame nonce for a linked user (testing/tooling).")
    ap.add_argument("local_user_id")
    ap.add_argument("linked_user_id", type=int)
    args = ap.parse_args()

    cm = ConfigManager(fs=ConfigFsPaths("."), read_only=True)
    cfg = cm.load_all()
    if not cfg.frame.install_id:
        raise SystemExit("frame.install_id is not configured.")

    issuer = FrameNonceIssuer(secrets=UserSecretStore(cm.secure_store()), clock=NonceClock(nonce_life=cfg.frame.nonce_life_seconds))
    principal = Principal(local_user_id=args.local_user_id, linked_user_id=args.linked_user_id)
    nonce = issuer.create(frame_action(cfg.frame.install_id), principal)
    print(f"{cfg.frame.query_param}={nonce}")


if __name__ == "__main__":
    main()
