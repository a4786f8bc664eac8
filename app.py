from __future__ import annotations

import argparse
import os
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request

from framegate.core.config import ConfigFsPaths, ConfigManager
from framegate.core.events import EventLogger
from framegate.core.identity import ConnectedUserClient, PrincipalResolver, StoreLinkCache
from framegate.core.logger import setup_logging
from framegate.core.nonce import FrameNonceVerifier, NonceClock
from framegate.core.security_events import SecurityAuditLogger
from framegate.core.user_secrets import UserSecretStore
from framegate.web.api import create_app
from framegate.web.gate import FrameGate


def build_app(cm: ConfigManager, *, client: Optional[ConnectedUserClient] = None) -> FastAPI:
    cfg = cm.get()
    logs_dir = cm.fs.logs_dir
    store = cm.secure_store()

    resolver = PrincipalResolver(
        cache=StoreLinkCache(store),
        source=client or ConnectedUserClient(api_base=cfg.remote.api_base, timeout_seconds=cfg.remote.timeout_seconds),
    )
    event_logger = EventLogger(os.path.join(logs_dir, "events.jsonl"))
    verifier = FrameNonceVerifier(
        resolver=resolver,
        secrets=UserSecretStore(store),
        clock=NonceClock(nonce_life=cfg.frame.nonce_life_seconds),
        event_logger=event_logger,
    )
    gate = FrameGate(verifier=verifier, install_id=cfg.frame.install_id, query_param=cfg.frame.query_param)

    user_header = cfg.web.user_header

    def current_user(request: Request) -> Optional[str]:
        return request.headers.get(user_header) or None

    return create_app(
        gate=gate,
        current_user=current_user,
        event_logger=event_logger,
        audit_logger=SecurityAuditLogger(path=os.path.join(logs_dir, "security.jsonl")),
        frame_options=cfg.frame.frame_options,
    )


def main() -> None:
    ap = argparse.ArgumentParser(description="framegate: trusted editor iframe gate")
    ap.add_argument("--root", default=".", help="Directory holding config/, secure/ and logs/.")
    ap.add_argument("--host", default=None, help="Override web.bind_host.")
    ap.add_argument("--port", type=int, default=None, help="Override web.port.")
    args = ap.parse_args()

    fs = ConfigFsPaths(root=args.root)
    logger = setup_logging(fs.logs_dir)
    cm = ConfigManager(fs=fs, logger=logger)
    cfg = cm.load_all()

    if not cfg.frame.install_id:
        logger.warning("frame.install_id is not set: framing will be denied for every request.")
    if not cm.secure_store().is_unlocked():
        logger.warning("Master key missing: token secrets unavailable, framing will be denied.")

    app = build_app(cm)
    host = args.host or cfg.web.bind_host
    port = args.port or cfg.web.port
    logger.info(f"Web server starting on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
