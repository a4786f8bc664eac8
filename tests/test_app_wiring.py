from __future__ import annotations

from fastapi.testclient import TestClient

from app import build_app
from framegate.core.config import ConfigManager
from framegate.core.crypto import generate_master_key_bytes, write_master_key
from framegate.core.identity import Principal, StoreLinkCache
from framegate.core.nonce import FrameNonceIssuer, NonceClock, frame_action
from framegate.core.user_secrets import UserSecretStore

from tests.helpers.fakes import FakeConnectedUsers


def test_build_app_end_to_end(tmp_config_root):
    cm = ConfigManager(fs=tmp_config_root)
    cm.load_all()
    cm.save("frame", {"install_id": 7})
    cm.load_all()
    store = cm.secure_store()
    write_master_key(store.master_key_path, generate_master_key_bytes())
    UserSecretStore(store).set_secret("1", "token-secret")

    users = FakeConnectedUsers(linked={"1": 42})
    app = build_app(cm, client=users)
    c = TestClient(app)

    issuer = FrameNonceIssuer(secrets=UserSecretStore(store), clock=NonceClock())
    nonce = issuer.create(frame_action(7), Principal(local_user_id="1", linked_user_id=42))

    r = c.get("/editor", params={"frame-nonce": nonce}, headers={"X-Authenticated-User": "1"})
    assert r.status_code == 200
    assert "X-Frame-Options" not in r.headers
    assert r.json()["iframe_request"] is True

    # Linked id now served from the persisted cache.
    r2 = c.get("/editor", params={"frame-nonce": nonce}, headers={"X-Authenticated-User": "1"})
    assert "X-Frame-Options" not in r2.headers
    assert users.calls == ["1"]

    r3 = c.get("/editor", params={"frame-nonce": "0000000000"}, headers={"X-Authenticated-User": "1"})
    assert r3.headers["X-Frame-Options"] == "SAMEORIGIN"


def test_seeded_link_skips_remote_lookup(tmp_config_root):
    cm = ConfigManager(fs=tmp_config_root)
    cm.load_all()
    cm.save("frame", {"install_id": 7})
    cm.load_all()
    store = cm.secure_store()
    write_master_key(store.master_key_path, generate_master_key_bytes())
    UserSecretStore(store).set_secret("1", "token-secret")
    StoreLinkCache(store).set("1", 42)

    users = FakeConnectedUsers()
    c = TestClient(build_app(cm, client=users))
    nonce = FrameNonceIssuer(secrets=UserSecretStore(store), clock=NonceClock()).create(
        frame_action(7), Principal(local_user_id="1", linked_user_id=42)
    )
    r = c.get("/editor", params={"frame-nonce": nonce}, headers={"X-Authenticated-User": "1"})
    assert "X-Frame-Options" not in r.headers
    assert users.calls == []
