from __future__ import annotations

import base64
import hashlib
import json
import os
import secrets
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from framegate.core.errors import SecureStoreError


class MasterKeyMissingError(RuntimeError):
    pass


class SecureStoreLockedError(RuntimeError):
    pass


def key_id_from_key_bytes(key: bytes) -> str:
    return hashlib.sha256(key).hexdigest()[:16]


def _b64e(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).decode("ascii")


def _b64d(s: str) -> bytes:
    return base64.urlsafe_b64decode(s.encode("ascii"))


def generate_master_key_bytes() -> bytes:
    # AES-256 key
    return secrets.token_bytes(32)


def write_master_key(path: str, key_bytes: bytes) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "wb") as f:
        f.write(key_bytes)


def read_master_key(path: str) -> bytes:
    if not os.path.exists(path):
        raise MasterKeyMissingError(f"Master key not found at {path!r}")
    with open(path, "rb") as f:
        b = f.read()
    if len(b) != 32:
        raise ValueError("Master key must be 32 bytes (AES-256).")
    return b


def best_effort_restrict_permissions(path: str) -> None:
    """
    Best-effort permissions tightening.
    On Windows this is limited; on POSIX it sets 0o600.
    """
    if os.name == "nt":
        return
    try:
        os.chmod(path, 0o600)
    except OSError:
        return


def aesgcm_encrypt(key: bytes, plaintext: bytes, aad: bytes = b"") -> Dict[str, Any]:
    aes = AESGCM(key)
    nonce = secrets.token_bytes(12)
    ct = aes.encrypt(nonce, plaintext, aad or None)
    return {"v": 1, "nonce": _b64e(nonce), "ciphertext": _b64e(ct)}


def aesgcm_decrypt(key: bytes, blob: Dict[str, Any], aad: bytes = b"") -> bytes:
    if blob.get("v") != 1:
        raise ValueError("Unsupported encrypted blob version.")
    aes = AESGCM(key)
    nonce = _b64d(blob["nonce"])
    ct = _b64d(blob["ciphertext"])
    return aes.decrypt(nonce, ct, aad or None)


@dataclass
class SecureStore:
    """
    Encrypted JSON key/value store backed by AES-GCM and a master key file.

    - If the master key is missing: store is locked (read/write prohibited).
    - File format: JSON with AES-GCM nonce+ciphertext.
    """

    master_key_path: str
    store_path: str
    aad: bytes = b"framegate.secure_store.v1"
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def _get_master_key(self) -> bytes:
        return read_master_key(self.master_key_path)

    def _load_plain(self) -> Dict[str, Any]:
        if not os.path.exists(self.store_path):
            return {}
        key = self._get_master_key()
        try:
            with open(self.store_path, "r", encoding="utf-8") as f:
                blob = json.load(f)
            pt = aesgcm_decrypt(key, blob, aad=self.aad)
        except InvalidTag as e:
            raise SecureStoreError("Secure store could not be decrypted.", store_path=self.store_path) from e
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise SecureStoreError("Secure store is corrupt.", store_path=self.store_path) from e
        try:
            data = json.loads(pt.decode("utf-8"))
        except ValueError as e:
            raise SecureStoreError("Secure store is corrupt.", store_path=self.store_path) from e
        if not isinstance(data, dict):
            raise SecureStoreError("Secure store is corrupt.", store_path=self.store_path)
        return data

    def _save_plain(self, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(self.store_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        key = self._get_master_key()
        pt = json.dumps(data, ensure_ascii=False, sort_keys=True).encode("utf-8")
        blob = aesgcm_encrypt(key, pt, aad=self.aad)
        tmp = self.store_path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(blob, f, indent=2, ensure_ascii=False, sort_keys=True)
            f.write("\n")
        os.replace(tmp, self.store_path)
        best_effort_restrict_permissions(self.store_path)

    def is_unlocked(self) -> bool:
        try:
            _ = self._get_master_key()
            return True
        except MasterKeyMissingError:
            return False

    def secure_get(self, key: str) -> Optional[Any]:
        if not self.is_unlocked():
            raise SecureStoreLockedError("Master key required to read secure store.")
        with self._lock:
            data = self._load_plain()
        return data.get(key)

    def secure_set(self, key: str, value: Any) -> None:
        if not self.is_unlocked():
            raise SecureStoreLockedError("Master key required to write secure store.")
        with self._lock:
            data = self._load_plain()
            data[key] = value
            self._save_plain(data)

    def secure_delete(self, key: str) -> None:
        if not self.is_unlocked():
            raise SecureStoreLockedError("Master key required to write secure store.")
        with self._lock:
            data = self._load_plain()
            if key in data:
                del data[key]
                self._save_plain(data)
