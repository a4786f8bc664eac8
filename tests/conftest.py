from __future__ import annotations

import os

import pytest

from framegate.core.config.paths import ConfigFsPaths
from framegate.core.crypto import SecureStore, generate_master_key_bytes, write_master_key


@pytest.fixture
def tmp_config_root(tmp_path):
    """
    Provides an isolated root with config/, secure/ and logs/ under tmp_path.
    """
    fs = ConfigFsPaths(root=str(tmp_path))
    os.makedirs(fs.config_dir, exist_ok=True)
    os.makedirs(fs.secure_dir, exist_ok=True)
    return fs


@pytest.fixture
def master_key_path(tmp_config_root):
    path = os.path.join(tmp_config_root.secure_dir, "master.key")
    write_master_key(path, generate_master_key_bytes())
    return path


@pytest.fixture
def secure_store(tmp_config_root, master_key_path):
    return SecureStore(master_key_path=master_key_path, store_path=os.path.join(tmp_config_root.secure_dir, "store.enc"))
