from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from framegate.core.config.io import atomic_write_json, read_json_file
from framegate.core.config.models import AppConfig, FrameConfig, RemoteConfig, SecurityConfig, WebConfig
from framegate.core.config.paths import ConfigFsPaths
from framegate.core.crypto import SecureStore
from framegate.core.errors import ConfigError

_FILES = {
    "frame": FrameConfig,
    "security": SecurityConfig,
    "remote": RemoteConfig,
    "web": WebConfig,
}


class ConfigManager:
    """
    Loads config/*.json into a validated AppConfig.

    Missing files are created with defaults unless read-only. A corrupt or
    invalid file raises ConfigError; nothing is silently replaced.
    """

    def __init__(self, *, fs: Optional[ConfigFsPaths] = None, logger: Optional[logging.Logger] = None, read_only: bool = False):
        self.fs = fs or ConfigFsPaths(".")
        self.logger = logger or logging.getLogger("framegate.config")
        self.read_only = read_only
        self._cfg: Optional[AppConfig] = None

    def _path(self, name: str) -> str:
        return os.path.join(self.fs.config_dir, f"{name}.json")

    def _load_raw_files(self) -> Dict[str, Dict[str, Any]]:
        files: Dict[str, Dict[str, Any]] = {}
        for name, model in _FILES.items():
            path = self._path(name)
            rr = read_json_file(path)
            if rr.ok:
                files[name] = rr.data
                continue
            if rr.error != "missing":
                raise ConfigError("Config file is unreadable.", file=os.path.basename(path), error=rr.error)
            files[name] = model().model_dump()
            if not self.read_only:
                atomic_write_json(path, files[name], self.fs.backups_dir)
                self.logger.info("Created default config: %s", path)
        return files

    def load_all(self) -> AppConfig:
        os.makedirs(self.fs.config_dir, exist_ok=True)
        files = self._load_raw_files()
        try:
            cfg = AppConfig.model_validate(files)
        except PydanticValidationError as e:
            raise ConfigError("Config validation failed.", errors=e.errors(include_url=False)) from e
        self._cfg = cfg
        return cfg

    def get(self) -> AppConfig:
        if self._cfg is None:
            raise ConfigError("Config not loaded.")
        return self._cfg

    def save(self, name: str, data: Dict[str, Any]) -> None:
        if self.read_only:
            raise ConfigError("Config is read-only.", file=f"{name}.json")
        model = _FILES.get(name)
        if model is None:
            raise ConfigError("Unknown config file.", file=f"{name}.json")
        try:
            validated = model.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigError("Config validation failed.", errors=e.errors(include_url=False)) from e
        atomic_write_json(self._path(name), validated.model_dump(), self.fs.backups_dir)
        self._cfg = None

    def secure_store(self) -> SecureStore:
        cfg = self.get()
        return SecureStore(master_key_path=self._abs(cfg.security.master_key_path), store_path=self._abs(cfg.security.secure_store_path))

    def _abs(self, path: str) -> str:
        if os.path.isabs(path):
            return path
        return os.path.join(self.fs.root, path)

