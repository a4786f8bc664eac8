from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ConfigFsPaths:
    root: str = "."

    @property
    def config_dir(self) -> str:
        return os.path.join(self.root, "config")

    @property
    def secure_dir(self) -> str:
        return os.path.join(self.root, "secure")

    @property
    def logs_dir(self) -> str:
        return os.path.join(self.root, "logs")

    @property
    def backups_dir(self) -> str:
        return os.path.join(self.config_dir, "backups")

    # Files
    @property
    def frame(self) -> str:
        return os.path.join(self.config_dir, "frame.json")

    @property
    def security(self) -> str:
        return os.path.join(self.config_dir, "security.json")

    @property
    def remote(self) -> str:
        return os.path.join(self.config_dir, "remote.json")

    @property
    def web(self) -> str:
        return os.path.join(self.config_dir, "web.json")
