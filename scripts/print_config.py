from __future__ import annotations

import json

from framegate.core.config import ConfigFsPaths, ConfigManager


def main() -> None:
    cm = ConfigManager(fs=ConfigFsPaths("."), read_only=True)
    cfg = cm.load_all()
    print(json.dumps(cfg.model_dump(), indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
