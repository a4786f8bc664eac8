from framegate.core.config.manager import ConfigManager
from framegate.core.config.models import AppConfig, FrameConfig, RemoteConfig, SecurityConfig, WebConfig
from framegate.core.config.paths import ConfigFsPaths

__all__ = [
    "ConfigManager",
    "AppConfig",
    "FrameConfig",
    "RemoteConfig",
    "SecurityConfig",
    "WebConfig",
    "ConfigFsPaths",
]
