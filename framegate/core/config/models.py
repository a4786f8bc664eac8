from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FrameConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    schema_version: int = Field(default=1, ge=1, le=10)
    install_id: int = Field(default=0, ge=0)
    nonce_life_seconds: int = Field(default=86400, ge=2)
    query_param: str = Field(default="frame-nonce", min_length=1, max_length=64)
    frame_options: str = "SAMEORIGIN"

    @field_validator("frame_options")
    @classmethod
    def _known_frame_option(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in {"SAMEORIGIN", "DENY"}:
            raise ValueError("frame_options must be SAMEORIGIN or DENY")
        return v


class SecurityConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    master_key_path: str = "secure/master.key"
    secure_store_path: str = "secure/secure_store.enc"


class RemoteConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    api_base: str = "https://public-api.example.com/rest/v1"
    timeout_seconds: float = Field(default=5.0, gt=0, le=60)

    @field_validator("api_base")
    @classmethod
    def _https_only(cls, v: str) -> str:
        if not v.startswith(("https://", "http://127.0.0.1", "http://localhost")):
            raise ValueError("api_base must use https (plain http only for localhost)")
        return v.rstrip("/")


class WebConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    bind_host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    # Set by the authenticating reverse proxy in front of the app.
    user_header: str = "X-Authenticated-User"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    frame: FrameConfig
    security: SecurityConfig
    remote: RemoteConfig
    web: WebConfig
