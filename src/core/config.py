"""Core configuration.

Centralizes environment variables (pydantic-settings) so the CLI and the
adapters read one validated settings object instead of `os.environ`.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigurationError

# The companion ping is a liveness probe, not a tunable.
PING_TIMEOUT_SECONDS = 1.0


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "entity-lookup"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "entity-lookup"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "entity-lookup"
    return Path.home() / ".config" / "entity-lookup"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class LookupSettings(BaseSettings):
    """Settings for one lookup invocation.

    Built once at startup and handed to every component that needs it.
    """

    model_config = SettingsConfigDict(
        env_prefix="LW_",
        extra="ignore",
        case_sensitive=False,
        # Project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    account: str | None = Field(
        default=None,
        description="Platform account (subdomain or full host name).",
    )
    subaccount: str | None = Field(
        default=None,
        description="Optional sub-account, sent as the Account-Name header.",
    )
    api_key: str | None = Field(default=None, description="API key id.")
    api_secret: str | None = Field(default=None, description="API key secret.")
    api_token: str | None = Field(
        default=None,
        description="Pre-issued bearer token; skips the key exchange when set.",
    )

    cdk_target: str | None = Field(
        default=None,
        description="Full control-plane target (host:port or URL).",
    )
    cdk_server_port: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        description="Control-plane port on localhost (used when no target is set).",
    )
    component_name: str = Field(
        ...,
        min_length=1,
        description="Name this component reports in the liveness ping.",
    )

    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Deadline for platform calls (token exchange and search).",
    )
    telemetry_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Deadline for the post-lookup honeyvent, independent of the ping.",
    )
    honeyvent_enabled: bool = Field(
        default=True,
        description="Send a usage event to the control plane after each lookup.",
    )

    log_level: str = Field(default="WARNING", description="Root log level.")
    log_format: str = Field(
        default="console",
        pattern="^(console|json)$",
        description="Log renderer for stderr (console or json).",
    )

    @model_validator(mode="after")
    def _require_control_plane_target(self) -> "LookupSettings":
        if not (self.cdk_target or "").strip() and self.cdk_server_port is None:
            raise ValueError("LW_CDK_TARGET or LW_CDK_SERVER_PORT must be set")
        return self

    @property
    def control_plane_target(self) -> str:
        """Address of the companion process; an explicit target wins over the port."""

        target = (self.cdk_target or "").strip()
        if target:
            return target
        return f"localhost:{self.cdk_server_port}"

    def require_platform_credentials(self) -> str:
        """Return the account, or raise `ConfigurationError` if the platform cannot be authenticated."""

        missing: list[str] = []
        if not (self.account or "").strip():
            missing.append("LW_ACCOUNT")
        if not self.api_token and not (self.api_key and self.api_secret):
            missing.append("LW_API_TOKEN or LW_API_KEY/LW_API_SECRET")
        if missing:
            raise ConfigurationError(
                f"one or more missing configuration: {', '.join(missing)}"
            )
        return (self.account or "").strip()


def load_settings(**overrides: object) -> LookupSettings:
    """Build `LookupSettings`, turning validation failures into `ConfigurationError`."""

    try:
        return LookupSettings(**overrides)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigurationError(f"invalid configuration: {problems}") from exc
