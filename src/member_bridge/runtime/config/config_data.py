"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, model_validator

# Fallback used by the bridge service when SHARED_JWT_SECRET is unset. Tokens
# signed with it are forgeable by anyone who has read the bridge's source.
INSECURE_DEFAULT_SECRET = "change-in-production"


class ProviderConfig(BaseModel):
    """A bridge-side identity provider and how to start its handshake."""

    init_path: str = Field(description="Path on the bridge that starts the handshake")
    requires_handle: bool = Field(
        default=False, description="Whether the caller must supply a handle"
    )
    decentralized: bool = Field(
        default=False,
        description="Identity is keyed by a DID and may arrive without an email",
    )
    extra_params: dict[str, str] = Field(
        default_factory=dict, description="Fixed query parameters for the init URL"
    )


def _default_providers() -> dict[str, ProviderConfig]:
    return {
        "google": ProviderConfig(init_path="/api/auth/google"),
        "atproto": ProviderConfig(
            init_path="/api/auth/atproto/init",
            requires_handle=True,
            decentralized=True,
            extra_params={"ghost_callback": "true"},
        ),
    }


class BridgeConfig(BaseModel):
    """Connection to the external bridge identity service."""

    base_url: str = Field(
        default="http://127.0.0.1:5000", description="Bridge service base URL"
    )
    shared_secret: str = Field(
        default=INSECURE_DEFAULT_SECRET,
        description="Pre-shared HS256 secret for bridge assertions and sessions",
    )
    providers: dict[str, ProviderConfig] = Field(
        default_factory=_default_providers,
        description="Providers the bridge can authenticate against",
    )

    @property
    def uses_insecure_secret(self) -> bool:
        return self.shared_secret == INSECURE_DEFAULT_SECRET


class JWTConfig(BaseModel):
    """JWT signing and validation configuration."""

    algorithm: Literal["HS256", "HS384", "HS512"] = Field(
        default="HS256", description="Signing algorithm for bridge and session tokens"
    )
    clock_skew: int = Field(default=0, description="Clock skew tolerance in seconds")
    require_exp: bool = Field(default=True, description="Require expiration claim")


class MemberStoreConfig(BaseModel):
    """Which member store backs the service, and how to reach it."""

    backend: Literal["memory", "sql", "ghost"] = Field(
        default="sql", description="Member store implementation"
    )
    admin_url: str | None = Field(
        default=None, description="Ghost site URL for the Admin API backend"
    )
    admin_api_key: str | None = Field(
        default=None, description="Ghost Admin API key in '<id>:<hex secret>' form"
    )
    accept_version: str = Field(default="v5.0", description="Ghost Accept-Version")
    timeout_seconds: float = Field(
        default=5.0, description="Per-request timeout for member store calls"
    )

    @model_validator(mode="after")
    def _check_ghost_settings(self) -> MemberStoreConfig:
        if self.backend == "ghost" and not (self.admin_url and self.admin_api_key):
            raise ValueError(
                "member_store.admin_url and member_store.admin_api_key are required "
                "for the ghost backend"
            )
        return self


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./members.db", description="Database connection URL"
    )
    pool_size: int = Field(default=20, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    echo: bool = Field(default=False, description="Echo SQL statements")


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    mount_path: str = Field(
        default="/members/oauth", description="Prefix the OAuth routes are mounted at"
    )
    signin_path: str = Field(default="/signin", description="Sign-in page path")
    welcome_path: str = Field(
        default="/oauth-welcome", description="Profile completion page path"
    )
    home_path: str = Field(default="/", description="Post-login destination")
    session_cookie_name: str = Field(
        default="ghost-members-ssr", description="Session cookie name"
    )

    @property
    def base_url(self) -> str:
        """Construct the base URL from host and port."""
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}"


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    bridge: BridgeConfig = Field(
        default_factory=BridgeConfig, description="Bridge service configuration"
    )
    jwt: JWTConfig = Field(
        default_factory=JWTConfig, description="JWT configuration"
    )
    member_store: MemberStoreConfig = Field(
        default_factory=MemberStoreConfig, description="Member store configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    @model_validator(mode="after")
    def _check_shared_secret(self) -> ConfigData:
        if not self.bridge.uses_insecure_secret:
            return self
        if self.app.environment == "production":
            raise ValueError(
                "bridge.shared_secret is the insecure default; set SHARED_JWT_SECRET"
            )
        logger.warning(
            "!!! bridge.shared_secret is the insecure default '{}'. Anyone can forge "
            "bridge assertions and member sessions. Set SHARED_JWT_SECRET. !!!",
            INSECURE_DEFAULT_SECRET,
        )
        return self
