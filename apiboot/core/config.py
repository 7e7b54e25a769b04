"""Service-wide configuration.

`StartupConfig` is read once from the environment at process start and is
immutable afterwards. The API prefix is fixed; everything else can be
overridden with environment variables (`PORT`, `HOST`, `CORS_ENABLED`,
`VALIDATION__REJECT_UNKNOWN_FIELDS`, `VALIDATION__COERCE_TYPES`, `LOG_LEVEL`,
`JSON_LOGS`).
"""

from pathlib import Path
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PORT = 3000
API_PREFIX = "api/v1"


class ValidationPolicy(BaseModel):
    """How request payloads are checked before they reach a handler."""

    model_config = ConfigDict(frozen=True)

    # Undeclared fields fail the request; when False they are dropped instead
    reject_unknown_fields: bool = True
    # "42" -> 42 for fields declared as int (lax mode)
    coerce_types: bool = True


class StartupConfig(BaseSettings):
    """Everything the bootstrap sequencer needs to bring the service up."""

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
    )

    base_path_prefix: ClassVar[str] = API_PREFIX

    port: int = DEFAULT_PORT
    host: str = "0.0.0.0"
    cors_enabled: bool = True
    validation: ValidationPolicy = Field(default_factory=ValidationPolicy)

    log_level: str = "INFO"
    json_logs: bool = False

    @field_validator("port", mode="before")
    @classmethod
    def _port_or_default(cls, value: Any) -> int:
        """Fall back to the default port when the value is missing or unusable."""
        try:
            port = int(str(value).strip())
        except (TypeError, ValueError):
            return DEFAULT_PORT
        if not 0 < port <= 65535:
            return DEFAULT_PORT
        return port

    @property
    def mount_path(self) -> str:
        """Prefix as a router path, e.g. `/api/v1`."""
        return "/" + self.base_path_prefix.strip("/")

    @property
    def public_url(self) -> str:
        return f"http://localhost:{self.port}"

    @property
    def api_url(self) -> str:
        return self.public_url + self.mount_path


def load_config(env_file: Optional[Path] = None, **overrides: Any) -> StartupConfig:
    """Build the startup configuration from the environment.

    Args:
        env_file: Optional .env file read in addition to process variables
        **overrides: Explicit values that win over the environment

    Returns:
        Validated, frozen configuration
    """
    if env_file is not None:
        return StartupConfig(_env_file=env_file, **overrides)
    return StartupConfig(**overrides)
