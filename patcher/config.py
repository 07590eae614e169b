"""Environment-based configuration."""

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError


class Config(BaseSettings):
    """Process-wide settings, loaded once at startup.

    Every field is read from the environment variable named in its alias.
    """

    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    api_key: str = Field(..., alias="ROOTIO_API_KEY", min_length=1, repr=False)
    api_url: str = Field(default="https://api.root.io", alias="ROOTIO_API_URL")
    pkg_url: str = Field(default="https://pkg.root.io", alias="ROOTIO_PKG_URL")
    log_level: str = Field(default="info", alias="LOG_LEVEL")
    http_timeout: float = Field(default=60.0, alias="ROOTIO_HTTP_TIMEOUT", gt=0)


def load_config() -> Config:
    """Load configuration from the environment.

    Raises:
        ConfigError: If a required variable is missing or a value is invalid
    """
    try:
        return Config()
    except ValidationError as e:
        problems = []
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            if error["type"] == "missing":
                problems.append(f"{field} is required")
            else:
                problems.append(f"{field}: {error['msg']}")
        raise ConfigError("; ".join(problems)) from e
