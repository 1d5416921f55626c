import logging
import os
import sys
from functools import cached_property
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource
from typing_extensions import Self

CONFIG_FILE_ENV = "PODSTUDIO_CONFIG_FILE"
LOG_FILE_ENV = "PODSTUDIO_LOG_FILE"

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "aiosqlite", "alembic")


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings read from the YAML file named by ``PODSTUDIO_CONFIG_FILE``.

    A missing variable or file contributes nothing.
    """

    @cached_property
    def _data(self) -> dict[str, Any]:
        config_file = os.environ.get(CONFIG_FILE_ENV)
        if not config_file or not Path(config_file).exists():
            return {}
        return yaml.safe_load(Path(config_file).read_text()) or {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return dict(self._data)


class Frontend(BaseModel):
    """Where the single-page app lives; login redirects land here."""

    url: str = "http://localhost:3001"

    @property
    def base_url(self) -> str:
        """Frontend URL with a scheme and without a trailing slash."""
        url = self.url.rstrip("/")
        if not url.startswith(("http://", "https://")):
            url = f"https://{url}"
        return url


class Server(BaseModel):
    """API metadata shown in the OpenAPI document."""

    name: str = "podstudio"
    version: str = "0.1.0"
    description: str = "Podcast production studio API"


class DatabaseConfig(BaseModel):
    """User store connection settings."""

    url: str = "sqlite+aiosqlite:///./podstudio.db"
    echo: bool = False
    auto_migrate: bool = True  # Run Alembic migrations on startup
    pool_timeout: float = 30.0  # Seconds to wait for a pooled connection
    busy_timeout: float = 30.0  # Seconds a SQLite transaction waits for the write lock


class LoggingConfig(BaseModel):
    """Root logger settings, applied by configure_logging()."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Log to this file instead of stderr when the env var is set."""
        return os.environ.get(LOG_FILE_ENV)


class LinkedInConfig(BaseModel):
    """LinkedIn OpenID Connect configuration."""

    client_id: str = ""
    client_secret: str = ""
    authorization_url: str = "https://www.linkedin.com/oauth/v2/authorization"
    token_url: str = "https://www.linkedin.com/oauth/v2/accessToken"
    userinfo_url: str = "https://api.linkedin.com/v2/userinfo"
    scopes: list[str] = ["openid", "profile", "email"]


class JwtConfig(BaseModel):
    """Session token (JWT) configuration."""

    secret: str = ""  # Must be set in production
    algorithm: str = "HS256"
    session_token_expire_days: int = 7


class ProfileFetchConfig(BaseModel):
    """Userinfo retry policy."""

    max_retries: int = 2  # Additional attempts after the first
    retry_delay_seconds: float = 1.0  # Multiplied by the attempt index
    timeout_seconds: float = 15.0  # Per attempt


class AuthConfig(BaseModel):
    """Authentication configuration."""

    linkedin: LinkedInConfig = LinkedInConfig()
    jwt: JwtConfig = JwtConfig()
    profile: ProfileFetchConfig = ProfileFetchConfig()
    callback_url: str = ""  # Full callback URL; derived from the request when empty
    state_ttl_seconds: int = 600
    session_secret: str = ""  # Cookie session signing key; falls back to jwt.secret
    session_cookie: str = "podstudio_session"
    require_email: bool = True  # Reject logins whose provider profile has no email


class InferenceConfig(BaseModel):
    """Demographic inference configuration."""

    enabled: bool = True
    timeout_seconds: float = 5.0
    catalog_file: str | None = None  # YAML catalog override; bundled default when unset


class Config(BaseSettings):
    # Nested sections are set from env as PODSTUDIO_<SECTION>__<FIELD>
    server: Server = Server()
    frontend: Frontend = Frontend()
    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    auth: AuthConfig = AuthConfig()
    inference: InferenceConfig = InferenceConfig()

    model_config = {
        "env_prefix": "PODSTUDIO_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # Allows PODSTUDIO_AUTH__JWT__SECRET override
    }

    @model_validator(mode="after")
    def derive_session_secret(self) -> Self:
        """Reuse the JWT secret for cookie sessions unless one is given."""
        if not self.auth.session_secret:
            self.auth.session_secret = self.auth.jwt.secret
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Environment beats .env, which beats the YAML file named by PODSTUDIO_CONFIG_FILE."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Install a single root handler; call before anything logs."""
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler: logging.Handler
    if config.file:
        path = Path(config.file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(config.level)
    handler.setFormatter(logging.Formatter(config.format, datefmt=config.date_format))

    root.setLevel(config.level)
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.debug("Logging to %s at %s", config.file or "stderr", config.level)
