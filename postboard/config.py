import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv


class ConfigError(RuntimeError):
    """Raised when the process cannot start with the given configuration."""


def _env_bool(env: Mapping[str, str], name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Parse a boolean environment variable.

    Returns:
      - True/False if the env var is set to a recognizable value
      - default if unset or unrecognized

    Accepted truthy: 1, true, yes, y, on
    Accepted falsy:  0, false, no, n, off
    """

    raw = env.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    Built once at startup and handed to the app; nothing below the API layer
    reads the environment directly.
    """

    # -----------------
    # Auth (JWT)
    # -----------------
    # Required. There is deliberately no default: a missing secret aborts startup.
    AUTH_JWT_SECRET: str = ""
    # 8 hours. Used both for the token `exp` claim and the cookie Max-Age.
    AUTH_TOKEN_TTL_SECONDS: int = 8 * 60 * 60
    AUTH_COOKIE_NAME: str = "token"
    AUTH_COOKIE_PATH: str = "/"

    # -----------------
    # Core
    # -----------------
    # Postgres URL (postgresql://...) or a SQLite file path / sqlite:/// URL.
    DB_DSN: str = "./postboard.sqlite"

    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # development|production. Controls the Secure cookie flag and HSTS.
    APP_ENV: str = "development"

    LOG_LEVEL: str = "INFO"

    # Comma separated. Empty disables CORS (same-origin deployments).
    CORS_ALLOW_ORIGINS: str = ""

    def __post_init__(self) -> None:
        if not (self.AUTH_JWT_SECRET or "").strip():
            raise ConfigError("JWT_SECRET is not set; refusing to start without a signing secret")
        if int(self.AUTH_TOKEN_TTL_SECONDS) <= 0:
            raise ConfigError("AUTH_TOKEN_TTL_SECONDS must be positive")
        if not (self.DB_DSN or "").strip():
            raise ConfigError("database connection string is empty")

    @property
    def is_production(self) -> bool:
        return (self.APP_ENV or "").strip().lower() in ("production", "prod")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in (self.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]


def load_config(env: Optional[Mapping[str, str]] = None) -> Config:
    """Build the config from the environment (and a local .env file, if present)."""
    if env is None:
        load_dotenv()
        env = os.environ

    app_env = env.get("APP_ENV") or env.get("NODE_ENV") or "development"
    # LOG_LEVEL wins; DEBUG=1 is a shorthand for LOG_LEVEL=DEBUG.
    debug = _env_bool(env, "DEBUG", None)
    log_level = env.get("LOG_LEVEL") or ("DEBUG" if debug else "INFO")

    return Config(
        AUTH_JWT_SECRET=env.get("JWT_SECRET") or env.get("AUTH_JWT_SECRET") or "",
        AUTH_TOKEN_TTL_SECONDS=int(env.get("AUTH_TOKEN_TTL_SECONDS", str(8 * 60 * 60))),
        DB_DSN=(
            env.get("POSTBOARD_DATABASE_URL")
            or env.get("DATABASE_URL")
            or env.get("POSTBOARD_DB_PATH", "./postboard.sqlite")
        ),
        API_HOST=env.get("API_HOST", "0.0.0.0"),
        API_PORT=int(env.get("PORT") or env.get("API_PORT") or "8000"),
        APP_ENV=app_env,
        LOG_LEVEL=log_level,
        CORS_ALLOW_ORIGINS=env.get("CORS_ALLOW_ORIGINS", ""),
    )
