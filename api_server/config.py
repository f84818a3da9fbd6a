import os
from dataclasses import dataclass
from typing import Mapping

def int_env(
    name: str,
    default: int,
    *,
    min_value: int | None = None,
    max_value: int | None = None,
    environ: Mapping[str, str] | None = None,
) -> int:
    """
    Read an env var and convert to int, with optional range validation.
    Falls back to `default` if var is unset or its parsing fails.
    """
    env = os.environ if environ is None else environ
    raw = env.get(name, default)
    try:
        value = int(raw)
    except (ValueError, TypeError):
        value = int(default)

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value
    return value

def _mask(secret: str) -> str:
    return "***" + secret[-4:] if secret else "(not set)"

@dataclass(frozen=True)
class Settings:
    # Server bind
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "development"

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    version: str = "1.0.0"

    # Feature flags
    enable_metrics: bool = False
    enable_detailed_errors: bool = True

    # Secrets, never logged in clear
    api_key: str = ""
    jwt_secret: str = ""
    database_url: str = ""

    def describe(self) -> dict[str, object]:
        return {
            "host": self.host,
            "port": self.port,
            "environment": self.environment,
            "log_level": self.log_level,
            "log_format": self.log_format,
            "version": self.version,
            "enable_metrics": self.enable_metrics,
            "enable_detailed_errors": self.enable_detailed_errors,
            "api_key": _mask(self.api_key),
            "jwt_secret": _mask(self.jwt_secret),
            "database_url": _mask(self.database_url),
        }

def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    environment = env.get("APP_ENV", "development")
    return Settings(
        host=env.get("HOST", "0.0.0.0"),
        port=int_env("PORT", 3000, min_value=1, max_value=65535, environ=env),
        environment=environment,
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
        log_format="json" if environment == "production" else "text",
        version=env.get("APP_VERSION", "1.0.0"),
        # metrics are opt-in, detailed errors opt-out
        enable_metrics=env.get("ENABLE_METRICS") == "true",
        enable_detailed_errors=env.get("ENABLE_DETAILED_ERRORS") != "false",
        api_key=env.get("API_KEY", ""),
        jwt_secret=env.get("JWT_SECRET", ""),
        database_url=env.get("DATABASE_URL", ""),
    )
