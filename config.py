import os
from dataclasses import dataclass
from typing import Mapping, Optional

from db.connection import DB_DSN
from errors import ConfigurationError

REQUIRED_SETTINGS = ("ASSESSMENT_URL", "ASSESSMENT_API_KEY")
DEFAULT_ASSESSMENT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class Settings:
    assessment_url: str
    assessment_api_key: str
    assessment_timeout_seconds: float = DEFAULT_ASSESSMENT_TIMEOUT_SECONDS
    db_dsn: str = DB_DSN


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read service settings from the environment.

    Raises ConfigurationError when the assessment endpoint or its credential
    is missing, so the service never starts accepting work half-configured.
    """
    env = os.environ if environ is None else environ

    missing = [name for name in REQUIRED_SETTINGS if not env.get(name, "").strip()]
    if missing:
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

    raw_timeout = env.get("ASSESSMENT_TIMEOUT_SECONDS", str(DEFAULT_ASSESSMENT_TIMEOUT_SECONDS))
    try:
        timeout = float(raw_timeout)
    except ValueError as exc:
        raise ConfigurationError(f"ASSESSMENT_TIMEOUT_SECONDS is not a number: {raw_timeout!r}") from exc
    if timeout <= 0:
        raise ConfigurationError("ASSESSMENT_TIMEOUT_SECONDS must be positive")

    return Settings(
        assessment_url=env["ASSESSMENT_URL"].strip(),
        assessment_api_key=env["ASSESSMENT_API_KEY"].strip(),
        assessment_timeout_seconds=timeout,
        db_dsn=env.get("DB_DSN", DB_DSN),
    )
