"""Environment-driven settings."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from qbopulse.domain.errors import ValidationError
from qbopulse.qbo.client import DEFAULT_MINOR_VERSION, DEFAULT_REQUEST_DELAY, QB_API_BASE

DEFAULT_DB_PATH = Path.home() / ".qbopulse" / "qbopulse.db"
DEFAULT_MONTHS_BACK = 24
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the CLI and QBO client."""

    db_path: Path = DEFAULT_DB_PATH
    realm_id: Optional[str] = None
    access_token: Optional[str] = None
    base_url: str = QB_API_BASE
    minor_version: int = DEFAULT_MINOR_VERSION
    request_delay: float = DEFAULT_REQUEST_DELAY
    months_back: int = DEFAULT_MONTHS_BACK
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def has_credentials(self) -> bool:
        return bool(self.realm_id and self.access_token)


def _number(environ: Mapping[str, str], key: str, default, cast):
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ValidationError(f"Invalid value for {key}: {raw!r}") from e


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from environment variables.

    Args:
        environ: Mapping to read from, defaults to ``os.environ``

    Raises:
        ValidationError: If a numeric variable cannot be parsed
    """
    environ = os.environ if environ is None else environ
    db_path = environ.get("QBOPULSE_DB_PATH")
    return Settings(
        db_path=Path(db_path).expanduser() if db_path else DEFAULT_DB_PATH,
        realm_id=environ.get("QBO_REALM_ID") or None,
        access_token=environ.get("QBO_ACCESS_TOKEN") or None,
        base_url=environ.get("QBO_BASE_URL") or QB_API_BASE,
        minor_version=_number(environ, "QBO_MINOR_VERSION", DEFAULT_MINOR_VERSION, int),
        request_delay=_number(environ, "QBOPULSE_REQUEST_DELAY", DEFAULT_REQUEST_DELAY, float),
        months_back=_number(environ, "QBOPULSE_MONTHS_BACK", DEFAULT_MONTHS_BACK, int),
        log_level=(environ.get("QBOPULSE_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
    )
