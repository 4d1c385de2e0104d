import logging
import os
from dotenv import load_dotenv

from sitecheck.errors import EnvironmentSetupError

load_dotenv()


def _env_number(name: str, cast, default=None):
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise EnvironmentSetupError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise EnvironmentSetupError(f"{name} must be positive, got {raw!r}")
    return value


class Settings:
    """Environment configuration.

    Numeric values and the log level are parsed on access so a bad value
    surfaces as ``EnvironmentSetupError`` where the caller handles it.
    """

    SITECHECK_TARGETS_PATH: str | None = os.getenv("SITECHECK_TARGETS_PATH")
    SITECHECK_BASE_URL: str | None = os.getenv("SITECHECK_BASE_URL")

    @property
    def SITECHECK_TIMEOUT_SECONDS(self) -> float | None:
        return _env_number("SITECHECK_TIMEOUT_SECONDS", float)

    @property
    def SITECHECK_WORKERS(self) -> int:
        return _env_number("SITECHECK_WORKERS", int, 1)

    @property
    def SITECHECK_LOG_LEVEL(self) -> int:
        raw = os.getenv("SITECHECK_LOG_LEVEL", "INFO")
        level = logging.getLevelName(raw.strip().upper())
        if not isinstance(level, int):
            raise EnvironmentSetupError(f"SITECHECK_LOG_LEVEL is not a log level: {raw!r}")
        return level


settings = Settings()
