import logging
import os

logger = logging.getLogger(__name__)


def _int_from_env(env_var: str, default: int) -> int:
    raw = os.getenv(env_var)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer; defaulting to %d", env_var, raw, default)
        return default
    if value <= 0:
        logger.warning("%s must be positive; defaulting to %d", env_var, default)
        return default
    return value


# Only the most recent games feed the dashboard.
MAX_RECENT_GAMES = _int_from_env("DARTSTATS_MAX_RECENT_GAMES", 30)

CHECKOUT_SUGGESTIONS = _int_from_env("DARTSTATS_CHECKOUT_SUGGESTIONS", 3)

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")


def _log_level_from_env(env_var: str, default: str) -> str:
    raw = (os.getenv(env_var) or "").strip().upper()
    if not raw:
        return default
    if raw not in _LOG_LEVELS:
        logger.warning("%s=%r is not a logging level; defaulting to %s", env_var, raw, default)
        return default
    return raw


LOG_LEVEL = _log_level_from_env("DARTSTATS_LOG_LEVEL", "INFO")
