import logging
import os

from dotenv import load_dotenv

from models import DisplayPreferences

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Default to local SQLite, but allow override (e.g. Postgres)
DB_URL = os.getenv("DATABASE_URL", "sqlite:///finance_tracker.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DISPLAY_CURRENCY = os.getenv("DISPLAY_CURRENCY", "EUR")
DISPLAY_DATE_FORMAT = os.getenv("DISPLAY_DATE_FORMAT", "%b %Y")

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


HEALTH_DEBOUNCE_SECONDS = _env_float("HEALTH_DEBOUNCE_SECONDS", 0.25)
ANIMATION_TICK_SECONDS = _env_float("ANIMATION_TICK_SECONDS", 0.02)


def display_preferences() -> DisplayPreferences:
    """Currency and date settings handed to formatting calls."""
    return DisplayPreferences(currency=DISPLAY_CURRENCY, date_format=DISPLAY_DATE_FORMAT)


def configure_logging(level=None):
    logging.basicConfig(level=level or LOG_LEVEL, format=_LOG_FORMAT, datefmt="%H:%M:%S")
