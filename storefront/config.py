import os
from pathlib import Path
from dotenv import load_dotenv

# Force-load .env (Windows-safe, reload-safe)
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH)


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


APP_ENV = os.getenv("APP_ENV", "development").strip().lower()

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set. Check your .env file.")

# Static bearer secret for catalog/order writes
ADMIN_SECRET_KEY = os.getenv("ADMIN_SECRET_KEY", "")

DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "usd").strip().lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def is_production() -> bool:
    return APP_ENV == "production"


def bypass_allowed() -> bool:
    """ENABLE_DEV_BYPASS when set, otherwise on everywhere except production."""
    return _flag("ENABLE_DEV_BYPASS", not is_production())


ALLOW_PAYMENT_BYPASS = bypass_allowed()
