import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


STORE_URL = os.environ.get("STORE_URL", "")
STORE_API_KEY = os.environ.get("STORE_API_KEY", "")
STORE_TIMEOUT = float(os.environ.get("STORE_TIMEOUT", "10"))
USE_REMOTE_STORE = _env_flag("USE_REMOTE_STORE", bool(STORE_URL))

PIN_HASH_SCHEME = os.environ.get("PIN_HASH_SCHEME", "scrypt")
BUDGET_ALERT_PERCENT = float(os.environ.get("BUDGET_ALERT_PERCENT", "80"))

EXPORT_DIR = os.environ.get("EXPORT_DIR", str(PROJECT_ROOT / "exports"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
