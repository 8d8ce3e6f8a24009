# config.py
# Role: Runtime configuration for the vehicle ledger.
#       Reads an optional .env file and exposes plain module-level settings
#       used by db.py, the services layer and main.py.

import os
from dotenv import load_dotenv

load_dotenv()


def _env_truthy(name: str, default: str = "0") -> bool:
    v = os.getenv(name, default)
    return str(v).strip().lower() in ("1", "true", "yes", "y", "on")


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip().lower() for item in raw.split(",") if item.strip()]


# --- Database ---
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DB_DIR = os.path.join(BASE_DIR, "database")
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(DB_DIR, 'ledger.db')}")

# --- Money ---
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "TRY")
CURRENCIES = ["TRY", "USD", "EUR"]

# --- Fuel detection ---
# Substrings that mark an expense category as fuel when the category has no explicit flag.
FUEL_CATEGORY_TOKENS = _env_list("FUEL_CATEGORY_TOKENS", "fuel,yakıt")
FUEL_NAME_FALLBACK = _env_truthy("FUEL_NAME_FALLBACK", "1")

# --- Reports / listings ---
REPORT_WINDOW = int(os.getenv("REPORT_WINDOW", "1000"))
PAGE_SIZE = int(os.getenv("PAGE_SIZE", "5"))

# --- App ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SEED_ON_STARTUP = _env_truthy("SEED_ON_STARTUP", "1")
