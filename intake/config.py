import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Debounce / quiet periods (seconds)
VALIDATION_DEBOUNCE_SECONDS = float(os.getenv("VALIDATION_DEBOUNCE_SECONDS", "0.3"))
AUTOSAVE_QUIET_SECONDS = float(os.getenv("AUTOSAVE_QUIET_SECONDS", "2.0"))

# Postal code lookup (ViaCEP-compatible)
POSTAL_LOOKUP_BASE_URL = os.getenv("POSTAL_LOOKUP_BASE_URL", "https://viacep.com.br/ws").rstrip("/")
POSTAL_LOOKUP_TIMEOUT_SECONDS = float(os.getenv("POSTAL_LOOKUP_TIMEOUT_SECONDS", "10.0"))

# Profile persistence service
PROFILE_SERVICE_URL = os.getenv("PROFILE_SERVICE_URL", "http://localhost:8080").rstrip("/")
PROFILE_SERVICE_TIMEOUT_SECONDS = float(os.getenv("PROFILE_SERVICE_TIMEOUT_SECONDS", "15.0"))

# Autosave snapshots
SNAPSHOT_KEY_PREFIX = os.getenv("SNAPSHOT_KEY_PREFIX", "intake_form")
SNAPSHOT_TTL_SECONDS = int(os.getenv("SNAPSHOT_TTL_SECONDS", str(30 * 24 * 3600)))

# Extra CPF values to reject on top of the built-in blocklist (comma separated digits)
CPF_BLOCKLIST_EXTRA = {
    value.strip() for value in os.getenv("CPF_BLOCKLIST_EXTRA", "").split(",") if value.strip()
}

# Redis connection (snapshot store)
REDIS_URL = os.getenv("REDIS_URL")
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD")
REDIS_DB = int(os.getenv("REDIS_DB", "0"))
REDIS_SSL = os.getenv("REDIS_SSL", "false").lower() == "true"
