import os
from dotenv import load_dotenv

# Load .env
load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_seconds(name: str, default: float) -> float:
    value = float(os.getenv(name, default))
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./chat.db")
SQL_ECHO = _env_bool("SQL_ECHO")

# Participants silent for longer than PRESENCE_TTL are evicted by the sweep
# that runs every PRESENCE_INTERVAL seconds.
PRESENCE_TTL = _env_seconds("PRESENCE_TTL", 10)
PRESENCE_INTERVAL = _env_seconds("PRESENCE_INTERVAL", 15)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5000"))
