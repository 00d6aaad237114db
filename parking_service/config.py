import os


def _flag(name: str) -> bool:
    return (os.getenv(name) or "").strip().lower() in ("1", "true", "yes", "on")


SERVICE_NAME = "parking-service"

STORE_BACKEND = (os.getenv("STORE_BACKEND") or "memory").strip().lower()
DATABASE_URL = os.getenv("PARKING_DB")
DB_CREATE_ALL = _flag("PARKING_DB_CREATE_ALL")
DB_ECHO = _flag("PARKING_DB_ECHO")

REDIS_URL = os.getenv("REDIS_URL")  # optional; switches location locks to redis
LOCK_TIMEOUT_SECONDS = float(os.getenv("LOCK_TIMEOUT_SECONDS") or "10")
LOCK_WAIT_SECONDS = float(os.getenv("LOCK_WAIT_SECONDS") or "5")

RABBIT_URL = os.getenv("RABBIT_URL")  # optional in dev, required if you want events

SEED_DEMO_DATA = _flag("SEED_DEMO_DATA")

LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").upper()
