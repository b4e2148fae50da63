"""Settings every environment shares; environment modules override what differs."""

import os


def env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


def env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def db_config(default_database: str) -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": env_int("DB_PORT", 3306),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", ""),
        "database": os.getenv("DB_NAME", default_database),
    }


# Remote work rules
WEEKLY_REMOTE_LIMIT = env_int("WEEKLY_REMOTE_LIMIT", 3)
SPECIAL_CUTOFF_HOUR = env_int("SPECIAL_CUTOFF_HOUR", 18)

SESSION_DAYS = env_int("SESSION_DAYS", 7)
