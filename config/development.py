import os

from config.base import SESSION_DAYS, SPECIAL_CUTOFF_HOUR, WEEKLY_REMOTE_LIMIT, db_config, env_bool  # noqa: F401

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
DB_CONFIG = db_config("remote_work_db")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# schema.sql is idempotent (CREATE ... IF NOT EXISTS), safe on every start
AUTO_INIT_DB = env_bool("AUTO_INIT_DB", True)
AUTO_SEED_DB = env_bool("AUTO_SEED_DB", False)
