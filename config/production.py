import os

from config.base import SESSION_DAYS, SPECIAL_CUTOFF_HOUR, WEEKLY_REMOTE_LIMIT, db_config, env_bool  # noqa: F401

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
DB_CONFIG = db_config("remote_work_db")

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = env_bool("AUTO_INIT_DB", False)
AUTO_SEED_DB = env_bool("AUTO_SEED_DB", False)
