from config.base import SESSION_DAYS, db_config  # noqa: F401

SECRET_KEY = "test-secret"
DB_CONFIG = db_config("remote_work_test")

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

# fixed so tests do not depend on the shell environment
WEEKLY_REMOTE_LIMIT = 3
SPECIAL_CUTOFF_HOUR = 18

AUTO_INIT_DB = False
AUTO_SEED_DB = False
