import os

SECRET_KEY = "test-secret"

STORE_BACKEND = "memory"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "fire_muster_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
AUTO_SEED_DB = False

SESSION_PAGE_SIZE = 50
SSE_KEEPALIVE_SECONDS = 0.05

LOG_LEVEL = "WARNING"
LOG_FILE = None
