import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

STORE_BACKEND = os.getenv("STORE_BACKEND", "mysql")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "fire_muster"),
}

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

SESSION_PAGE_SIZE = int(os.getenv("SESSION_PAGE_SIZE", "50"))
SSE_KEEPALIVE_SECONDS = float(os.getenv("SSE_KEEPALIVE_SECONDS", "15"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "fire_muster.log")
