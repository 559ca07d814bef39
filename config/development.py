import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

# "mysql" or "memory"
STORE_BACKEND = os.getenv("STORE_BACKEND", "mysql")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "fire_muster"),
}

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also insert the demo roster on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

SESSION_PAGE_SIZE = int(os.getenv("SESSION_PAGE_SIZE", "50"))
SSE_KEEPALIVE_SECONDS = float(os.getenv("SSE_KEEPALIVE_SECONDS", "15"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_FILE = os.getenv("LOG_FILE") or None
