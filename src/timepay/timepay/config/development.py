import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
JWT_SECRET = os.getenv("JWT_SECRET", "dev-jwt-secret")
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timepay"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

COMPANY_NAME = os.getenv("COMPANY_NAME", "TimePay")

# Fallback work schedule for employees whose branch has none
DEFAULT_OPENING_TIME = os.getenv("DEFAULT_OPENING_TIME", "09:00")
DEFAULT_CLOSING_TIME = os.getenv("DEFAULT_CLOSING_TIME", "18:00")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed the default branch, leave policies and accounts on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# Administrator account created by the seed step
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@timepay.local")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
