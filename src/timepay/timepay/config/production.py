import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
JWT_SECRET = os.getenv("JWT_SECRET", "please-set-JWT_SECRET")
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timepay"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

COMPANY_NAME = os.getenv("COMPANY_NAME", "TimePay")
DEFAULT_OPENING_TIME = os.getenv("DEFAULT_OPENING_TIME", "09:00")
DEFAULT_CLOSING_TIME = os.getenv("DEFAULT_CLOSING_TIME", "18:00")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@timepay.local")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "please-set-ADMIN_PASSWORD")
