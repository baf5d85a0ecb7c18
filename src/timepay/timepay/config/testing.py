import os

SECRET_KEY = "test-secret"
JWT_SECRET = "test-jwt-secret"
JWT_EXPIRES_DAYS = 7

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timepay_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

COMPANY_NAME = "TimePay"
DEFAULT_OPENING_TIME = "09:00"
DEFAULT_CLOSING_TIME = "18:00"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

ADMIN_EMAIL = "admin@timepay.test"
ADMIN_PASSWORD = "admin123"
