import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "backoffice_tasks_test"),
}

BUSINESS_TIMEZONE = "Asia/Ho_Chi_Minh"

# Defaults to the schema.sql shipped inside backoffice_tasks.database
SCHEMA_PATH = os.getenv("SCHEMA_PATH") or None
LOG_LEVEL = "WARNING"

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
