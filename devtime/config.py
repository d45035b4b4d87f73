import os

DB_PATH = os.environ.get("DB_PATH", "/app/data/devtime.db")
TZ_NAME = os.environ.get("TZ", "UTC")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
SESSION_USER_HEADER = os.environ.get("SESSION_USER_HEADER", "X-User-Id")
DASHBOARD_WINDOW_DAYS = int(os.environ.get("DASHBOARD_WINDOW_DAYS", "30"))
UNKNOWN_PROJECT_NAME = os.environ.get("UNKNOWN_PROJECT_NAME", "Unknown Project")
