from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BOT_TOKEN = os.getenv("BOT_TOKEN", "")

DB_PATH = Path(os.getenv("DB_PATH", "data/onboarding.sqlite3"))

# бэкенд платформы (multipart POST настройки школы)
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000/api")
SCHOOL_SETUP_PATH = os.getenv("SCHOOL_SETUP_PATH", "/school/setup")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# лимит Bot API на скачивание файла - 20 MB
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(20 * 1024 * 1024)))
