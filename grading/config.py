import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.dirname(__file__))

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///" + os.path.join(BASE_DIR, "exams.db"))
UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(BASE_DIR, "uploads"))
UPLOAD_URL_PREFIX = "/uploads"

JOIN_CODE_LENGTH = int(os.getenv("JOIN_CODE_LENGTH", "6"))
JOIN_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

RESULT_COLUMNS = ["name", "email", "class", "correct", "total", "percent"]
