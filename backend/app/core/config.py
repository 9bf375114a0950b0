# File: backend/app/core/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

from syntax.assets import BUNDLED_GRAMMARS_DIR, LANGUAGES_MANIFEST

# .env must be loaded before the first os.getenv below
load_dotenv()

APP_DIR = Path(__file__).resolve().parent.parent  # backend/app/
BACKEND_ROOT_DIR = APP_DIR.parent  # backend/

# --- Assets ---
GRAMMARS_DIR = Path(os.getenv("GRAMMARS_DIR", BUNDLED_GRAMMARS_DIR))
LANGUAGES_FILE = Path(os.getenv("LANGUAGES_FILE", GRAMMARS_DIR / LANGUAGES_MANIFEST))
# empty -> bundled Dark+
THEME_PATH = os.getenv("THEME_PATH", "")
THEME_TIE_BREAK = os.getenv("THEME_TIE_BREAK", "later")

# --- Tokenization limits ---
MAX_STEPS_PER_CHAR = int(os.getenv("MAX_STEPS_PER_CHAR", 64))
MAX_LINES_PER_REQUEST = int(os.getenv("MAX_LINES_PER_REQUEST", 20_000))

# --- CORS ---
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
