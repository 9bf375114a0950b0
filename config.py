# config.py
import os
from pathlib import Path

from dotenv import load_dotenv

# .env must be loaded before the os.getenv calls below
load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parent

# --- Assets ---
GRAMMARS_DIR = Path(os.getenv("GRAMMARS_DIR", PROJECT_ROOT / "syntax" / "grammars"))
LANGUAGES_FILE = Path(os.getenv("LANGUAGES_FILE", GRAMMARS_DIR / "languages.json"))
# empty -> bundled Dark+
THEME_PATH = os.getenv("THEME_PATH", "")
THEME_TIE_BREAK = os.getenv("THEME_TIE_BREAK", "later")

# --- Tokenization ---
PROPAGATION_CHUNK_LINES = int(os.getenv("PROPAGATION_CHUNK_LINES", 200))
PROPAGATION_INTERVAL_MS = int(os.getenv("PROPAGATION_INTERVAL_MS", 0))
MAX_STEPS_PER_CHAR = int(os.getenv("MAX_STEPS_PER_CHAR", 64))

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
# empty -> console only
LOG_DIR = os.getenv("LOG_DIR", "")
LOG_FILE_NAME = "textmate_bridge.log"
MAX_LOG_BYTES = 2_000_000
BACKUP_COUNT = 3

# --- QSettings ---
SETTINGS_ORG_NAME = os.getenv("SETTINGS_ORG_NAME", "TextMateBridge")
SETTINGS_APP_NAME = os.getenv("SETTINGS_APP_NAME", "BridgeEditor")
