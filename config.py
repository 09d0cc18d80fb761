"""draftdesk configuration."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".env")

# --- Paths ---
BASE_DIR = Path(__file__).parent
DATA_DIR = Path(os.getenv("DRAFTDESK_DATA_DIR", str(BASE_DIR / "data")))
DB_PATH = DATA_DIR / "draftdesk.db"
UPLOAD_DIR = DATA_DIR / "uploads"

# --- API ---
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8001"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# --- Storage ---
# "sqlite" persists articles in DB_PATH, "memory" keeps them for the process only
STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "sqlite")

# --- Generation ---
# "template" is an offline stand-in, "claude" shells out to the Claude Code CLI
GENERATOR_BACKEND: str = os.getenv("GENERATOR_BACKEND", "template")
GENERATOR_MODEL: str = os.getenv("GENERATOR_MODEL", "sonnet")
CLAUDE_CLI: str = os.getenv("CLAUDE_CLI", "claude")
GENERATION_TIMEOUT: float = float(os.getenv("GENERATION_TIMEOUT", "120"))
# Bounds units of work, not external calls: a timed-out call keeps running on
# its abandoned thread, so in-flight generator calls can briefly exceed this.
# The claude backend applies the same timeout to its subprocess.
GENERATION_MAX_WORKERS: int = int(os.getenv("GENERATION_MAX_WORKERS", "4"))
TEMPLATE_GENERATOR_DELAY: float = float(os.getenv("TEMPLATE_GENERATOR_DELAY", "2.0"))

# --- Additional context fetch ---
CONTEXT_FETCH_TIMEOUT: float = float(os.getenv("CONTEXT_FETCH_TIMEOUT", "15"))
CONTEXT_MAX_CHARS: int = int(os.getenv("CONTEXT_MAX_CHARS", "4000"))
