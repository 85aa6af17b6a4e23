import os
from pathlib import Path
from dotenv import load_dotenv
from typing import List, Optional

load_dotenv()


def _as_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.lower() in ("true", "1", "t", "yes")


class Env:
    """Singleton that reads environment variables exactly once."""

    _instance: Optional["Env"] = None

    def __new__(cls) -> "Env":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_env()
        return cls._instance

    def _load_env(self) -> None:
        # Data directories
        data_dir = os.getenv("VOICENOTE_DATA_DIR", None)
        if data_dir is None:
            self.DATA_DIR = Path(__file__).resolve().parent.parent
        else:
            self.DATA_DIR = Path(data_dir)
        self.UPLOADS_DIR = self.DATA_DIR / "uploads"
        self.TEMP_DIR = self.DATA_DIR / "temp"

        self.UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
        self.TEMP_DIR.mkdir(parents=True, exist_ok=True)

        # Server settings
        self.PORT = int(os.getenv("PORT", 5000))
        self.HOST = os.getenv("HOST", "0.0.0.0")
        self.DEBUG = _as_bool(os.getenv("DEBUG"))
        self.ALLOWED_ORIGINS: List[str] = [
            origin.strip()
            for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",")
            if origin.strip()
        ]

        # Upload limits
        self.MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", 50 * 1024 * 1024))
        self.CHUNK_SIZE = 1024 * 1024  # 1 MB

        # Storage backends
        self.STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory").lower()
        self.SEED_DEMO_DATA = _as_bool(os.getenv("SEED_DEMO_DATA"), default=True)
        self.AUDIO_STORE = os.getenv("AUDIO_STORE", "local").lower()

        # Supabase settings (only for STORAGE_BACKEND=supabase)
        self.SUPABASE_URL = os.getenv("SUPABASE_URL")
        self.SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        if self.STORAGE_BACKEND == "supabase":
            if not self.SUPABASE_URL:
                raise ValueError(
                    "SUPABASE_URL is not set. Check your .env file."
                )
            if not self.SUPABASE_SERVICE_KEY:
                raise ValueError(
                    "SUPABASE_SERVICE_ROLE_KEY is not set. Check your .env file."
                )

        # S3 settings (only for AUDIO_STORE=s3)
        self.S3_REGION = os.getenv("S3_REGION")
        self.S3_ACCESS_KEY = os.getenv("S3_ACCESS_KEY_ID")
        self.S3_SECRET_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")
        self.S3_BUCKET_NAME = os.getenv("S3_BUCKET_NAME")
        self.S3_PREFIX = os.getenv("S3_PREFIX", "audio/")

        # OpenAI API settings
        self.OPENAI_API_STT_MODEL = os.getenv("OPENAI_API_STT_MODEL", "whisper-1")
        self.OPENAI_API_NOTE_MODEL = os.getenv("OPENAI_API_NOTE_MODEL", "gpt-4o-mini")
        self.OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", 60))

        # Retention sweep, 0 disables
        self.RETENTION_SWEEP_INTERVAL = int(os.getenv("RETENTION_SWEEP_INTERVAL", 0))


env = Env()


# ============ Module-level aliases kept for backwards compatibility ============
DATA_DIR = env.DATA_DIR
UPLOADS_DIR = env.UPLOADS_DIR
TEMP_DIR = env.TEMP_DIR

PORT = env.PORT
HOST = env.HOST
DEBUG = env.DEBUG
ALLOWED_ORIGINS = env.ALLOWED_ORIGINS

MAX_UPLOAD_SIZE = env.MAX_UPLOAD_SIZE
CHUNK_SIZE = env.CHUNK_SIZE

STORAGE_BACKEND = env.STORAGE_BACKEND
SEED_DEMO_DATA = env.SEED_DEMO_DATA
AUDIO_STORE = env.AUDIO_STORE

SUPABASE_URL = env.SUPABASE_URL
SUPABASE_SERVICE_KEY = env.SUPABASE_SERVICE_KEY

S3_REGION = env.S3_REGION
S3_ACCESS_KEY = env.S3_ACCESS_KEY
S3_SECRET_KEY = env.S3_SECRET_KEY
S3_BUCKET_NAME = env.S3_BUCKET_NAME
S3_PREFIX = env.S3_PREFIX

OPENAI_API_STT_MODEL = env.OPENAI_API_STT_MODEL
OPENAI_API_NOTE_MODEL = env.OPENAI_API_NOTE_MODEL
OPENAI_TIMEOUT = env.OPENAI_TIMEOUT

RETENTION_SWEEP_INTERVAL = env.RETENTION_SWEEP_INTERVAL

ALLOWED_AUDIO_PREFIX = "audio/"

note_system_prompt = """
You are an expert note-taking assistant. You turn raw voice memo transcriptions into clean, readable notes.
Rules:
1. Never add facts, opinions or details that are not in the transcription.
2. Never drop facts that are in the transcription.
3. Write the note and the title in the requested output language.
4. Always respond with valid JSON.
"""
