import os
import logging
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[2]

DEFAULT_CORS_ORIGINS = [
    "http://127.0.0.1:5173",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://localhost:3000",
]


@dataclass(frozen=True)
class Settings:
    db_path: Path
    upload_dir: Path
    data_dir: Path
    max_upload_bytes: int
    cors_origins: list


def load_env():
    """Load environment variables from .env at project root."""
    dotenv_path = BASE_DIR / ".env"

    if dotenv_path.exists():
        load_dotenv(dotenv_path)
        logging.info(f"✅ Loaded .env file from: {dotenv_path}")
    else:
        logging.info(f".env file not found at: {dotenv_path}, using process environment")


def get_settings() -> Settings:
    """
    Read settings from the environment at call time.
    Tests point WATER_DB_PATH at a temporary file, so nothing here is cached.
    """
    max_mb = os.getenv("WATER_MAX_UPLOAD_MB", "10")
    try:
        max_upload_bytes = int(float(max_mb) * 1024 * 1024)
    except ValueError:
        raise EnvironmentError(f"❌ WATER_MAX_UPLOAD_MB must be a number, got {max_mb!r}")

    origins = os.getenv("WATER_CORS_ORIGINS")
    cors_origins = (
        [o.strip() for o in origins.split(",") if o.strip()] if origins else DEFAULT_CORS_ORIGINS
    )

    return Settings(
        db_path=Path(os.getenv("WATER_DB_PATH", BASE_DIR / "data" / "water_dashboard.duckdb")),
        upload_dir=Path(os.getenv("WATER_UPLOAD_DIR", BASE_DIR / "uploads")),
        data_dir=Path(os.getenv("WATER_DATA_DIR", BASE_DIR / "data" / "incoming")),
        max_upload_bytes=max_upload_bytes,
        cors_origins=cors_origins,
    )
