import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def load_env() -> None:
    """Load .env from the working directory if present."""
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path)


@dataclass
class Settings:
    db_path: Path
    upload_dir: Path
    max_resume_bytes: int = 5 * 1024 * 1024
    host: str = "0.0.0.0"
    port: int = 3010
    log_level: str = "INFO"
    api_url: str = "http://localhost:3010"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise SystemExit(f"{name} must be an integer, got {raw!r}")


def get_settings() -> Settings:
    """
    Build settings from TALENTDESK_* environment variables.

    Call load_env() first to pick up values from .env.
    """
    return Settings(
        db_path=Path(os.getenv("TALENTDESK_DB_PATH", "data/talentdesk.db")),
        upload_dir=Path(os.getenv("TALENTDESK_UPLOAD_DIR", "uploads")),
        max_resume_bytes=_int_env("TALENTDESK_MAX_RESUME_BYTES", 5 * 1024 * 1024),
        host=os.getenv("TALENTDESK_HOST", "0.0.0.0"),
        port=_int_env("TALENTDESK_PORT", 3010),
        log_level=os.getenv("TALENTDESK_LOG_LEVEL", "INFO"),
        api_url=os.getenv("TALENTDESK_API_URL", "http://localhost:3010").rstrip("/"),
    )
