import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

IS_HF = os.environ.get("SPACE_ID") is not None


@dataclass(frozen=True)
class Settings:
    base_dir: str
    documents_db_url: str
    users_db_url: str
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    supabase_service_key: Optional[str]
    storage_bucket: str
    app_url: str
    gemini_api_key: Optional[str]
    gemini_model: str
    gemini_timeout: float
    max_upload_bytes: int
    cors_origins: List[str]
    phone_region: str
    log_level: str


def get_settings() -> Settings:
    """Read settings from the environment (and .env) at call time."""
    base_dir = os.getenv("BASE_DIR", "/tmp/data" if IS_HF else "data")
    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    return Settings(
        base_dir=base_dir,
        documents_db_url=os.getenv(
            "DOCUMENTS_DATABASE_URL", f"sqlite:///{os.path.join(base_dir, 'documents.db')}"
        ),
        users_db_url=os.getenv(
            "USERS_DATABASE_URL", f"sqlite:///{os.path.join(base_dir, 'users.db')}"
        ),
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        supabase_service_key=os.getenv("SUPABASE_SERVICE_KEY"),
        storage_bucket=os.getenv("STORAGE_BUCKET", "resumes"),
        app_url=os.getenv("APP_URL", "http://localhost:8000").rstrip("/"),
        gemini_api_key=os.getenv("GEMINI_API_KEY"),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
        gemini_timeout=float(os.getenv("GEMINI_TIMEOUT", "60")),
        max_upload_bytes=int(float(os.getenv("MAX_UPLOAD_MB", "10")) * 1024 * 1024),
        cors_origins=origins or ["*"],
        phone_region=os.getenv("PHONE_REGION", "US"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
