"""
Application configuration settings.
Loads from .env file first (overrides shell env for local dev), then pydantic reads from environment.
Production: set env vars in the platform (Docker, K8s, etc.); .env is optional.

All backend-related configs and constants are centralized here.
"""
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env path: tailorcv/.env (absolute path, works regardless of cwd)
_BASE_DIR = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = (_BASE_DIR / ".env").resolve()

# Load .env into environment BEFORE pydantic reads. override=True ensures .env
# values override any shell env.
# When .env doesn't exist (prod), this is a no-op; platform env vars are used.
if _ENV_FILE.exists():
    load_dotenv(_ENV_FILE, override=True)


class Settings(BaseSettings):
    """Application settings. Source: env vars (after dotenv load)."""

    # App
    app_name: str = "TailorCV"
    app_version: str = "1.0.0"
    port: int = 8001

    # Database
    database_url: str = "sqlite:///./tailorcv.db"

    # Auth (tokens are issued by the identity provider, we only verify them)
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # Upload & storage
    upload_dir: str = "uploads/files"

    # Redis
    redis_url: str = ""
    usage_cache_ttl: int = 60

    # AWS S3
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "ap-southeast-1"
    aws_bucket_name: str = "tailorcv-files"
    s3_key_prefix: str = "resume-files"

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    openai_max_retries: int = 3
    openai_retry_delay: float = 1.0
    # per attempt; routes allow every retry of every model call they make
    openai_request_timeout: float = 60.0
    ai_route_overhead_seconds: float = 30.0

    # Extraction
    min_extracted_text_length: int = 20

    # Free tier limits
    free_max_resumes: int = 3
    free_max_ai_generations: int = 10

    # Autosave
    autosave_debounce_seconds: float = 2.0

    # Session-scoped job description drafts
    job_description_draft_ttl: int = 3600

    # Razorpay payment gateway
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    razorpay_plan_id: str = ""
    razorpay_webhook_secret: str = ""
    razorpay_subscription_total_count: int = 12

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def ai_route_timeout(self, model_calls: int = 1) -> float:
        """Wall-clock budget for a route making `model_calls` sequential model calls."""
        attempts = max(1, self.openai_max_retries)
        backoff = sum(self.openai_retry_delay * 2 ** i for i in range(attempts - 1))
        per_call = attempts * self.openai_request_timeout + backoff
        return model_calls * per_call + self.ai_route_overhead_seconds


settings = Settings()


# --- Constants (non-env, business config) ---

PLAN_FREE: str = "free"
PLAN_PREMIUM: str = "premium"

# Document extraction
MIME_PDF: str = "application/pdf"
MIME_PNG: str = "image/png"
MIME_JPEG: str = "image/jpeg"
MIME_DOCX: str = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
EXTRACTABLE_MIME_TYPES: frozenset[str] = frozenset({MIME_PDF, MIME_PNG, MIME_JPEG})
CV_UPLOAD_MIME_TYPES: frozenset[str] = EXTRACTABLE_MIME_TYPES | {MIME_DOCX}

# Photos
PHOTO_MIME_TYPES: frozenset[str] = frozenset({"image/jpeg", "image/png", "image/webp", "image/gif"})
PHOTO_MAX_BYTES: int = 5 * 1024 * 1024
PHOTO_SIZE_PX: int = 200
PHOTO_JPEG_QUALITY: int = 90

# Resume defaults
DEFAULT_COLOR_HEX: str = "#000000"
DEFAULT_BORDER_STYLE: str = "squircle"
DEFAULT_TEMPLATE: str = "classic"
