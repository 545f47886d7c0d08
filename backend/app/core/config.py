from pydantic_settings import BaseSettings
from typing import List, Dict, Any
import json


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


def parse_staff_accounts(v: Any) -> Dict[str, Dict[str, str]]:
    """
    Parse the staff credential table.

    Accepts a dict or a JSON object string of the form
    {"<secret>": {"role": "...", "label": "...", "color": "#..."}}
    """
    if isinstance(v, dict):
        return v
    if not v or not isinstance(v, str):
        return {}
    try:
        parsed = json.loads(v)
    except json.JSONDecodeError:
        return {}
    if not isinstance(parsed, dict):
        return {}
    return {
        str(secret): entry
        for secret, entry in parsed.items()
        if isinstance(entry, dict) and entry.get("role") and entry.get("label")
    }


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "InnoVoice"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    API_PREFIX: str = "/api"

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./innovoice.db"
    DB_ECHO: bool = False

    # ==========================================
    # CORS
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:5173,http://localhost:3000"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Staff Access
    # ==========================================
    # JSON object: secret -> {role, label, color}
    STAFF_ACCOUNTS: str = "{}"
    PRIVILEGED_ROLE: str = "developer"
    PRESENCE_WINDOW_SECONDS: int = 35

    @property
    def STAFF_ACCOUNT_MAP(self) -> Dict[str, Dict[str, str]]:
        return parse_staff_accounts(self.STAFF_ACCOUNTS)

    # ==========================================
    # Suggestions
    # ==========================================
    TRACKING_CODE_PREFIX: str = "VISI"
    SUGGESTIONS_DEFAULT_PAGE_SIZE: int = 20
    SUGGESTIONS_MAX_PAGE_SIZE: int = 100
    ACTIVITY_LOGS_DEFAULT_PAGE_SIZE: int = 50
    ACTIVITY_LOGS_MAX_PAGE_SIZE: int = 200

    # ==========================================
    # Priority Classifier (Claude)
    # ==========================================
    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_BASE_URL: str = ""  # Empty means use default Anthropic URL
    CLASSIFIER_MODEL: str = "claude-3-5-haiku-20241022"
    CLASSIFIER_MAX_TOKENS: int = 200
    CLASSIFIER_TEMPERATURE: float = 0.3
    CLASSIFIER_TIMEOUT_SECONDS: float = 15.0
    CLAUDE_CONNECT_TIMEOUT: int = 10  # seconds
    CLAUDE_MAX_RETRIES: int = 2
    CLAUDE_RETRY_BASE_DELAY: float = 0.5  # seconds
    CLAUDE_RETRY_MAX_DELAY: float = 4.0  # seconds

    # ==========================================
    # Image Storage (S3 / MinIO)
    # ==========================================
    STORAGE_MODE: str = "none"  # none | s3 | minio
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "ap-southeast-1"
    S3_BUCKET_NAME: str = "innovoice-media"
    MINIO_ENDPOINT: str = "localhost:9000"
    MINIO_SECURE: bool = False
    PUBLIC_MEDIA_BASE_URL: str = ""  # e.g. CDN in front of the bucket
    IMAGE_FOLDER: str = "ssg-innovoice"
    MAX_IMAGE_BYTES: int = 4 * 1024 * 1024
    UPLOAD_TIMEOUT_SECONDS: float = 20.0

    # ==========================================
    # Rate Limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 120
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    STAFF_VERIFY_RATE_LIMIT: str = "10/15 minutes"
    SUBMISSION_RATE_LIMIT: str = "20/hour"

    # ==========================================
    # Request Limits
    # ==========================================
    MAX_REQUEST_BYTES: int = 5 * 1024 * 1024

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
