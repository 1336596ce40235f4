from pydantic_settings import BaseSettings
from pydantic import field_validator
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


def parse_task_links(v: str) -> Dict[str, str]:
    """Parse task links from JSON object or 'Domain=url;Domain=url' format"""
    if not v:
        return {}
    v = v.strip()
    if v.startswith('{'):
        try:
            return json.loads(v)
        except json.JSONDecodeError:
            return {}
    links = {}
    for item in v.split(';'):
        if '=' in item:
            domain, url = item.split('=', 1)
            links[domain.strip()] = url.strip()
    return links


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "InternDesk"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    API_VERSION: str = "v1"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # Absolute base URL embedded in QR codes, emails and download links
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes

    # ==========================================
    # Storage Configuration (S3 / MinIO)
    # ==========================================
    USE_MINIO: bool = True
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "us-east-1"
    S3_BUCKET_NAME: str = ""
    S3_BUCKET: str = ""  # Alias for S3_BUCKET_NAME
    MINIO_ENDPOINT: str = "localhost:9000"
    STORAGE_PUBLIC_BASE_URL: str = ""  # e.g. CDN in front of the bucket
    STORAGE_MAX_RETRIES: int = 3
    OFFER_LETTER_FOLDER: str = "internship-offer-letters"
    CERTIFICATE_FOLDER: str = "internship-certificates"

    @property
    def effective_bucket_name(self) -> str:
        """Get the effective S3 bucket name (supports both S3_BUCKET and S3_BUCKET_NAME)"""
        return self.S3_BUCKET or self.S3_BUCKET_NAME or "interndesk-documents"

    # ==========================================
    # Email
    # ==========================================
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    EMAIL_FROM: str = "noreply@jamunafoundation.com"
    EMAIL_FROM_NAME: str = "Jamuna Foundation"

    # SendGrid Configuration (preferred when an API key is present)
    SENDGRID_API_KEY: str = ""
    USE_SENDGRID: bool = True

    # ==========================================
    # Third-party form builder (Wix)
    # ==========================================
    WIX_API_KEY: str = ""
    WIX_SITE_ID: str = ""
    WIX_API_BASE_URL: str = "https://www.wixapis.com/form-submission-service/v4"
    WIX_API_TIMEOUT: float = 10.0

    # ==========================================
    # Access gate
    # ==========================================
    PROTECTED_PASSCODE: str = ""
    PASSCODE_COOKIE_NAME: str = "access_passcode"
    PASSCODE_COOKIE_MAX_AGE: int = 60 * 60 * 24  # 24 hours

    # ==========================================
    # Documents
    # ==========================================
    ORGANIZATION_NAME: str = "Jamuna Foundation"
    ORGANIZATION_WEBSITE: str = "www.jamunafoundation.com"
    ORGANIZATION_EMAIL: str = "contact@jamunafoundation.com"
    SIGNATORY_TITLE: str = "President"
    INTERNSHIP_DURATION_LABEL: str = "4 weeks"

    # "billing_cycle" (15th / 1st of next month) or "simple" (+7 days, 4 weeks)
    OFFER_PERIOD_RULE: str = "billing_cycle"

    # Image assets, resolved against ASSET_BASE_URL when relative
    ASSET_BASE_URL: str = ""
    OFFER_LOGO_PATH: str = "/images/logo.png"
    OFFER_SIGNATURE_PATH: str = "/images/signature.jpg"
    OFFER_WATERMARK_PATH: str = "/images/watermark.jpg"
    OFFER_STAMP_PATH: str = "/images/stamp.png"
    CERTIFICATE_LOGO_PATH: str = "/images/certificate-logo.png"
    CERTIFICATE_SIGNATURE_PATH: str = "/images/signature.png"
    CERTIFICATE_BADGE_PATHS_STR: str = "/images/iso-logo.png,/images/gov-india-logo.png,/images/msme-logo.png"
    CERTIFICATE_TEMPLATE_URL: str = ""  # Optional full-page background; fatal if set but missing

    QR_API_URL: str = "https://api.qrserver.com/v1/create-qr-code/"
    QR_SIZE_PX: int = 150
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Domain -> task brief link, JSON or "Domain=url;Domain=url"
    TASK_LINKS_STR: str = ""
    FALLBACK_TASK_LINK: str = "https://drive.google.com/drive/folders/1h4SHZvmquQKFmHlt4M5jdjQ6vJ5POSDN?usp=sharing"

    @property
    def CERTIFICATE_BADGE_PATHS(self) -> List[str]:
        return [p.strip() for p in self.CERTIFICATE_BADGE_PATHS_STR.split(',') if p.strip()]

    @property
    def TASK_LINKS(self) -> Dict[str, str]:
        return parse_task_links(self.TASK_LINKS_STR)

    @field_validator("OFFER_PERIOD_RULE")
    @classmethod
    def validate_period_rule(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("billing_cycle", "simple"):
            raise ValueError("OFFER_PERIOD_RULE must be 'billing_cycle' or 'simple'")
        return v

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    def is_dev_mode(self) -> bool:
        return self.ENVIRONMENT == "development"

    def public_url(self, path: str) -> str:
        """Build an absolute URL under PUBLIC_BASE_URL"""
        return f"{self.PUBLIC_BASE_URL.rstrip('/')}/{path.lstrip('/')}"


# Create settings instance
settings = Settings()
