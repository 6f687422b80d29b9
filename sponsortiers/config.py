"""Application configuration and environment settings"""
from typing import Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class R2Settings(BaseModel):
    """R2 (S3-compatible) storage settings"""
    account_id: str = Field(..., description="Cloudflare account ID")
    access_key_id: str = Field(..., description="R2 access key ID")
    secret_access_key: str = Field(..., description="R2 secret access key")
    bucket: str = Field(..., description="Bucket receiving the generated files")

    @property
    def endpoint_url(self) -> str:
        return f"https://{self.account_id}.r2.cloudflarestorage.com"

class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    # GitHub settings
    GITHUB_TOKEN: Optional[str] = Field(None, description="GitHub token used for profile enrichment")
    GITHUB_API_URL: str = Field("https://api.github.com", description="GitHub REST API base URL")

    # Enrichment settings
    OFFLINE: bool = Field(False, description="Skip every network lookup (profiles, exchange rate)")
    ENRICHMENT_TIMEOUT_SECONDS: float = Field(5.0, description="Timeout for a single profile lookup")
    ENRICHMENT_DELAY_SECONDS: float = Field(0.1, description="Delay between profile lookups")
    ENRICHMENT_MAX_ATTEMPTS: int = Field(2, description="Attempts per profile lookup; only connection errors and 5xx are retried")

    # Exchange rate settings
    EXCHANGE_RATE_URL: str = Field("https://api.exchangerate-api.com/v4/latest/USD", description="USD rates endpoint")
    EXCHANGE_CURRENCY: str = Field("INR", description="Currency shown next to USD in the overview")
    FALLBACK_EXCHANGE_RATE: float = Field(83.5, description="Rate used when the lookup fails")

    # Output policy
    ALWAYS_SHOW_LIFETIME: bool = Field(False, description="Include lifetime amounts for single-transaction sponsors")

    # R2 credentials
    R2_ACCOUNT_ID: Optional[str] = Field(None, description="Cloudflare account ID")
    R2_ACCESS_KEY_ID: Optional[str] = Field(None, description="R2 access key ID")
    R2_SECRET_ACCESS_KEY: Optional[str] = Field(None, description="R2 secret access key")
    R2_BUCKET: str = Field("sponsors", description="R2 bucket name")

    # Input/Output locations with defaults
    EXPORT_FILE: str = Field("sponsorships-all-time.json", description="GitHub sponsorship export")
    OUTPUT_DIR: str = Field("generated", description="Directory for generated files")

    @property
    def r2_settings(self) -> Optional[R2Settings]:
        """Get R2 settings as a separate model, or None when credentials are missing"""
        if not (self.R2_ACCOUNT_ID and self.R2_ACCESS_KEY_ID and self.R2_SECRET_ACCESS_KEY):
            return None
        return R2Settings(
            account_id=self.R2_ACCOUNT_ID,
            access_key_id=self.R2_ACCESS_KEY_ID,
            secret_access_key=self.R2_SECRET_ACCESS_KEY,
            bucket=self.R2_BUCKET
        )

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True
    )

settings = Settings()
