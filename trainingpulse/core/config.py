"""Configuration management for TrainingPulse."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # Environment
    TRAININGPULSE_ENV: str = Field(default="dev", description="Environment: dev, staging, prod, test")

    # API surface
    API_BASE_URL: str = Field(default="http://localhost:3001", description="Base URL of the API")
    API_VERSION: str = Field(default="v1", description="API version segment")
    REQUEST_TIMEOUT_SECONDS: float = Field(default=10.0, description="Fixed HTTP client timeout")

    # Internal tools
    ADMIN_API_KEY: str | None = Field(default=None, description="Key accepted in X-API-Key")

    # Feature flags
    ENABLE_ANALYTICS: bool = Field(default=True, description="Mount analytics routes")
    ENABLE_BULK_OPERATIONS: bool = Field(default=True, description="Mount bulk operation routes")
    ENABLE_NOTIFICATIONS: bool = Field(default=True, description="Mount notification routes")
    ENABLE_WORKFLOWS: bool = Field(default=True, description="Mount workflow routes")

    # Upload limits
    MAX_UPLOAD_BYTES: int = Field(default=10_485_760, description="Max file upload size in bytes")
    ALLOWED_UPLOAD_TYPES: str = Field(
        default="pdf,doc,docx,ppt,pptx,xls,xlsx,png,jpg,jpeg,mp4,zip",
        description="Comma-separated list of allowed upload extensions",
    )

    # Client behaviour
    STATUS_AUTOSAVE_DEBOUNCE_MS: int = Field(
        default=300, description="Debounce before a phase status change is persisted"
    )
    CLIENT_STATE_PATH: str = Field(
        default="~/.trainingpulse/state.json",
        description="File holding client tokens and UI preferences",
    )

    @property
    def api_prefix(self) -> str:
        """Path prefix of the versioned API."""
        return f"/api/{self.API_VERSION}"

    @property
    def api_root(self) -> str:
        """Absolute URL of the versioned API."""
        return f"{self.API_BASE_URL.rstrip('/')}{self.api_prefix}"

    @property
    def allowed_upload_types(self) -> list[str]:
        return [t.strip().lower() for t in self.ALLOWED_UPLOAD_TYPES.split(",") if t.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
