"""
Application Configuration
Uses Pydantic Settings for environment-based configuration
"""

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "Channel Accounts API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")
    DEBUG: bool = Field(default=False)
    API_V1_STR: str = "/api/v1"

    # Tokens - access and refresh tokens are signed with independent secrets
    ACCESS_TOKEN_SECRET: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_SECRET: str
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10
    ALGORITHM: str = "HS256"

    # Auth cookies
    COOKIE_SECURE: bool = True
    COOKIE_SAMESITE: str = Field(default="lax", pattern="^(lax|strict|none)$")

    # CORS
    # Allow str because it can be a comma-separated string in .env
    CORS_ORIGINS: str | list[str] = Field(
        default=["http://localhost:5173", "http://localhost:8000"]
    )

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./channel_accounts.db"
    DB_ECHO: bool = False
    # Abort startup when the database is unreachable instead of running degraded
    DB_FAIL_FAST: bool = False

    # Media host (Cloudinary)
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    CLOUDINARY_UPLOAD_URL: str = "https://api.cloudinary.com/v1_1"
    MEDIA_UPLOAD_TIMEOUT: float = 30.0

    # Uploads staged on local disk before being pushed to the media host
    UPLOAD_TEMP_DIR: str = "./public/temp"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @model_validator(mode="after")
    def check_token_secrets(self) -> "Settings":
        """Access and refresh tokens must not share a signing secret"""
        if self.ACCESS_TOKEN_SECRET == self.REFRESH_TOKEN_SECRET:
            raise ValueError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ")
        return self


# Create global settings instance

load_dotenv()
settings = Settings()  # type: ignore[call-arg]


class CookieName:
    """Names of the authentication cookies"""

    ACCESS_TOKEN = "accessToken"
    REFRESH_TOKEN = "refreshToken"


class TokenType:
    """Values of the ``type`` claim carried by every JWT"""

    ACCESS = "access"
    REFRESH = "refresh"
