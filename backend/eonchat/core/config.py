from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    DATABASE_URL: str = Field(..., description="Database connection string")
    SECRET_KEY: str = Field(default="your-secret-key-change-this-in-production", description="JWT secret key")
    ALGORITHM: str = Field(default="HS256", description="Algorithm for JWT (e.g., HS256)")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=1440, description="How long (in minutes) an access token is valid (default 1 day)")
    OTP_EXPIRE_MINUTES: int = Field(default=5, description="How long (in minutes) an emailed verification code stays valid")
    BREVO_API_KEY: str = Field(default="", description="API key for the Brevo transactional email API")
    BREVO_API_URL: str = Field(default="https://api.brevo.com/v3/smtp/email", description="Brevo send endpoint")
    SMTP_FROM: str = Field(default="no-reply@eonchat.local", description="Sender address for outgoing email")
    EMAIL_TIMEOUT_SECONDS: float = Field(default=30.0, description="Timeout for the email API call")
    CLIENT_URLS: List[str] = Field(default=["http://localhost:3000"], description="Origins allowed by CORS")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
