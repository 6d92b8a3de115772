"""
Configuration management for the Identity Service
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Optional

DEFAULT_JWT_SECRET = "change-this-secret-in-prod"


class Settings(BaseSettings):
    """Identity Service configuration loaded from environment variables"""

    # Server Configuration
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/auth"

    # Session Tokens
    JWT_SECRET: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Credentials
    BCRYPT_ROUNDS: int = 10
    DEFAULT_DISPLAY_NAME: str = "New User"

    # Credential Store
    CREDENTIAL_STORE: Literal["dynamodb", "sql"] = "dynamodb"
    AWS_REGION: str = "us-east-1"
    USERS_TABLE: str = "Users"
    DYNAMODB_ENDPOINT_URL: Optional[str] = None
    STORE_CONNECT_TIMEOUT_SECONDS: float = 3.0
    STORE_READ_TIMEOUT_SECONDS: float = 5.0
    DATABASE_URL: str = "sqlite:///./credentials.db"

    # Apple Sign-In
    APPLE_CLIENT_ID: str = "com.yourcompany.yourapp"
    APPLE_ISSUER: str = "https://appleid.apple.com"
    APPLE_KEYS_URL: str = "https://appleid.apple.com/auth/keys"
    APPLE_VERIFY_TIMEOUT_SECONDS: int = 5

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @property
    def uses_default_secret(self) -> bool:
        return self.JWT_SECRET == DEFAULT_JWT_SECRET
