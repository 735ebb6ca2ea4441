from pydantic_settings import BaseSettings
from pydantic import ConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str
    SECRET_KEY: str = ""
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_TTL_MINUTES: int = 60
    REVOCATION_PRUNE_INTERVAL_SECONDS: int = 300
    PRUNE_ON_REVOKE: bool = True
    REQUIRE_CONFIRMED_EMAIL: bool = True
    PASSWORD_MIN_LENGTH: int = 6
    PASSWORD_MAX_LENGTH: int = 128
    CONFIRMATION_TOKEN_TTL_HOURS: int = 24
    ADMIN_API_KEY: str = ""

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore"
    )


settings = Settings()
