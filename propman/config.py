from pydantic_settings import BaseSettings
from pydantic import field_validator
from functools import lru_cache
import json

from dateutil import tz


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str

    # Database Connection Pool Settings
    DB_POOL_SIZE: int = 10  # Base number of connections in pool
    DB_MAX_OVERFLOW: int = 20  # Extra connections allowed beyond pool_size
    DB_POOL_TIMEOUT: int = 30  # Seconds to wait for connection from pool
    DB_POOL_RECYCLE: int = 1800  # Recycle connections after 30 minutes

    # JWT Settings (tokens are issued by the auth service, verified here)
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # App Settings
    APP_NAME: str = "Property Billing Backend"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # CORS - accepts JSON string, comma-separated, or list
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Recurring billing scheduler
    BILLING_SCHEDULER_ENABLED: bool = True
    BILLING_JOB_HOUR: int = 0  # Daily run time (scheduler timezone)
    BILLING_JOB_MINUTE: int = 5
    SCHEDULER_TIMEZONE: str = "Asia/Ho_Chi_Minh"

    # Overdue extension
    BILL_EXTENSION_DAYS: int = 5  # Days added to due date when re-opening an overdue bill

    # Roles allowed to trigger billing scripts and extend bills
    BILLING_ROLES: list[str] = ["owner", "manager"]

    @field_validator('CORS_ORIGINS', 'BILLING_ROLES', mode='before')
    @classmethod
    def parse_string_list(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [item.strip() for item in v.split(',') if item.strip()]
        return v

    @field_validator('SCHEDULER_TIMEZONE')
    @classmethod
    def validate_timezone(cls, v):
        if tz.gettz(v) is None:
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @property
    def billing_tz(self):
        """Timezone whose calendar dates drive due dates and billing periods."""
        return tz.gettz(self.SCHEDULER_TIMEZONE)

    @property
    def cors_origins_list(self) -> list[str]:
        return self.CORS_ORIGINS

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
