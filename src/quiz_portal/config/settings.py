# File location: src/quiz_portal/config/settings.py
import os
import logging
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()


def _split_csv(value: Optional[str], default: List[str]) -> List[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    """Application configuration, read once from the environment."""

    app_name: str = "Quiz Portal"
    environment: str = "development"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./quiz_portal.db"
    database_echo: bool = False

    # Auth
    secret_key: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]

    # Quiz defaults applied when a teacher leaves a setting out
    default_max_attempts: int = 1
    default_tab_shift_limit: int = 3

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    settings = Settings(
        environment=os.getenv("ENVIRONMENT", "development"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./quiz_portal.db"),
        database_echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
        secret_key=os.getenv("SECRET_KEY", "your-secret-key-change-in-production"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440")),
        cors_origins=_split_csv(os.getenv("FRONTEND_URL"), ["http://localhost:3000"]),
        default_max_attempts=int(os.getenv("DEFAULT_MAX_ATTEMPTS", "1")),
        default_tab_shift_limit=int(os.getenv("DEFAULT_TAB_SHIFT_LIMIT", "3")),
    )
    if settings.is_production and settings.secret_key == "your-secret-key-change-in-production":
        logger.warning("SECRET_KEY is not set; using the insecure development default.")
    return settings
