# backend/core/config.py
import os
from typing import List, Literal
from dotenv import load_dotenv

DEV_ORIGINS = ["http://localhost:3000", "http://localhost:3001"]


class Settings:
    """
    Setup environment variables.
        - ENVIRONMENT "development" or "production"; production restricts CORS
        - CLIENT_URL the deployed frontend origin, added to ALLOWED_ORIGINS
        - HISTORY_LIMIT how many messages each room keeps in memory
        - LOG_LEVEL root log level (see core.logging)
    """

    # Load environment variables from the .env file
    load_dotenv()

    ENVIRONMENT: Literal["development", "production"] = os.getenv("ENVIRONMENT", "development")

    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "5000"))

    CLIENT_URL: str = os.getenv("CLIENT_URL", "")
    ALLOWED_ORIGINS: List[str] = list(filter(None, [CLIENT_URL, *DEV_ORIGINS]))

    HISTORY_LIMIT: int = int(os.getenv("HISTORY_LIMIT", "100"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def cors_origins(self) -> List[str]:
        """Every origin is allowed outside production."""
        if self.is_production:
            return list(self.ALLOWED_ORIGINS)
        return ["*"]


settings = Settings()
