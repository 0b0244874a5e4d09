"""
Configuration settings for the application.
"""

import logging
import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_DATA_DIRECTORY = Path(__file__).resolve().parent / "data"


class Settings:
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Redis / persisted client state
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    PREFERENCES_KEY_PREFIX: str = os.getenv("PREFERENCES_KEY_PREFIX", "storefront:")
    PREFERENCES_TTL_SECONDS: int = int(
        os.getenv("PREFERENCES_TTL_SECONDS", str(60 * 60 * 24 * 30))
    )

    # Static data
    CATALOG_PATH: str = os.getenv("CATALOG_PATH", str(_DATA_DIRECTORY / "products.json"))
    DELIVERY_PARTNERS_PATH: str = os.getenv(
        "DELIVERY_PARTNERS_PATH",
        str(_DATA_DIRECTORY / "delivery_partners.json"),
    )

    # Pricing
    TAX_RATE: Decimal = Decimal(os.getenv("TAX_RATE", "0.08"))
    RECENTLY_VIEWED_LIMIT: int = int(os.getenv("RECENTLY_VIEWED_LIMIT", "5"))

    # Shipment tracking (AfterShip)
    AFTERSHIP_API_KEY: str | None = os.getenv("AFTERSHIP_API_KEY")
    AFTERSHIP_BASE_URL: str = os.getenv(
        "AFTERSHIP_BASE_URL", "https://api.aftership.com/v4"
    )
    AFTERSHIP_TIMEOUT_SECONDS: float = float(os.getenv("AFTERSHIP_TIMEOUT_SECONDS", "10"))

    @property
    def is_production(self) -> bool:
        """
        Check if running in production environment.
        """
        return self.ENVIRONMENT.lower() == "production"

    @property
    def tracking_enabled(self) -> bool:
        """Return True when a tracking client can be initialized."""
        return bool(self.AFTERSHIP_API_KEY)

    def __init__(self):
        self.env = os.getenv("ENV", "dev")
        self.debug = os.getenv("DEBUG", "false").lower() == "true"
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        logging.basicConfig(level=self.log_level)
        self.logger = logging.getLogger(__name__)

        self.logger.debug(
            f"Config initialized with env={self.env}, debug={self.debug}, "
            f"log_level={self.log_level}"
        )


# Create a global settings instance for import
settings = Settings()
