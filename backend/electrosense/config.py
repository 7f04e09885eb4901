import os
import tempfile
from decimal import Decimal
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    FRONTEND_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:5174"]
    RESET_DB: bool = False
    LOG_LEVEL: str = "INFO"

    # checkout
    SHIPPING_FEE: Decimal = Decimal("500.00")
    CURRENCY: str = "LKR"
    BANK_NAME: str = "Commercial Bank"
    BANK_ACCOUNT_NAME: str = "ElectroSense (Pvt) Ltd"
    BANK_ACCOUNT_NUMBER: str = "1234 5678 90"
    BANK_BRANCH: str = "Malabe"

    # catalogue
    DEFAULT_SKU_PREFIX: str = "GEN"
    SKU_PAD_WIDTH: int = 4
    LOCK_DIR: str = os.path.join(tempfile.gettempdir(), "electrosense_locks")
    LOCK_TIMEOUT_SECONDS: int = 10

    # live views
    SUBSCRIPTION_POLL_SECONDS: int = 2

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
