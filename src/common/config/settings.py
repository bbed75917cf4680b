"""Application settings and environment variables."""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


class Settings:
    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_PORT: int = int(os.getenv("DB_PORT", "3306"))
    DB_DATABASE: str = os.getenv("DB_NAME", "boutique_pos_db")
    DB_USER: str = os.getenv("DB_USER", "user")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "password")

    # Every store call must fail instead of hanging
    DB_CONNECT_TIMEOUT: int = int(os.getenv("DB_CONNECT_TIMEOUT", "10"))  # seconds
    DB_QUERY_TIMEOUT_MS: int = int(os.getenv("DB_QUERY_TIMEOUT_MS", "15000"))

    # Operator's wall clock, used for day bucketing in the sales trend
    LOCAL_TIMEZONE: str = os.getenv("LOCAL_TIMEZONE", "Europe/Madrid")

    # Sale recording
    SALE_MAX_RETRIES: int = int(os.getenv("SALE_MAX_RETRIES", "3"))

    # Analytics
    TOP_PRODUCTS_LIMIT: int = int(os.getenv("TOP_PRODUCTS_LIMIT", "5"))
    RECENT_SALES_LIMIT: int = int(os.getenv("RECENT_SALES_LIMIT", "5"))
    UNKNOWN_PRODUCT_LABEL: str = os.getenv("UNKNOWN_PRODUCT_LABEL", "Unknown")
    REPORT_INTERVAL_MINUTES: int = int(os.getenv("REPORT_INTERVAL_MINUTES", "0"))  # 0 = run once

    # Logging settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")  # INFO, DEBUG, WARNING, ERROR, CRITICAL
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE")


settings = Settings()
