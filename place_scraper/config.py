"""
Configuration management for the Place Scraper service.
Handles environment variables and application settings.
"""
import os
from dotenv import load_dotenv

load_dotenv()


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 16_0 like Mac OS X) "
    "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1"
)


class Config:
    """Application configuration loaded from environment variables."""

    # Server settings
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")  # json or console

    # Request settings (applies to redirect resolution and page fetch alike)
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "10"))
    USER_AGENT: str = os.getenv("USER_AGENT") or DEFAULT_USER_AGENT
    ACCEPT_LANGUAGE: str = os.getenv("ACCEPT_LANGUAGE", "ko-KR,ko;q=0.9,en;q=0.8")

    # Number of review nodes inspected per page, accepted or not
    MAX_REVIEW_CANDIDATES: int = int(os.getenv("MAX_REVIEW_CANDIDATES", "5"))


config = Config()
