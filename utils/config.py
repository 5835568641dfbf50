"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Photos
    photo_cdn_base: str = field(
        default_factory=lambda: os.getenv("PHOTO_CDN_BASE", "https://cdn.repliers.io/")
    )
    photos_per_property: int = field(
        default_factory=lambda: int(os.getenv("PHOTOS_PER_PROPERTY", "3"))
    )

    # Image insights API
    insights_api_base: str = field(
        default_factory=lambda: os.getenv("INSIGHTS_API_BASE", "http://127.0.0.1:5000/api")
    )
    insights_api_key: Optional[str] = field(default_factory=lambda: os.getenv("INSIGHTS_API_KEY"))
    insight_request_delay: float = field(
        default_factory=lambda: float(os.getenv("INSIGHT_REQUEST_DELAY", "1.0"))
    )
    request_timeout: int = field(default_factory=lambda: int(os.getenv("REQUEST_TIMEOUT", "30")))

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def to_dict(self) -> dict:
        """Convert config to dictionary (API key omitted)."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "photo_cdn_base": self.photo_cdn_base,
            "photos_per_property": self.photos_per_property,
            "insights_api_base": self.insights_api_base,
            "insights_api_key_set": self.insights_api_key is not None,
            "insight_request_delay": self.insight_request_delay,
            "request_timeout": self.request_timeout,
        }
