"""
Configuration management.
"""

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG", "false"))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: os.getenv("LOG_FORMAT", "standard"))

    # Data
    data_dir: str = field(default_factory=lambda: os.getenv("DATA_DIR", "./data"))
    persist: bool = field(default_factory=lambda: _env_bool("PERSIST", "false"))

    # Rate limiting (listings per user per trailing 24h)
    listing_rate_limit: int = field(
        default_factory=lambda: int(os.getenv("LISTING_RATE_LIMIT", "10"))
    )

    # Duplicate detection
    duplicate_radius_meters: float = field(
        default_factory=lambda: float(os.getenv("DUPLICATE_RADIUS_METERS", "50"))
    )
    duplicate_similarity_threshold: float = field(
        default_factory=lambda: float(os.getenv("DUPLICATE_SIMILARITY_THRESHOLD", "0.8"))
    )
    duplicate_max_matches: int = field(
        default_factory=lambda: int(os.getenv("DUPLICATE_MAX_MATCHES", "5"))
    )

    # Price anomaly detection
    comparable_sample_size: int = field(
        default_factory=lambda: int(os.getenv("COMPARABLE_SAMPLE_SIZE", "20"))
    )
    min_comparables: int = field(
        default_factory=lambda: int(os.getenv("MIN_COMPARABLES", "3"))
    )
    price_deviation_threshold: float = field(
        default_factory=lambda: float(os.getenv("PRICE_DEVIATION_THRESHOLD", "0.5"))
    )

    # Lifecycle
    min_submit_images: int = field(
        default_factory=lambda: int(os.getenv("MIN_SUBMIT_IMAGES", "3"))
    )
    auto_approve_on_submit: bool = field(
        default_factory=lambda: _env_bool("AUTO_APPROVE_ON_SUBMIT", "true")
    )

    # Verification record writes
    upsert_max_attempts: int = field(
        default_factory=lambda: int(os.getenv("UPSERT_MAX_ATTEMPTS", "3"))
    )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "log_format": self.log_format,
            "data_dir": self.data_dir,
            "persist": self.persist,
            "listing_rate_limit": self.listing_rate_limit,
            "duplicate_radius_meters": self.duplicate_radius_meters,
            "duplicate_similarity_threshold": self.duplicate_similarity_threshold,
            "duplicate_max_matches": self.duplicate_max_matches,
            "comparable_sample_size": self.comparable_sample_size,
            "min_comparables": self.min_comparables,
            "price_deviation_threshold": self.price_deviation_threshold,
            "min_submit_images": self.min_submit_images,
            "auto_approve_on_submit": self.auto_approve_on_submit,
            "upsert_max_attempts": self.upsert_max_attempts,
        }
