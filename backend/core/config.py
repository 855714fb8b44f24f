"""
Configuration management for the kitchen workflow service.

All tunables used by the order lifecycle (preparation estimates, refund
window, queue wait estimate, station keyword table) live on one Settings
object that is handed to the orchestrator when it is constructed.
"""

from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


DEFAULT_STATION_KEYWORDS: Dict[str, List[str]] = {
    "grill": ["hamburguesa", "pollo", "carne", "pescado", "grill", "parrilla"],
    "salad": ["ensalada", "verdura", "vegetal", "salad"],
    "pizza": ["pizza", "pasta", "italiana"],
    "dessert": ["postre", "helado", "torta", "flan", "dulce"],
    "beverage": ["bebida", "jugo", "agua", "coca", "cerveza", "refresco"],
}

DEFAULT_STATION_NAMES: Dict[str, str] = {
    "grill": "Grill Station",
    "salad": "Salad Station",
    "pizza": "Pizza Station",
    "dessert": "Dessert Station",
    "beverage": "Beverage Station",
}


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Station order in ``kds_station_keywords`` is the station priority used
    when a single station has to be picked for an item.
    """

    # Database Configuration
    database_url: str = "sqlite:///./kitchen.db"
    log_sql_queries: bool = False

    # Environment Settings
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Kitchen workflow
    kds_base_prep_minutes: int = 20
    kds_refund_window_days: int = 30
    kds_wait_estimate_minutes_per_order: int = 15
    kds_default_kitchen_id: int = 1
    kds_station_capacity: int = 10
    kds_queue_limit: int = 50
    kds_station_keywords: Dict[str, List[str]] = DEFAULT_STATION_KEYWORDS
    kds_station_names: Dict[str, str] = DEFAULT_STATION_NAMES

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @field_validator("kds_station_keywords")
    @classmethod
    def normalize_station_keywords(cls, v):
        """Lower-case station ids and keywords; reject an empty table."""
        if not v:
            raise ValueError("At least one kitchen station must be configured")
        normalized = {}
        for station_id, keywords in v.items():
            normalized[station_id.strip().lower()] = [
                keyword.strip().lower() for keyword in keywords if keyword.strip()
            ]
        return normalized

    @field_validator(
        "kds_base_prep_minutes",
        "kds_refund_window_days",
        "kds_wait_estimate_minutes_per_order",
        "kds_queue_limit",
    )
    @classmethod
    def must_be_positive(cls, v):
        if v <= 0:
            raise ValueError("must be a positive number")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def station_ids(self) -> List[str]:
        return list(self.kds_station_keywords.keys())

    def station_display_name(self, station_id: str) -> str:
        return self.kds_station_names.get(
            station_id, f"{station_id.capitalize()} Station"
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Returns:
        Settings instance with environment variables loaded
    """
    return Settings()


# Export settings instance for easy import
settings = get_settings()


def validate_production_config(config: Optional[Settings] = None):
    """Validate configuration for production deployment."""
    config = config or settings
    if config.is_production:
        issues = []

        if config.debug:
            issues.append("DEBUG is enabled in production")

        if config.database_url.startswith("sqlite"):
            issues.append("Database URL points at SQLite")

        if issues:
            raise ValueError(
                f"Production configuration issues detected: {', '.join(issues)}"
            )


# Validate on import if in production
if settings.is_production:
    validate_production_config()
