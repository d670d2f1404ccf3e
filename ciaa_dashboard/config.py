"""Configuration for ciaa-dashboard."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Dashboard settings with CIAA_ environment variable prefix."""

    # Backend
    api_base_url: str = "https://ciaa-backend.vercel.app"

    # Listing defaults
    default_page: int = 1
    default_page_size: int = 10
    recent_issues_limit: int = 5
    top_items_limit: int = 5

    # Logging
    log_level: str = "WARNING"

    model_config = {"env_prefix": "CIAA_"}


settings = Settings()
