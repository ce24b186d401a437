"""
Application configuration using Pydantic Settings.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # CoinGecko API Configuration
    coingecko_base_url: str = Field(
        default="https://api.coingecko.com/api/v3",
        description="CoinGecko API base URL",
    )
    coingecko_api_key: Optional[str] = Field(
        default=None,
        description="CoinGecko API key (optional, for higher rate limits)",
    )
    max_tokens: int = Field(
        default=500,
        description="Maximum number of tokens pulled per refresh",
    )
    page_size: int = Field(
        default=250,
        description="Tokens per /coins/markets page",
    )
    request_delay_seconds: float = Field(
        default=1.0,
        description="Delay between paginated requests (free tier rate limit)",
    )

    # Gemini API Configuration
    gemini_api_key: str = Field(default="", description="Google Gemini API key")
    gemini_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used by the trading assistant",
    )

    # AWS Configuration
    aws_access_key_id: Optional[str] = Field(
        default=None,
        description="AWS access key ID",
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None,
        description="AWS secret access key",
    )
    aws_region: str = Field(
        default="ap-southeast-1",
        description="AWS region",
    )

    # Storage Configuration
    storage_type: str = Field(
        default="json",
        description="Storage type: 'json' local file (default), 'dynamodb', or 'memory' for single-process use",
    )
    json_storage_path: str = Field(
        default="data/market_store.json",
        description="Path to JSON storage file (for local development)",
    )

    # DynamoDB Configuration (used when storage_type='dynamodb')
    dynamodb_table_prefix: str = Field(
        default="tierscope",
        description="Prefix for the tokens/opportunities/correlations tables",
    )
    dynamodb_endpoint_url: str = Field(
        default="http://localhost:8000",
        description="DynamoDB endpoint URL (for local development)",
    )
    use_local_dynamodb: bool = Field(
        default=True,
        description="Use local DynamoDB instance",
    )

    # Notifications
    slack_webhook_url: Optional[str] = Field(
        default=None,
        description="Slack incoming webhook for opportunity alerts",
    )
    alert_min_confidence: float = Field(
        default=80.0,
        description="Minimum confidence for an opportunity to be alerted",
    )

    # Analysis Configuration
    opportunity_ttl_hours: int = Field(
        default=24,
        description="Hours before a detected opportunity expires",
    )
    dedupe_opportunities: bool = Field(
        default=False,
        description="Deactivate live opportunities for the same token and direction before storing new ones",
    )
    enable_correlations: bool = Field(
        default=False,
        description="Compute tier-to-tier correlations from price history on refresh",
    )
    correlation_history_days: int = Field(
        default=7,
        description="Days of price history used for tier correlations",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    @property
    def correlation_timeframe(self) -> str:
        """Timeframe label matching correlation_history_days."""
        if self.correlation_history_days <= 1:
            return "24h"
        if self.correlation_history_days <= 7:
            return "7d"
        return "30d"

    def validate_required(self) -> list[str]:
        """
        Validate that required settings are present.

        Returns:
            List of missing required settings.
        """
        missing = []

        if self.storage_type.lower() not in ("memory", "json", "dynamodb"):
            missing.append("STORAGE_TYPE (memory, json or dynamodb)")
        if self.storage_type.lower() == "json" and not self.json_storage_path:
            missing.append("JSON_STORAGE_PATH")
        if self.max_tokens <= 0:
            missing.append("MAX_TOKENS (must be positive)")

        return missing


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
