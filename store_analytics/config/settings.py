"""
Store Analytics Engine
Centralized Configuration Management

Pydantic settings with environment variable support. The financial ratios
below are modeled estimates used when no real cost or tax ledger is wired in;
each one can be overridden on its own through the environment.
"""

from functools import lru_cache
from typing import Optional, List
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Storefront database configuration (orders, order_items, products)"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="storefront", description="Database name")
    user: str = Field(default="storefront", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url: Optional[str] = Field(default=None, description="Full async URL (overrides host/port)")
    replica_urls: List[str] = Field(default_factory=list, description="Read replica async URLs")

    @property
    def async_url(self) -> str:
        """Async database URL for asyncpg"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"

    @property
    def endpoints(self) -> List[str]:
        """Primary URL followed by replicas, in failover order"""
        return [self.async_url, *self.replica_urls]


class RedisSettings(BaseSettings):
    """Redis Cache Configuration"""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: Optional[SecretStr] = Field(default=None, description="Redis password")
    db: int = Field(default=0, description="Redis database number")
    max_connections: int = Field(default=50, description="Max connections")
    socket_timeout: int = Field(default=5, description="Socket timeout in seconds")
    url: Optional[str] = Field(default=None, description="Redis URL (overrides host/port)")

    def get_url(self) -> str:
        """Redis connection URL - uses REDIS_URL if set, otherwise builds from host/port"""
        if self.url:
            return self.url
        if self.password:
            return f"redis://:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class AnalyticsSettings(BaseSettings):
    """Aggregation engine configuration"""

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_")

    default_date_range: str = Field(default="30d", description="Window token used when none is given")
    top_n: int = Field(default=10, ge=1, le=100, description="Top-selling list length")
    low_stock_threshold: int = Field(default=10, ge=1, description="Stock strictly below this is low")
    timezone: str = Field(default="UTC", description="Time zone for calendar-day buckets")

    # Modeled financial ratios
    product_cost_ratio: float = Field(default=0.70, description="Assumed unit cost as share of price")
    net_revenue_ratio: float = Field(default=0.95, description="Revenue kept after payment fees")
    cost_ratio: float = Field(default=0.70, description="Costs as share of gross revenue")
    tax_rate: float = Field(default=0.20, description="Tax as share of profit")
    refund_ratio: float = Field(default=0.02, description="Refunds as share of gross revenue")

    # Customer value tiers (lifetime value)
    high_value_threshold: float = Field(default=1000.0, description="Lifetime value for High Value tier")
    medium_value_threshold: float = Field(default=250.0, description="Lifetime value for Medium Value tier")

    # Data source resilience
    fetch_timeout_seconds: float = Field(default=10.0, gt=0, description="Per-fetch timeout")
    fetch_retries: int = Field(default=2, ge=1, description="Attempts per fetch")
    retry_backoff_seconds: float = Field(default=1.0, ge=0, description="Linear backoff step")
    connectivity_retest_seconds: int = Field(default=300, description="Working endpoint cache TTL")

    # Report cache
    cache_ttl_seconds: int = Field(default=60, description="Report memo TTL")

    @field_validator(
        "product_cost_ratio", "net_revenue_ratio", "cost_ratio", "tax_rate", "refund_ratio"
    )
    @classmethod
    def validate_ratio(cls, v: float) -> float:
        """Ratios must be fractions"""
        if not 0.0 <= v <= 1.0:
            raise ValueError("Ratio must be between 0 and 1")
        return v


class RealtimeSettings(BaseSettings):
    """Live metrics poller configuration"""

    model_config = SettingsConfigDict(env_prefix="REALTIME_")

    poll_interval_seconds: float = Field(default=30.0, gt=0, description="Seconds between polls")
    fetch_timeout_seconds: float = Field(default=5.0, gt=0, description="Per-poll fetch timeout")


class SecuritySettings(BaseSettings):
    """CORS configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )


class MonitoringSettings(BaseSettings):
    """Monitoring and Observability Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")
    enable_metrics: bool = Field(default=True, alias="ENABLE_METRICS", description="Expose Prometheus metrics at /metrics")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="store-analytics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    realtime: RealtimeSettings = Field(default_factory=RealtimeSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
