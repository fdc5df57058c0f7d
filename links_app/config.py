from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Application
    app_name: str = "Link Shortener"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Database
    database_url: str = "sqlite:///./links.db"

    # Public base for building short URLs in responses
    base_url: str = "http://127.0.0.1:8000"

    # Click counting
    click_dispatch: str = "background"  # Options: "background", "queue"

    # Queue settings (only used when click_dispatch == "queue")
    queue_backend: str = "redis_streams"  # Options: "redis_streams", "memory"
    redis_url: str = "redis://localhost:6379/0"
    queue_name: str = "link_clicks"
    queue_consumer_group: str = "click_workers"
    queue_batch_size: int = 100  # Number of messages to process at once
    queue_worker_interval: float = 1.0  # Worker poll interval in seconds when idle
    queue_reclaim_idle_ms: int = 30000  # Unacked Redis entries older than this are redelivered
    queue_memory_limit: int = 10000  # Max clicks waiting in the in-memory queue

    # Authentication
    auth_backend: str = "jwt"  # Options: "jwt", "header"
    jwt_secret_key: str = "your-secret-key-here-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    auth_header: str = "X-User-Id"  # Used by the "header" backend

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
