from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    APP_BASE_URL: str = "http://localhost:8000"

    # Upstream order feed for the dashboard; sample orders are used when unset
    ORDERS_FEED_URL: str | None = None
    ORDERS_FEED_TOKEN: str | None = None
    ORDERS_FEED_TIMEOUT: float = 10.0

    DASHBOARD_REFRESH_SECONDS: int = 300

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
