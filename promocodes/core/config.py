from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "promocodes"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DATABASE_DSN: str = "sqlite:////tmp/promocodes.db"
    DATABASE_BUSY_TIMEOUT: float = 30.0
    REDIS_URL: str = "redis://localhost:6379"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Deactivation sweep schedule (UTC)
    DISCOUNT_SWEEP_HOUR: int = 0
    DISCOUNT_SWEEP_MINUTE: int = 15

    # Reporting
    RECENT_REDEMPTIONS_LIMIT: int = 10
    TOP_CODES_LIMIT: int = 10
    PROJECTION_WINDOW_DAYS: int = 30


settings = Settings()
