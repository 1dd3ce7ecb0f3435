from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Credit Ledger"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_DATABASE_DSN: str = "sqlite:////tmp/credit_ledger.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Upper bound for any wait on the ledger store (busy lock, pool checkout)
    LEDGER_STORE_TIMEOUT_SECONDS: float = 5.0

    # Sale-management collaborator, empty disables credit status mirroring
    SALES_SERVICE_URL: str = ""
    SALES_SERVICE_TIMEOUT_SECONDS: float = 10.0

    # Outbox delivery
    NOTIFICATION_MAX_RETRIES: int = 5

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def sales_service_enabled(self) -> bool:
        return bool(self.SALES_SERVICE_URL)


settings = Settings()
