from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "ShopDesk"
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite+pysqlite:///./shopdesk.db"
    SUPERADMIN_USERNAME: str = "superadmin"
    SUPERADMIN_EMAIL: str = "superadmin@example.com"
    SUPERADMIN_PASSWORD: str = "change-me"
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    DEFAULT_PLAN_MAX_PRODUCTS: int = 10
    DEFAULT_PLAN_MAX_USERS: int = 5
    SALES_LIST_MAX_PAGE_SIZE: int = 200
    METRICS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"
    WHATSAPP_BRIDGE_URL: str = "http://localhost:3004"
    WHATSAPP_API_KEY: str = ""
    WHATSAPP_TIMEOUT_SECONDS: float = 10.0
    WHATSAPP_POLL_ENABLED: bool = False
    WHATSAPP_POLL_INTERVAL_SECONDS: float = 5.0
    SCANNER_KEY_INTERVAL_MS: int = 50

settings = Settings()
