from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    API_BASE_URL: str = "http://localhost:3333"
    API_TIMEOUT_SECONDS: float = 10.0

    BUSINESS_TIMEZONE: str = "America/Sao_Paulo"
    CONFIRMATION_LANGUAGE: str = "pt"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    FLOW_STORE_LIMIT: int = 1000
    FLOW_IDLE_TTL_SECONDS: float = 1800.0

    # Daily slot grid, inclusive hour bounds. Hour 12 is lunch.
    MORNING_START_HOUR: int = 8
    MORNING_END_HOUR: int = 11
    AFTERNOON_START_HOUR: int = 13
    AFTERNOON_END_HOUR: int = 17


settings = Settings()
