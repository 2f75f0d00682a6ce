from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    SUPABASE_ANON_KEY: str | None = None
    STORE_TIMEOUT_SECONDS: float = 10.0

    REMOTE_FUNCTION_ENABLED: bool = True
    BOOKING_FUNCTION_TIMEOUT_SECONDS: float = 30.0

    DEFAULT_TIMEZONE: str = "Australia/Sydney"
    DEFAULT_SERIES_TITLE: str = "Regular clean"
    DEFAULT_DURATION_MINUTES: int = 120
    LEAD_WON_STATUS: str = "Job Won"

    PAYMENT_CURRENCY: str = "aud"
    PAYMENT_SUCCESS_URL: str | None = None
    PAYMENT_CANCEL_URL: str | None = None


settings = Settings()
