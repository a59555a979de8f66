from functools import lru_cache

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.exceptions import ConfigurationException


class Settings(BaseSettings):
    # App settings
    APP_NAME: str = "mpesa-relay"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    PORT: int = 3000

    # Daraja credentials
    BASE_URL: str
    CONSUMER_KEY: str
    CONSUMER_SECRET: str
    SHORT_CODE: str
    PASSKEY: str
    CALLBACK_URL: str

    # STK push
    TRANSACTION_TYPE: str = "CustomerPayBillOnline"
    ACCOUNT_REFERENCE: str = "Test123"
    TRANSACTION_DESC: str = "Payment for services"

    # Outbound HTTP
    GATEWAY_TIMEOUT: float = 30.0  # seconds

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        frozen=True,
    )

    @property
    def oauth_url(self) -> str:
        return f"{self.BASE_URL.rstrip('/')}/oauth/v1/generate"

    @property
    def stk_push_url(self) -> str:
        return f"{self.BASE_URL.rstrip('/')}/mpesa/stkpush/v1/processrequest"


@lru_cache
def get_settings() -> Settings:
    """Load settings from the environment once per process."""
    try:
        return Settings()
    except ValidationError as e:
        missing = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
        raise ConfigurationException(
            f"Invalid or missing configuration: {', '.join(missing)}",
            details={"fields": missing},
        ) from e
