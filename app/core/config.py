from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = Field(default="dev", alias="APP_ENV")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    enable_openapi_docs: bool = Field(default=True, alias="ENABLE_OPENAPI_DOCS")

    internal_api_token: str = Field(
        default="dev_internal_token_change_me",
        alias="INTERNAL_API_TOKEN",
    )
    internal_api_allowlist: str = Field(
        default="127.0.0.1/32,::1/128",
        alias="INTERNAL_API_ALLOWLIST",
    )
    internal_api_trusted_proxies: str = Field(default="", alias="INTERNAL_API_TRUSTED_PROXIES")

    jwt_secret: str = Field(default="dev_jwt_secret_change_me", alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    database_url: str = Field(alias="DATABASE_URL")
    redis_url: str = Field(alias="REDIS_URL")

    celery_broker_url: str = Field(alias="CELERY_BROKER_URL")
    celery_result_backend: str = Field(alias="CELERY_RESULT_BACKEND")

    ledger_max_attempts: int = Field(default=3, ge=1, le=10, alias="LEDGER_MAX_ATTEMPTS")

    package_weekly_prices: str = Field(
        default="basic=500,premium=1000,elite=1500",
        alias="PACKAGE_WEEKLY_PRICES",
    )
    package_price_check_enabled: bool = Field(default=True, alias="PACKAGE_PRICE_CHECK_ENABLED")
    expiration_sweep_batch_size: int = Field(default=200, ge=1, le=5000, alias="EXPIRATION_SWEEP_BATCH_SIZE")

    mpesa_consumer_key: str = Field(default="", alias="MPESA_CONSUMER_KEY")
    mpesa_consumer_secret: str = Field(default="", alias="MPESA_CONSUMER_SECRET")
    mpesa_auth_url: str = Field(
        default="https://sandbox.safaricom.co.ke/oauth/v1/generate",
        alias="MPESA_AUTH_URL",
    )
    mpesa_stk_push_url: str = Field(
        default="https://sandbox.safaricom.co.ke/mpesa/stkpush/v1/processrequest",
        alias="MPESA_STK_PUSH_URL",
    )
    mpesa_status_check_url: str = Field(
        default="https://sandbox.safaricom.co.ke/mpesa/stkpushquery/v1/query",
        alias="MPESA_STATUS_CHECK_URL",
    )
    mpesa_shortcode: str = Field(default="", alias="MPESA_SHORTCODE")
    mpesa_passkey: str = Field(default="", alias="MPESA_PASSKEY")
    mpesa_till_number: str = Field(default="", alias="MPESA_TILL_NUMBER")
    mpesa_callback_url: str = Field(default="", alias="MPESA_CALLBACK_URL")
    mpesa_callback_token: str = Field(default="dev_mpesa_callback_token_change_me", alias="MPESA_CALLBACK_TOKEN")
    mpesa_account_reference: str = Field(default="LISTINGS WALLET", alias="MPESA_ACCOUNT_REFERENCE")
    mpesa_timeout_seconds: float = Field(default=10.0, gt=0, alias="MPESA_TIMEOUT_SECONDS")

    ops_alert_webhook_url: str = Field(default="", alias="OPS_ALERT_WEBHOOK_URL")
    ops_alert_slack_webhook_url: str = Field(default="", alias="OPS_ALERT_SLACK_WEBHOOK_URL")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
