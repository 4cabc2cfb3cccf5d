"""
Application configuration using pydantic-settings.
All config is validated at startup - fail fast if anything is malformed.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_base_url: str = "http://localhost:8000"
    log_level: str = "INFO"

    # Bot
    bot_name: str = "ProBot"
    command_prefix: str = "/"

    # Access control
    admin_identity: str = "+15550000000"
    pro_allowlist: str = ""  # Comma-separated identities seeded as Pro at startup
    payment_link: str = "https://pay.example.com/probot-pro"

    # Twilio
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_from_number: str = ""
    twilio_messaging_service_sid: str = ""
    twilio_validate_signature: bool = True

    # SendGrid
    sendgrid_api_key: str = ""
    sendgrid_from_email: str = "noreply@probot.app"
    sendgrid_from_name: str = "ProBot"

    # Alerting
    alert_webhook_url: str = ""  # Discord/Slack webhook URL for critical alerts

    @property
    def pro_allowlist_identities(self) -> list[str]:
        return [i.strip() for i in self.pro_allowlist.split(",") if i.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
