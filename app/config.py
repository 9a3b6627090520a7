from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Built once at startup and injected into handlers; never mutated.
    """

    # env_file is only used as fallback, env vars take precedence
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
        frozen=True,
    )

    # WhatsApp Cloud API credentials
    WHATSAPP_TOKEN: str = ""
    WHATSAPP_PHONE_NUMBER_ID: str = ""

    # Secret echoed by Meta during the webhook verification handshake
    WHATSAPP_VERIFY_TOKEN: str = ""

    # Number quoted in support-contact replies
    SASYAM_SUPPORT_NUMBER: str = ""

    # Outbound send-message API
    WHATSAPP_API_BASE_URL: str = "https://graph.facebook.com"
    WHATSAPP_API_VERSION: str = "v21.0"
    WHATSAPP_SEND_TIMEOUT: float = 10.0

    # Logging Configuration
    LOG_LEVEL: str = "INFO"

    # Server
    PORT: int = 3000

    @property
    def messages_url(self) -> str:
        """Send-message endpoint for the configured phone-number id."""
        base = self.WHATSAPP_API_BASE_URL.rstrip("/")
        return f"{base}/{self.WHATSAPP_API_VERSION}/{self.WHATSAPP_PHONE_NUMBER_ID}/messages"

    def missing_whatsapp_settings(self) -> list[str]:
        """Names of the WhatsApp settings that are still empty."""
        required = {
            "WHATSAPP_TOKEN": self.WHATSAPP_TOKEN,
            "WHATSAPP_PHONE_NUMBER_ID": self.WHATSAPP_PHONE_NUMBER_ID,
            "WHATSAPP_VERIFY_TOKEN": self.WHATSAPP_VERIFY_TOKEN,
        }
        return [name for name, value in required.items() if not value]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every request.
    """
    return Settings()
