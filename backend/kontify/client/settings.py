from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="KONTIFY_", env_file=(".env", "../.env"), extra="ignore")

    API_BASE_URL: str = "http://localhost:8000/api/v1"
    SESSION_FILE: Path = Field(default_factory=lambda: Path.home() / ".kontify" / "session.json")
    REQUEST_TIMEOUT_SECONDS: float = 15.0
    MAX_WORKERS: int = 4

    CHAT_MAX_VISITOR_MESSAGES: int = 3
    WHATSAPP_APPOINTMENT_URL: str = "https://wa.me/5215500000000?text=Quiero%20agendar%20una%20cita"


@lru_cache
def get_client_settings() -> ClientSettings:
    return ClientSettings()
