from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App settings
    APP_NAME: str = "chapa-relay"
    ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    # Chapa
    CHAPA_SECRET_KEY: str = ""
    CHAPA_BASE_URL: str = "https://api.chapa.co/v1"
    CHAPA_WEBHOOK_SECRET: Optional[str] = None
    CHAPA_TIMEOUT: Optional[float] = None  # seconds, None waits indefinitely
    CURRENCY: str = "ETB"

    # Public URLs handed to Chapa
    PUBLIC_BASE_URL: str = "https://api.ethiotechleaders.com"
    CALLBACK_URL: Optional[str] = None
    RETURN_URL: Optional[str] = None

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Static files
    STATIC_DIR: str = str(Path(__file__).resolve().parent.parent / "static")

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def callback_url(self) -> str:
        return self.CALLBACK_URL or f"{self.PUBLIC_BASE_URL.rstrip('/')}/api/webhook/chapa"

    @property
    def return_url(self) -> str:
        return self.RETURN_URL or f"{self.PUBLIC_BASE_URL.rstrip('/')}/close-webview"


settings = Settings()
