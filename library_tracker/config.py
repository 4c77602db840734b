import os
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "4000"))

    # Storage
    books_file: str = os.getenv("LIBRARY_BOOKS_FILE", "books.json")

    # CORS (shared by the REST app and the Socket.IO server)
    frontend_url: Optional[str] = os.getenv("FRONTEND_URL")
    cors_origins: List[str] = field(default_factory=lambda: _env_list("CORS_ORIGINS", "http://localhost:3000"))

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Library Tracker")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def allowed_origins(self) -> List[str]:
        """Configured origins plus FRONTEND_URL, without duplicates."""
        origins = list(self.cors_origins)
        if self.frontend_url and self.frontend_url not in origins:
            origins.append(self.frontend_url)
        return origins


settings = Settings()
