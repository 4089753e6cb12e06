from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "BillFlow"
    API_PREFIX: str = "/api"

    # Database (SQLite file by default, any SQLAlchemy URL accepted)
    DB_PATH: str = "/data/billflow.db"
    DATABASE_URL: Optional[str] = None

    # Identity injected by the reverse proxy, first non-empty header wins
    TENANT_HEADERS: List[str] = [
        "remote-user",           # Authelia
        "x-authentik-username",  # Authentik
        "x-forwarded-user",
        "x-remote-user",
    ]
    DEFAULT_TENANT: str = "local"

    STATIC_DIR: str = "public"

    EMAIL_HTTP_TIMEOUT: float = 30.0
    SMTP_TIMEOUT: float = 30.0

    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    class Config:
        case_sensitive = True

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL or f"sqlite:///{self.DB_PATH}"

settings = Settings()
