from functools import lru_cache
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_SESSION_SECRET = "kitesurfing-secret-key-change-in-production"


class Settings(BaseSettings):
    """Configuração lida do ambiente (e de um `.env` opcional)."""

    # --- BANCO DE DADOS ---
    # Se DATABASE_URL existir usamos Postgres; senão, o arquivo SQLite local.
    database_url: Optional[str] = None
    sqlite_path: str = "kitesurfing.db"

    # --- SESSÃO ---
    session_secret: str = DEV_SESSION_SECRET
    session_cookie_name: str = "sessionId"
    session_max_age: int = 24 * 60 * 60
    session_rolling: bool = False

    # --- AMBIENTE / HTTP ---
    environment: str = Field(
        "development",
        validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV", "environment"),
    )
    frontend_url: str = "http://localhost:3000"
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"

    default_admin_password: str = "password"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.frontend_url.split(",") if origin.strip()]

    @property
    def cookie_same_site(self) -> str:
        # Front e API ficam em domínios diferentes em produção
        return "none" if self.is_production else "lax"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
