from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Succession Knowledge Capture API"
    api_prefix: str = "/api"
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ]

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.7
    openai_timeout_seconds: float = 120.0

    storage_backend: Literal["file", "sql"] = "file"
    data_dir: str = "./data"
    database_url: str = "sqlite:///./data/succession.db"

    snapshot_interval: int = 5
    snapshot_workers: int = 2
    snapshot_max_pending: int = 32

    session_ttl_seconds: int = 24 * 60 * 60
    bcrypt_rounds: int = 10

    role_catalog_path: Optional[str] = None
    log_level: str = "INFO"

    @property
    def uses_sql_store(self) -> bool:
        return self.storage_backend == "sql"


settings = Settings()
