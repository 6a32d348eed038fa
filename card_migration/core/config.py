from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="CARD_MIGRATION_", extra="ignore")

    mongo_url: str = Field(default="mongodb://localhost:27017")
    mongo_database: str = "pokemon_manager"
    target_collection: str = "pokemon_cards"
    server_selection_timeout_ms: int | None = None

    export_path: str = "pokemon_cards_export.json"
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
