from functools import lru_cache
from typing import Literal
import os
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production", "test"]

DEFAULT_STORE_API_URL = "http://localhost:9000"

def _env_file_for(app_env: EnvName) -> str:
    return ".env.production" if app_env == "production" else ".env.development"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "ProductMetadataAPI"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"

    # Mongo (catalog service backing store)
    MONGO_URI: str | None = None
    MONGO_DB: str = "catalog"
    products_collection: str = "products"

    # Storefront (peer endpoint). STORE_API_URL wins over MEDUSA_BACKEND_URL.
    store_api_url: str = Field(
        default=DEFAULT_STORE_API_URL,
        validation_alias=AliasChoices("STORE_API_URL", "MEDUSA_BACKEND_URL"),
    )

    # Fallback chain
    SOURCE_TIMEOUT_S: float = 3.0              # per outbound call
    ACCEPT_EMPTY_METADATA: bool = True         # empty catalog metadata is final
    EXPOSE_LOOKUP_TRACE: bool = False          # debug only, leaks topology

    # CORS (CSV)
    ALLOWED_ORIGINS: str = ""

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True, extra="ignore", populate_by_name=True)

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
