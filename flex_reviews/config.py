from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_MOCK_DATA_PATH = str(Path(__file__).resolve().parent / "data" / "hostaway_mock.json")


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(default="Flex Reviews Service")
    cors_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )
    hostaway_base_url: AnyHttpUrl | None = Field(
        default=None
    )
    hostaway_account_id: str | None = Field(
        default=None
    )
    hostaway_api_key: str | None = Field(
        default=None
    )
    hostaway_timeout: float = Field(
        default=10.0
    )
    use_mock_data: bool = Field(
        default=True
    )
    mock_data_path: str = Field(
        default=DEFAULT_MOCK_DATA_PATH
    )
    store_path: str | None = Field(
        default=None
    )
    session_secret: str = Field(
        default="change-me-flex-reviews-session"
    )
    admin_user: str = Field(
        default="admin"
    )
    admin_pass_hash: str | None = Field(
        default=None
    )
    cookie_name: str = Field(
        default="flex_admin"
    )
    session_max_age: int = Field(
        default=7 * 24 * 60 * 60
    )
    cookie_secure: bool = Field(
        default=False
    )
    require_csrf_header: bool = Field(
        default=True
    )
    admin_page_size: int = Field(
        default=50, ge=1, le=200
    )
    public_page_size: int = Field(
        default=12, ge=1, le=200
    )

    model_config = SettingsConfigDict(env_prefix="FLEX_", case_sensitive=False)

    @field_validator("cors_origins", mode="before")
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
