# taskify_app/settings.py
from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, List, Optional
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import Field, field_validator

DEFAULT_SECRET_KEY = "change_me"
DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://localhost:3000"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    # --- DB ---
    DATABASE_URL: str = Field(default='sqlite:///./taskify.db')

    # --- App/JWT ---
    SECRET_KEY: str = Field(default=DEFAULT_SECRET_KEY)
    ALGORITHM: str = Field(default='HS256')
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60 * 24 * 7, gt=0)

    # --- CORS ---
    CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS)
    )

    # --- Runtime ---
    APP_ENV: Optional[str] = Field(default='prod')
    API_PREFIX: str = Field(default='')
    STRICT_CATEGORIES: bool = Field(default=False)
    LOG_LEVEL: str = Field(default='INFO')

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors(cls, v):
        """
        Accepts:
        - JSON: '["http://a","http://b"]'
        - Comma separated: 'http://a,http://b'
        - Empty: falls back to the default
        """
        if v is None:
            return list(DEFAULT_CORS_ORIGINS)
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return list(DEFAULT_CORS_ORIGINS)
            if s.startswith("["):
                try:
                    return json.loads(s)
                except json.JSONDecodeError:
                    raise ValueError("CORS_ORIGINS must be valid JSON or a comma separated list.")
            return [part.strip() for part in s.split(",") if part.strip()]
        return v

    @field_validator("API_PREFIX")
    @classmethod
    def normalize_prefix(cls, v: str) -> str:
        v = (v or "").strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v

    @property
    def is_development(self) -> bool:
        return (self.APP_ENV or "").lower() in ("dev", "development")


@lru_cache
def get_settings() -> Settings:
    """Return the process settings, read once from the environment."""
    return Settings()
