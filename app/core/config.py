# app/core/config.py
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

SearchMode = Literal["remote", "local"]


class Settings(BaseSettings):
    # Backend-as-a-service (REST + RPC + auth behind one base URL)
    backend_url: str = ""  # = BACKEND_URL
    backend_anon_key: str = ""  # = BACKEND_ANON_KEY
    backend_timeout_seconds: float = Field(default=10.0, gt=0)

    # Nearby search
    search_mode: SearchMode = "remote"
    nearby_rpc_function: str = "fn_obtener_puntos_cercanos"
    # Madrid centre, used when the caller does not send a location
    default_latitude: float = Field(default=40.416775, ge=-90.0, le=90.0)
    default_longitude: float = Field(default=-3.703790, ge=-180.0, le=180.0)
    decimal_shift_correction: bool = True
    query_log_enabled: bool = True

    # CSV import
    import_batch_size: int = Field(default=100, ge=1)
    import_lat_integer_digits: int = Field(default=2, ge=1, le=2)
    import_lng_integer_digits: int = Field(default=1, ge=1, le=3)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",  # BACKEND_URL etc. are read as-is
        extra="ignore",
    )

    @property
    def backend_configured(self) -> bool:
        return bool(self.backend_url and self.backend_anon_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def reset_settings_cache() -> None:
    """Drop the cached settings so the next call re-reads the environment."""

    get_settings.cache_clear()
