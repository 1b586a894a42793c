# src/shelterroute/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/shelterroute/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `SHELTERROUTE_CONFIG_PATH`
- environment variables (e.g., `ORS_API_KEY`, `SHELTERROUTE_ENV`)

Design rule:
- Tuning knobs (cache TTL, rate-limit ceiling, throttle interval) live in YAML, not in
  business logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from shelterroute.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `shelterroute.config`."""
    text = resources.files("shelterroute.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "ShelterRoute"
    env: Literal["development", "test", "production"] = "development"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"


class ProviderSettings(BaseModel):
    base_url: str = "https://api.openrouteservice.org/v2/directions"
    profile: str = "foot-walking"
    api_key: str | None = None


class CacheSettings(BaseModel):
    enabled: bool = True
    route_ttl_seconds: int = Field(30, ge=0)


class RateLimitSettings(BaseModel):
    enabled: bool = True
    window_seconds: int = Field(15 * 60, gt=0)
    max_requests: int = Field(60, gt=0)
    trust_forwarded_for: bool = False


class CorsSettings(BaseModel):
    allow_origins: list[str] = Field(default_factory=lambda: ["*"])


class ShelterSeed(BaseModel):
    name: str
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class CatalogSettings(BaseModel):
    path: str | None = None
    shelters: list[ShelterSeed] = Field(default_factory=list)


class LiveSettings(BaseModel):
    api_base: str = "http://localhost:5000"
    throttle_seconds: float = Field(5.0, ge=0)
    request_timeout_seconds: float = 15


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    provider: ProviderSettings = Field(default_factory=ProviderSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cors: CorsSettings = Field(default_factory=CorsSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    live: LiveSettings = Field(default_factory=LiveSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small to avoid exposing unsafe overrides.
    """
    load_dotenv_if_present()
    data = dict(data)

    api_key = os.getenv("ORS_API_KEY")
    if api_key:
        data.setdefault("provider", {})["api_key"] = api_key

    env = os.getenv("SHELTERROUTE_ENV")
    if env:
        data.setdefault("app", {})["env"] = env.strip().lower()

    log_level = os.getenv("SHELTERROUTE_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    ttl = os.getenv("SHELTERROUTE_ROUTE_CACHE_TTL_SECONDS")
    if ttl:
        data.setdefault("cache", {})["route_ttl_seconds"] = int(ttl)

    max_requests = os.getenv("SHELTERROUTE_RATE_LIMIT_MAX_REQUESTS")
    if max_requests:
        data.setdefault("rate_limit", {})["max_requests"] = int(max_requests)

    window = os.getenv("SHELTERROUTE_RATE_LIMIT_WINDOW_SECONDS")
    if window:
        data.setdefault("rate_limit", {})["window_seconds"] = int(window)

    origins = os.getenv("SHELTERROUTE_CORS_ORIGINS")
    if origins:
        data.setdefault("cors", {})["allow_origins"] = [s.strip() for s in origins.split(",") if s.strip()]

    shelters_path = os.getenv("SHELTERROUTE_SHELTERS_PATH")
    if shelters_path:
        data.setdefault("catalog", {})["path"] = shelters_path

    api_base = os.getenv("SHELTERROUTE_API_BASE")
    if api_base:
        data.setdefault("live", {})["api_base"] = api_base

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("SHELTERROUTE_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
