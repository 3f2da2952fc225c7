"""
Configuration management.
Loads service settings from environment variables / .env via Pydantic Settings.
"""

from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.
    Values are read from the environment with type conversion and validation.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # unknown env vars are ignored instead of failing validation
    )

    # Application
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_version: str = "1.0.0"

    # CORS
    cors_origins: List[str] = ["*"]

    # Overpass (geodata query service)
    overpass_endpoints: List[str] = Field(
        default_factory=lambda: [
            "https://overpass-api.de/api/interpreter",
            "https://overpass.kumi.systems/api/interpreter",
        ],
        validation_alias="OVERPASS_ENDPOINTS",
        description="Overpass interpreter endpoints, rotated on each retry attempt",
    )
    overpass_user_agent: str = Field(
        "TrafficAnalysis/1.0 (osm-traffic-analysis)",
        validation_alias="OVERPASS_USER_AGENT",
    )
    overpass_attempt_timeout_s: float = Field(
        60.0,
        validation_alias="OVERPASS_ATTEMPT_TIMEOUT_S",
        description="Client-side hard timeout per attempt (seconds)",
    )
    overpass_max_attempts: int = Field(
        3,
        validation_alias="OVERPASS_MAX_ATTEMPTS",
        ge=1,
    )
    overpass_backoff_base_s: float = Field(
        1.0,
        validation_alias="OVERPASS_BACKOFF_BASE_S",
        description="Backoff before retry n is base * 2^n seconds",
    )
    roads_query_timeout_s: int = Field(
        45,
        validation_alias="ROADS_QUERY_TIMEOUT_S",
        description="Server-side [timeout:] of the roads query",
    )
    infra_query_timeout_s: int = Field(
        30,
        validation_alias="INFRA_QUERY_TIMEOUT_S",
        description="Server-side [timeout:] of the infrastructure query",
    )
    road_geometry_mode: Literal["geom", "center"] = Field(
        "geom",
        validation_alias="ROAD_GEOMETRY_MODE",
        description="'geom' requests full way geometry, 'center' only a center point",
    )

    # Analysis
    max_radius_miles: float = Field(5.0, validation_alias="MAX_RADIUS_MILES", gt=0)
    default_radius_miles: float = Field(5.0, validation_alias="DEFAULT_RADIUS_MILES", gt=0)


settings = Settings()
