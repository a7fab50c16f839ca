"""
Configuration - Environment-driven settings.

All settings come from environment variables so the same package runs
under the CLI, uvicorn, or tests without config files:

    GEMINI_API_KEY         API key for the generative model (GOOGLE_API_KEY fallback)
    BINWISE_MODEL          model name
    BINWISE_GEOCODER_URL   reverse geocoding endpoint
    BINWISE_USER_AGENT     User-Agent sent to the geocoder
    BINWISE_GEO_TIMEOUT    seconds to wait for a device position
    BINWISE_CAMERA_INDEX   OpenCV device index
    BINWISE_LOG_LEVEL      logging level name
    ALLOWED_ORIGINS        comma separated CORS origins
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import os

DEFAULT_MODEL = "gemini-1.5-flash"
DEFAULT_GEOCODER_URL = "https://nominatim.openstreetmap.org/reverse"
DEFAULT_USER_AGENT = "binwise/0.1"

LOG_FORMAT = "[%(asctime)s] %(levelname)s in %(module)s: %(message)s"


@dataclass
class Settings:
    """Runtime settings."""
    api_key: str | None = None
    model_name: str = DEFAULT_MODEL
    geocoder_url: str = DEFAULT_GEOCODER_URL
    user_agent: str = DEFAULT_USER_AGENT
    geo_timeout: float = 10.0
    camera_index: int = 0
    log_level: str = "INFO"
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """Build settings from environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            api_key=env.get("GEMINI_API_KEY") or env.get("GOOGLE_API_KEY"),
            model_name=env.get("BINWISE_MODEL", DEFAULT_MODEL),
            geocoder_url=env.get("BINWISE_GEOCODER_URL", DEFAULT_GEOCODER_URL),
            user_agent=env.get("BINWISE_USER_AGENT", DEFAULT_USER_AGENT),
            geo_timeout=float(env.get("BINWISE_GEO_TIMEOUT", "10")),
            camera_index=int(env.get("BINWISE_CAMERA_INDEX", "0")),
            log_level=env.get("BINWISE_LOG_LEVEL", "INFO").upper(),
            allowed_origins=[
                origin.strip()
                for origin in env.get("ALLOWED_ORIGINS", "*").split(",")
                if origin.strip()
            ],
        )


def configure_logging(level: str = "INFO"):
    """Configure root logging once for CLI and server entry points."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
