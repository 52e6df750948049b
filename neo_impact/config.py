from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache
import os

from dotenv import load_dotenv

DEMO_KEY = "DEMO_KEY"
NEO_API_BASE = "https://api.nasa.gov/neo/rest/v1"
USGS_EARTHQUAKE_API = "https://earthquake.usgs.gov/fdsnws/event/1/query"
PROBABILITY_MODES = ("uniform", "none")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    return default if raw in (None, "") else float(raw)


@dataclass(frozen=True)
class Settings:
    nasa_api_key: str = DEMO_KEY
    neo_api_base: str = NEO_API_BASE
    usgs_earthquake_api: str = USGS_EARTHQUAKE_API
    http_timeout_s: float = 10.0
    earthquake_radius_km: float = 200.0
    earthquake_lookback_years: int = 10
    impact_probability: str = "uniform"
    random_seed: int | None = None
    log_level: str = "INFO"

    def __post_init__(self):
        if self.impact_probability not in PROBABILITY_MODES:
            raise ValueError(f"Unknown IMPACT_PROBABILITY '{self.impact_probability}'.")

    @property
    def uses_demo_key(self) -> bool:
        return self.nasa_api_key == DEMO_KEY

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from the process environment (and a .env file, if any)."""
        load_dotenv()
        seed = os.getenv("RANDOM_SEED")
        return cls(
            nasa_api_key=os.getenv("NASA_API_KEY") or DEMO_KEY,
            neo_api_base=os.getenv("NEO_API_BASE", NEO_API_BASE).rstrip("/"),
            usgs_earthquake_api=os.getenv("USGS_EARTHQUAKE_API", USGS_EARTHQUAKE_API),
            http_timeout_s=_env_float("HTTP_TIMEOUT_S", 10.0),
            earthquake_radius_km=_env_float("EARTHQUAKE_RADIUS_KM", 200.0),
            earthquake_lookback_years=int(_env_float("EARTHQUAKE_LOOKBACK_YEARS", 10)),
            impact_probability=os.getenv("IMPACT_PROBABILITY", "uniform").lower(),
            random_seed=int(seed) if seed else None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
