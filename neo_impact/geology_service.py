"""
Geological / population context for an impact point.

Earthquake history comes from the USGS FDSN event service. Rock type, soil type
and population density are deterministic location-keyed estimates, so a caller
always gets a best-effort GeologicalData even when USGS is unreachable.
"""
from __future__ import annotations
from datetime import datetime, timedelta, timezone
import logging
import math
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel

from .config import Settings
from .errors import UpstreamUnavailable
from .impact_model import GeologicalData, ROCK_TYPES, TargetLocation
from .sources import SourceResult, get_json, parse_payload

log = logging.getLogger(__name__)

SOIL_TYPES = ("Clay", "Sand", "Loam", "Silt", "Rocky")
RURAL_DENSITY = 100.0  # people / km^2

# (lat, lon, people / km^2)
MAJOR_CITIES = (
    (40.7128, -74.006, 10000.0),    # New York
    (34.0522, -118.2437, 8000.0),   # Los Angeles
    (51.5074, -0.1278, 5500.0),     # London
    (35.6762, 139.6503, 6000.0),    # Tokyo
)


def estimate_rock_type(lat: float, lon: float) -> str:
    return ROCK_TYPES[abs(math.floor(lat + lon)) % len(ROCK_TYPES)]


def estimate_soil_type(lat: float, lon: float) -> str:
    return SOIL_TYPES[abs(math.floor(lat * 2 + lon)) % len(SOIL_TYPES)]


def estimate_population_density(lat: float, lon: float) -> float:
    """Nearest major city's density decayed by exp(-distance in degrees), floored at rural density."""
    closest = math.inf
    density = RURAL_DENSITY
    for c_lat, c_lon, c_density in MAJOR_CITIES:
        d = math.hypot(lat - c_lat, lon - c_lon)
        if d < closest:
            closest = d
            density = c_density * math.exp(-d)
    return max(density, RURAL_DENSITY)


class UsgsEnvelope(BaseModel):
    features: Optional[List[Dict[str, Any]]] = None


def _usgs_time(t: datetime) -> str:
    return t.strftime("%Y-%m-%dT%H:%M:%S")


class GeologyService:
    def __init__(self, settings: Settings, client: httpx.Client | None = None):
        self.settings = settings
        self._client = client or httpx.Client(timeout=settings.http_timeout_s)

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def earthquake_history(self, lat: float, lon: float, radius_km: float = 100.0,
                           start: Optional[datetime] = None,
                           end: Optional[datetime] = None) -> SourceResult[List[Dict[str, Any]]]:
        """USGS GeoJSON features around (lat, lon); empty and flagged when USGS fails."""
        TargetLocation(lat, lon)  # range check
        params: Dict[str, Any] = {
            "format": "geojson",
            "latitude": lat,
            "longitude": lon,
            "maxradiuskm": radius_km,
            "orderby": "time",
        }
        if start is not None:
            params["starttime"] = _usgs_time(start)
        if end is not None:
            params["endtime"] = _usgs_time(end)
        try:
            data = get_json(self._client, self.settings.usgs_earthquake_api, params, source="usgs")
            envelope = parse_payload(UsgsEnvelope, data, "usgs")
        except UpstreamUnavailable as e:
            log.warning("[geology.fallback] lat=%s lon=%s error=%s", lat, lon, e.detail)
            return SourceResult([], fallback=True, warning=str(e))
        features = envelope.features or []
        log.info("[geology.quakes] lat=%s lon=%s radius_km=%s count=%d", lat, lon, radius_km, len(features))
        return SourceResult(features)

    def geological_data(self, lat: float, lon: float,
                        now: Optional[datetime] = None) -> SourceResult[GeologicalData]:
        now = now or datetime.now(timezone.utc)
        start = now - timedelta(days=365.25 * self.settings.earthquake_lookback_years)
        quakes = self.earthquake_history(lat, lon, self.settings.earthquake_radius_km, start, now)
        geo = GeologicalData(
            rock_type=estimate_rock_type(lat, lon),
            soil_type=estimate_soil_type(lat, lon),
            population_density=estimate_population_density(lat, lon),
            earthquake_count=len(quakes.data),
        )
        return SourceResult(geo, fallback=quakes.fallback, warning=quakes.warning)
