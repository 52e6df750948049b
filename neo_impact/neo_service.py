"""NASA NeoWs client with transparent substitution of the static catalog."""
from __future__ import annotations
from datetime import date, timedelta
import logging
import math
from typing import Dict, List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from .catalog import FALLBACK_NEOS
from .config import Settings
from .errors import UpstreamUnavailable
from .impact_model import Projectile
from .sources import SourceResult, get_json, parse_payload

log = logging.getLogger(__name__)

DEFAULT_VELOCITY_KMS = 20.0


class DiameterRangeKm(BaseModel):
    estimated_diameter_min: float = Field(..., gt=0)
    estimated_diameter_max: float = Field(..., gt=0)


class EstimatedDiameter(BaseModel):
    kilometers: DiameterRangeKm


class RelativeVelocity(BaseModel):
    kilometers_per_second: float


class MissDistance(BaseModel):
    kilometers: float


class CloseApproach(BaseModel):
    close_approach_date: str
    relative_velocity: RelativeVelocity
    miss_distance: MissDistance
    orbiting_body: str = "Earth"


class OrbitalData(BaseModel):
    orbit_determination_date: Optional[str] = None
    orbital_period: Optional[float] = None
    perihelion_distance: Optional[float] = None
    aphelion_distance: Optional[float] = None
    eccentricity: Optional[float] = None
    inclination: Optional[float] = None


class NeoRecord(BaseModel):
    id: str
    name: str
    absolute_magnitude_h: Optional[float] = None
    estimated_diameter: EstimatedDiameter
    is_potentially_hazardous_asteroid: bool = False
    close_approach_data: List[CloseApproach] = []
    orbital_data: Optional[OrbitalData] = None

    @property
    def diameter_km(self) -> float:
        km = self.estimated_diameter.kilometers
        return 0.5 * (km.estimated_diameter_min + km.estimated_diameter_max)

    @property
    def velocity_kms(self) -> float:
        for ca in self.close_approach_data:
            if ca.relative_velocity.kilometers_per_second > 0:
                return ca.relative_velocity.kilometers_per_second
        return DEFAULT_VELOCITY_KMS

    def to_projectile(self, density_kgpm3: float = 2600.0, angle_deg: float = 45.0) -> Projectile:
        return Projectile(self.diameter_km, self.velocity_kms, density_kgpm3, "rocky", angle_deg)


class NeoPage(BaseModel):
    asteroids: List[NeoRecord]
    total_pages: int
    current_page: int


class FeedEnvelope(BaseModel):
    near_earth_objects: Optional[Dict[str, List[NeoRecord]]] = None


class PageInfo(BaseModel):
    total_pages: int = Field(..., ge=0)
    number: int = Field(..., ge=0)


class BrowseEnvelope(BaseModel):
    near_earth_objects: Optional[List[NeoRecord]] = None
    page: PageInfo


def fallback_records() -> List[NeoRecord]:
    return [NeoRecord.model_validate(r) for r in FALLBACK_NEOS]


def _parse_records(raw, source: str) -> List[NeoRecord]:
    try:
        return [NeoRecord.model_validate(r) for r in raw]
    except (ValidationError, TypeError) as e:
        raise UpstreamUnavailable(source, f"malformed NEO record: {e}") from e


class NeoService:
    """
    feed / get / browse / hazardous over NeoWs. If NeoWs cannot be reached the
    static catalog is served instead and the result is flagged `fallback=True`.
    """

    def __init__(self, settings: Settings, client: httpx.Client | None = None):
        self.settings = settings
        self._client = client or httpx.Client(timeout=settings.http_timeout_s)

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _get(self, path: str, params: dict, allow_404: bool = False):
        params = {**params, "api_key": self.settings.nasa_api_key}
        return get_json(self._client, f"{self.settings.neo_api_base}{path}", params,
                        source="neows", allow_404=allow_404)

    def _fallback(self, what: str, err: UpstreamUnavailable, data) -> SourceResult:
        log.warning("[neo.fallback] op=%s error=%s", what, err.detail)
        return SourceResult(data, fallback=True, warning=str(err))

    def feed(self, start_date: date, end_date: date | None = None) -> SourceResult[List[NeoRecord]]:
        params = {"start_date": start_date.isoformat()}
        if end_date is not None:
            params["end_date"] = end_date.isoformat()
        try:
            envelope = parse_payload(FeedEnvelope, self._get("/feed", params), "neows")
        except UpstreamUnavailable as e:
            return self._fallback("feed", e, fallback_records())
        by_day = envelope.near_earth_objects or {}
        records = [neo for day in sorted(by_day) for neo in by_day[day]]
        log.info("[neo.feed] start=%s end=%s count=%d", start_date, end_date, len(records))
        return SourceResult(records)

    def get(self, neo_id: str) -> SourceResult[Optional[NeoRecord]]:
        try:
            raw = self._get(f"/neo/{neo_id}", {}, allow_404=True)
            record = None if raw is None else _parse_records([raw], "neows")[0]
        except UpstreamUnavailable as e:
            match = next((r for r in fallback_records() if r.id == neo_id), None)
            return self._fallback("get", e, match)
        log.info("[neo.get] id=%s found=%s", neo_id, record is not None)
        return SourceResult(record)

    def browse(self, page: int = 0, size: int = 20) -> SourceResult[NeoPage]:
        try:
            envelope = parse_payload(BrowseEnvelope, self._get("/neo/browse", {"page": page, "size": size}), "neows")
        except UpstreamUnavailable as e:
            records = fallback_records()
            neo_page = NeoPage(
                asteroids=records[page * size:(page + 1) * size],
                total_pages=math.ceil(len(records) / size),
                current_page=page,
            )
            return self._fallback("browse", e, neo_page)
        return SourceResult(NeoPage(
            asteroids=envelope.near_earth_objects or [],
            total_pages=envelope.page.total_pages,
            current_page=envelope.page.number,
        ))

    def hazardous(self, limit: int = 10, today: date | None = None) -> SourceResult[List[NeoRecord]]:
        """Potentially hazardous objects approaching within the next week."""
        today = today or date.today()
        res = self.feed(today, today + timedelta(days=7))
        picked = [r for r in res.data if r.is_potentially_hazardous_asteroid][:limit]
        return SourceResult(picked, fallback=res.fallback, warning=res.warning)
