from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import date
import logging
from typing import Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .catalog import PRESET_PROJECTILES
from .config import Settings, get_settings
from .errors import InvalidInput
from .geo import zones_as_geojson
from .geology_service import GeologyService
from .impact_model import (
    GeologicalData, Projectile, TargetLocation,
    crater_diameter_m, damage_zones, earthquake_effects, seismic_magnitude,
)
from .neo_service import NeoService
from .predictor import (
    FixedProbability, ImpactPredictor, NotModeled, UniformProbability, simulate_preset,
)

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    log.info("[startup] probability=%s demo_key=%s", settings.impact_probability, settings.uses_demo_key)
    yield


app = FastAPI(title="NEO impact-consequence calculator", version=__version__, lifespan=lifespan)


@app.exception_handler(InvalidInput)
def invalid_input_handler(request: Request, exc: InvalidInput):
    log.info("[invalid] path=%s detail=%s", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# -------------------------------
# Dependencies
# -------------------------------
def settings_dep() -> Settings:
    return get_settings()


def neo_service_dep(settings: Settings = Depends(settings_dep)):
    with NeoService(settings) as svc:
        yield svc


def geology_service_dep(settings: Settings = Depends(settings_dep)):
    with GeologyService(settings) as svc:
        yield svc


# -------------------------------
# Request models
# -------------------------------
class ProjectileIn(BaseModel):
    diameter_km: float = Field(..., gt=0, le=1000, description="Projectile diameter in kilometres")
    velocity_kms: float = Field(..., gt=0, le=300, description="Impact speed in km/s")
    density_kgpm3: Optional[float] = Field(None, gt=0, le=25000, description="Bulk density; defaults by composition")
    composition: Literal["rocky", "metallic", "icy"] = "rocky"
    angle_deg: float = Field(45.0, gt=0, le=90, description="Entry angle to horizontal in degrees")

    def to_domain(self) -> Projectile:
        if self.density_kgpm3 is None:
            return Projectile.from_composition(self.diameter_km, self.velocity_kms, self.composition, self.angle_deg)
        return Projectile(self.diameter_km, self.velocity_kms, self.density_kgpm3, self.composition, self.angle_deg)


class GeologyIn(BaseModel):
    rock_type: str = "Granite"
    soil_type: str = "Loam"
    population_density: float = Field(..., ge=0, description="People per km^2")
    earthquake_count: int = Field(0, ge=0)


class TargetIn(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    name: Optional[str] = None
    geology: Optional[GeologyIn] = None

    def to_domain(self, geology: Optional[GeologicalData] = None) -> TargetLocation:
        if self.geology is not None:
            geology = GeologicalData(**self.geology.model_dump())
        return TargetLocation(self.latitude, self.longitude, self.name, geology)


class PredictOptions(BaseModel):
    estimator: Literal["zones", "heuristic"] = "zones"
    lookup_geology: bool = Field(True, description="Fetch geology when the target carries none")
    impact_probability: Optional[float] = Field(None, ge=0, le=1, description="Fixed probability override")


class PredictRequest(BaseModel):
    projectile: ProjectileIn
    target: TargetIn
    asteroid_id: str = "unknown"
    options: Optional[PredictOptions] = None


class ZonesRequest(BaseModel):
    projectile: ProjectileIn
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    steps: int = Field(64, ge=8, le=512)


def _predictor(settings: Settings, opts: PredictOptions) -> ImpactPredictor:
    if opts.impact_probability is not None:
        probability = FixedProbability(opts.impact_probability)
    elif settings.impact_probability == "none":
        probability = NotModeled()
    else:
        probability = UniformProbability(seed=settings.random_seed)
    return ImpactPredictor(estimator=opts.estimator, probability=probability)


def _resolve_target(target: TargetIn, opts: PredictOptions, geology: GeologyService):
    if target.geology is not None or not opts.lookup_geology:
        return target.to_domain(), {"fallback": False, "warning": None, "looked_up": False}
    res = geology.geological_data(target.latitude, target.longitude)
    return target.to_domain(res.data), {"fallback": res.fallback, "warning": res.warning, "looked_up": True}


# -------------------------------
# Health + configuration
# -------------------------------
@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/config/status")
def config_status(settings: Settings = Depends(settings_dep)):
    return {
        "has_nasa_api_key": not settings.uses_demo_key,
        "nasa_api_key_length": 0 if settings.uses_demo_key else len(settings.nasa_api_key),
        "impact_probability": settings.impact_probability,
        "log_level": settings.log_level,
    }


# -------------------------------
# Impact endpoints
# -------------------------------
@app.post("/impact/energy")
def impact_energy(projectile: ProjectileIn):
    p = projectile.to_domain()
    energy_mt = p.energy_mt
    return {
        "projectile": asdict(p),
        "mass_kg": p.mass_kg,
        "kinetic_J": p.kinetic_energy_J,
        "energy_mt": energy_mt,
        "crater_diameter_m": crater_diameter_m(energy_mt),
        "seismic_magnitude": seismic_magnitude(energy_mt),
        "earthquake": asdict(earthquake_effects(energy_mt)),
        "damage_zones": [asdict(z) for z in damage_zones(energy_mt)],
    }


@app.post("/impact/predict")
def impact_predict(req: PredictRequest,
                   settings: Settings = Depends(settings_dep),
                   geology: GeologyService = Depends(geology_service_dep)):
    opts = req.options or PredictOptions()
    target, geology_source = _resolve_target(req.target, opts, geology)
    prediction = _predictor(settings, opts).predict(req.projectile.to_domain(), target, req.asteroid_id)
    return {"prediction": prediction.to_dict(), "sources": {"geology": geology_source}}


@app.post("/impact/zones.geojson")
def impact_zones_geojson(req: ZonesRequest):
    zones = damage_zones(req.projectile.to_domain().energy_mt)
    return zones_as_geojson(req.latitude, req.longitude, zones, steps=req.steps)


@app.get("/presets")
def presets():
    return [
        {"id": pid, "name": name, **asdict(p)}
        for pid, (name, p) in PRESET_PROJECTILES.items()
    ]


@app.post("/presets/{preset_id}/simulate")
def preset_simulate(preset_id: str, target: TargetIn,
                    settings: Settings = Depends(settings_dep)):
    if preset_id not in PRESET_PROJECTILES:
        raise HTTPException(status_code=404, detail=f"Unknown preset '{preset_id}'.")
    prediction = simulate_preset(preset_id, target.to_domain(), _predictor(settings, PredictOptions()))
    return {"prediction": prediction.to_dict()}


# -------------------------------
# Data-source endpoints
# -------------------------------
@app.get("/neo/browse")
def neo_browse(page: int = Query(0, ge=0), size: int = Query(20, ge=1, le=100),
               neo: NeoService = Depends(neo_service_dep)):
    res = neo.browse(page, size)
    return {**res.data.model_dump(), "fallback": res.fallback, "warning": res.warning}


@app.get("/neo/feed")
def neo_feed(start_date: date = Query(..., description="YYYY-MM-DD"),
             end_date: Optional[date] = Query(None, description="YYYY-MM-DD"),
             neo: NeoService = Depends(neo_service_dep)):
    res = neo.feed(start_date, end_date)
    return {"asteroids": [r.model_dump() for r in res.data], "fallback": res.fallback, "warning": res.warning}


@app.get("/neo/hazardous")
def neo_hazardous(limit: int = Query(10, ge=1, le=100), neo: NeoService = Depends(neo_service_dep)):
    res = neo.hazardous(limit)
    return {"asteroids": [r.model_dump() for r in res.data], "fallback": res.fallback, "warning": res.warning}


@app.get("/neo/{neo_id}")
def neo_detail(neo_id: str, neo: NeoService = Depends(neo_service_dep)):
    res = neo.get(neo_id)
    if res.data is None:
        raise HTTPException(status_code=404, detail=f"Unknown NEO '{neo_id}'.")
    return {"asteroid": res.data.model_dump(), "fallback": res.fallback, "warning": res.warning}


@app.get("/neo/{neo_id}/impact")
def neo_impact(neo_id: str,
               lat: float = Query(..., ge=-90, le=90),
               lon: float = Query(..., ge=-180, le=180),
               settings: Settings = Depends(settings_dep),
               neo: NeoService = Depends(neo_service_dep),
               geology: GeologyService = Depends(geology_service_dep)):
    res = neo.get(neo_id)
    if res.data is None:
        raise HTTPException(status_code=404, detail=f"Unknown NEO '{neo_id}'.")
    opts = PredictOptions()
    target, geology_source = _resolve_target(TargetIn(latitude=lat, longitude=lon), opts, geology)
    prediction = _predictor(settings, opts).predict(res.data.to_projectile(), target, neo_id)
    return {
        "prediction": prediction.to_dict(),
        "sources": {
            "neo": {"fallback": res.fallback, "warning": res.warning},
            "geology": geology_source,
        },
    }


@app.get("/geology")
def geology_at(lat: float = Query(..., ge=-90, le=90, description="Latitude in decimal degrees"),
               lon: float = Query(..., ge=-180, le=180, description="Longitude in decimal degrees"),
               geology: GeologyService = Depends(geology_service_dep)):
    res = geology.geological_data(lat, lon)
    return {"geology": asdict(res.data), "fallback": res.fallback, "warning": res.warning}
