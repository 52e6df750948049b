"""
Impact-consequence predictor.

Projectile + TargetLocation -> energy -> damage zones ->
{casualties, economic damage, secondary effects, mitigation catalog} -> ImpactPrediction.

Everything here is a pure function of its inputs except the two pluggable
strategies: the impact-probability source and the correction model used by
the heuristic estimator. Inject fixed strategies to get reproducible output.
"""
from __future__ import annotations
from dataclasses import dataclass, asdict
from math import ceil, log10, pi
import logging
import random
from typing import Callable, Sequence

from .catalog import PRESET_PROJECTILES
from .errors import InvalidInput
from .impact_model import (
    Projectile, TargetLocation, DamageZone, EarthquakeEffects, ROCK_TYPES,
    kinetic_energy_megatons, crater_diameter_m, seismic_magnitude, earthquake_effects,
    damage_zones, estimate_casualties, estimate_economic_damage, target_density_for_rock,
)

log = logging.getLogger(__name__)

DEFAULT_POPULATION_DENSITY = 500.0  # people / km^2, suburban
DISPLACEMENT_PER_CASUALTY = 5.0
INDIRECT_DAMAGE_FACTOR = 1.5
INFRASTRUCTURE_MULTIPLIERS = {"roads": 0.8, "buildings": 1.2, "utilities": 1.0}
ESTIMATORS = ("zones", "heuristic")


# -----------------------------
# Result types
# -----------------------------
@dataclass(frozen=True)
class ImpactZone:
    latitude: float
    longitude: float
    radius_km: float
    estimated_casualties: int
    economic_damage_billion: float
    population_displacement: int


@dataclass(frozen=True)
class InfrastructureDamage:
    roads: float
    buildings: float
    utilities: float


@dataclass(frozen=True)
class EconomicImpact:
    direct_damage_billion: float
    indirect_damage_billion: float
    recovery_years: int


@dataclass(frozen=True)
class PopulationImpact:
    displacement: int
    casualties: int
    affected_area_km2: float


@dataclass(frozen=True)
class EnvironmentalImpact:
    crater_diameter_m: float
    dust_cloud_radius_km: float
    seismic_magnitude: float
    earthquake: EarthquakeEffects


@dataclass(frozen=True)
class SecondaryEffects:
    infrastructure_damage: InfrastructureDamage
    economic_impact: EconomicImpact
    population_impact: PopulationImpact
    environmental_impact: EnvironmentalImpact


@dataclass(frozen=True)
class MitigationScenario:
    id: str
    name: str
    description: str
    success_probability: float
    cost_usd: float
    time_required_years: float
    effectiveness_score: float


@dataclass(frozen=True)
class ImpactPrediction:
    asteroid_id: str
    estimator: str
    impact_probability: float | None
    kinetic_energy_mt: float
    crater_diameter_m: float
    damage_zones: tuple[DamageZone, ...]
    impact_zone: ImpactZone
    secondary_effects: SecondaryEffects
    mitigation_scenarios: tuple[MitigationScenario, ...]

    def to_dict(self) -> dict:
        return asdict(self)


# -----------------------------
# Impact probability sources
# -----------------------------
class NotModeled:
    """Orbit-derived impact probability is not computed; reports None."""

    def __call__(self, projectile: Projectile, location: TargetLocation) -> float | None:
        return None


class FixedProbability:
    def __init__(self, value: float):
        if not 0.0 <= value <= 1.0:
            raise InvalidInput(f"probability must be in [0, 1], got {value!r}.")
        self.value = value

    def __call__(self, projectile: Projectile, location: TargetLocation) -> float | None:
        return self.value


class UniformProbability:
    """Placeholder probability drawn uniformly from [low, high)."""

    def __init__(self, low: float = 0.001, high: float = 0.011, seed: int | None = None):
        if not 0.0 <= low <= high <= 1.0:
            raise InvalidInput(f"need 0 <= low <= high <= 1, got low={low!r} high={high!r}.")
        self.low = low
        self.high = high
        self._rng = random.Random(seed)

    def __call__(self, projectile: Projectile, location: TargetLocation) -> float | None:
        return self.low + self._rng.random() * (self.high - self.low)


# -----------------------------
# Correction models (heuristic estimator)
# -----------------------------
CorrectionModel = Callable[[Sequence[float]], Sequence[float]]


class UnitCorrection:
    def __call__(self, features: Sequence[float]) -> Sequence[float]:
        return (1.0, 1.0, 1.0)


class UniformCorrection:
    """Bounded multiplicative noise in [0, 1] for casualties, damage, displacement."""

    def __init__(self, seed: int | None = None):
        self._rng = random.Random(seed)

    def __call__(self, features: Sequence[float]) -> Sequence[float]:
        return tuple(self._rng.random() for _ in range(3))


# -----------------------------
# Features & estimators
# -----------------------------
def rock_type_index(rock_type: str | None) -> float:
    if rock_type in ROCK_TYPES:
        return ROCK_TYPES.index(rock_type) / len(ROCK_TYPES)
    return 0.5


def population_density_at(location: TargetLocation) -> float:
    return location.geology.population_density if location.geology else DEFAULT_POPULATION_DENSITY


def prepare_features(projectile: Projectile, location: TargetLocation) -> list[float]:
    geo = location.geology
    return [
        projectile.diameter_km,
        projectile.velocity_kms,
        projectile.angle_deg,
        location.latitude,
        location.longitude,
        population_density_at(location) / 10000.0,
        (geo.earthquake_count if geo else 0) / 100.0,
        rock_type_index(geo.rock_type if geo else None),
    ]


def heuristic_estimates(features: Sequence[float],
                        correction: CorrectionModel | None = None) -> tuple[int, float, int]:
    """
    Closed-form base estimates scaled by a correction factor.
    Returns (casualties, economic damage in billions USD, displacement), all >= 0.
    """
    diameter = features[0]
    population_density = features[5] * 10000.0
    base_casualties = (diameter * 10.0) ** 2 * population_density * 0.1
    base_damage_usd = (diameter * 100.0) ** 2 * 1e6
    base_displacement = base_casualties * DISPLACEMENT_PER_CASUALTY

    fc, fd, fp = (correction or UnitCorrection())(features)
    return (
        round(abs(fc * base_casualties)),
        round(abs(fd * base_damage_usd)) / 1e9,
        round(abs(fp * base_displacement)),
    )


# -----------------------------
# Secondary effects
# -----------------------------
def infrastructure_damage(energy_mt: float) -> InfrastructureDamage:
    """Percent damaged per category, capped at 100."""
    pct = {k: min(100.0, energy_mt * 5.0 * m) for k, m in INFRASTRUCTURE_MULTIPLIERS.items()}
    return InfrastructureDamage(**pct)


def economic_breakdown(direct_damage_billion: float) -> EconomicImpact:
    direct_usd = direct_damage_billion * 1e9
    recovery = max(0, ceil(log10(direct_usd) / 2.0)) if direct_usd > 1.0 else 0
    return EconomicImpact(
        direct_damage_billion=direct_damage_billion,
        indirect_damage_billion=direct_damage_billion * INDIRECT_DAMAGE_FACTOR,
        recovery_years=recovery,
    )


def mitigation_scenarios(location: TargetLocation | None = None) -> tuple[MitigationScenario, ...]:
    """The fixed deflection/evacuation catalog; only the evacuation cost depends on the target."""
    return (
        MitigationScenario(
            "kinetic-impactor", "Kinetic Impactor",
            "Use a spacecraft to collide with the asteroid and alter its trajectory",
            0.75, 500_000_000.0, 5.0, 85.0,
        ),
        MitigationScenario(
            "gravity-tractor", "Gravity Tractor",
            "Use spacecraft gravity to slowly pull the asteroid off course",
            0.65, 800_000_000.0, 10.0, 70.0,
        ),
        MitigationScenario(
            "nuclear-deflection", "Nuclear Deflection",
            "Detonate nuclear device near asteroid to vaporize surface material and change trajectory",
            0.85, 1_200_000_000.0, 3.0, 90.0,
        ),
        MitigationScenario(
            "evacuation", "Mass Evacuation",
            "Evacuate population from predicted impact zone",
            0.95, 2_000_000_000.0 if location is not None else 1_000_000_000.0, 1.0, 60.0,
        ),
    )


# -----------------------------
# Predictor
# -----------------------------
class ImpactPredictor:
    """
    estimator="zones"     casualties/damage from the banded damage zones (default)
    estimator="heuristic" polynomial base estimates scaled by `correction`
    """

    def __init__(self, estimator: str = "zones", probability=None,
                 correction: CorrectionModel | None = None):
        if estimator not in ESTIMATORS:
            raise InvalidInput(f"Unknown estimator '{estimator}'.")
        self.estimator = estimator
        self.probability = probability if probability is not None else UniformProbability()
        self.correction = correction if correction is not None else UnitCorrection()

    def predict(self, projectile: Projectile, location: TargetLocation,
                asteroid_id: str = "unknown") -> ImpactPrediction:
        energy_mt = kinetic_energy_megatons(projectile.diameter_km, projectile.velocity_kms,
                                            projectile.density_kgpm3)
        geo = location.geology
        crater_m = crater_diameter_m(energy_mt, target_density_for_rock(geo.rock_type if geo else None))
        zones = damage_zones(energy_mt)
        radius_km = zones[-1].radius_km

        if self.estimator == "zones":
            casualties = estimate_casualties(zones, population_density_at(location))
            damage_billion = estimate_economic_damage(zones)
            displacement = round(casualties * DISPLACEMENT_PER_CASUALTY)
        else:
            features = prepare_features(projectile, location)
            casualties, damage_billion, displacement = heuristic_estimates(features, self.correction)

        log.debug("[predict] id=%s estimator=%s E_mt=%.4g crater_m=%.4g casualties=%d damage_bn=%.2f",
                  asteroid_id, self.estimator, energy_mt, crater_m, casualties, damage_billion)

        secondary = SecondaryEffects(
            infrastructure_damage=infrastructure_damage(energy_mt),
            economic_impact=economic_breakdown(damage_billion),
            population_impact=PopulationImpact(
                displacement=displacement,
                casualties=casualties,
                affected_area_km2=pi * radius_km**2,
            ),
            environmental_impact=EnvironmentalImpact(
                crater_diameter_m=crater_m,
                dust_cloud_radius_km=crater_m * 10.0 / 1000.0,
                seismic_magnitude=seismic_magnitude(energy_mt),
                earthquake=earthquake_effects(energy_mt),
            ),
        )
        return ImpactPrediction(
            asteroid_id=asteroid_id,
            estimator=self.estimator,
            impact_probability=self.probability(projectile, location),
            kinetic_energy_mt=energy_mt,
            crater_diameter_m=crater_m,
            damage_zones=zones,
            impact_zone=ImpactZone(
                latitude=location.latitude,
                longitude=location.longitude,
                radius_km=radius_km,
                estimated_casualties=casualties,
                economic_damage_billion=damage_billion,
                population_displacement=displacement,
            ),
            secondary_effects=secondary,
            mitigation_scenarios=mitigation_scenarios(location),
        )


def simulate_preset(preset_id: str, location: TargetLocation,
                    predictor: ImpactPredictor | None = None) -> ImpactPrediction:
    if preset_id not in PRESET_PROJECTILES:
        raise InvalidInput(f"Unknown preset '{preset_id}'.")
    _, projectile = PRESET_PROJECTILES[preset_id]
    return (predictor or ImpactPredictor()).predict(projectile, location, asteroid_id=preset_id)
