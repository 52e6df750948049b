from __future__ import annotations
from dataclasses import dataclass
from math import isfinite, pi, log10

from .errors import InvalidInput

# -----------------------------
# Physical constants & defaults
# -----------------------------
J_PER_MT_TNT = 4.184e15          # J in 1 megaton TNT
R_EARTH_KM = 6371.0              # km
CRATER_K = 1.8                   # empirical crater scaling constant
DEFAULT_TARGET_DENSITY = 2600.0  # kg/m^3, typical crustal rock
DEFAULT_GDP_PER_KM2_BILLION = 1.5
FELT_MEFF = 3.5                  # effective magnitude still felt by people

COMPOSITION_DENSITIES = {"rocky": 2600.0, "metallic": 7800.0, "icy": 1000.0}

# Rock types reported by the geology source, in the order used for feature indices
ROCK_TYPES = ("Granite", "Basalt", "Limestone", "Sandstone", "Shale")
ROCK_DENSITIES = {
    "Granite": 2700.0,
    "Basalt": 3000.0,
    "Limestone": 2600.0,
    "Sandstone": 2300.0,
    "Shale": 2400.0,
}

# kind -> (radius multiplier km, casualty rate, economic damage rate, description, color)
ZONE_TABLE = (
    ("total_destruction", 2.0, 0.95, 1.00, "Total destruction - nothing survives", "#ff0000"),
    ("severe_damage", 5.0, 0.50, 0.70, "Severe structural damage, high casualties", "#ff6600"),
    ("moderate_damage", 12.0, 0.10, 0.30, "Moderate damage, broken windows, injuries", "#ffaa00"),
    ("light_damage", 25.0, 0.01, 0.05, "Light damage, felt strongly", "#ffdd00"),
)


def _require_positive(**values: float) -> None:
    for name, value in values.items():
        if not value > 0:
            raise InvalidInput(f"{name} must be > 0, got {value!r}.")


@dataclass(frozen=True)
class Projectile:
    diameter_km: float
    velocity_kms: float
    density_kgpm3: float = COMPOSITION_DENSITIES["rocky"]
    composition: str = "rocky"
    angle_deg: float = 45.0  # to HORIZONTAL

    def __post_init__(self):
        _require_positive(diameter_km=self.diameter_km, velocity_kms=self.velocity_kms,
                          density_kgpm3=self.density_kgpm3)
        if self.composition not in COMPOSITION_DENSITIES:
            raise InvalidInput(f"Unknown composition '{self.composition}'.")
        if not 0.0 < self.angle_deg <= 90.0:
            raise InvalidInput(f"angle_deg must be in (0, 90], got {self.angle_deg!r}.")
        kinetic_energy_megatons(self.diameter_km, self.velocity_kms, self.density_kgpm3)

    @classmethod
    def from_composition(cls, diameter_km: float, velocity_kms: float,
                         composition: str = "rocky", angle_deg: float = 45.0) -> "Projectile":
        if composition not in COMPOSITION_DENSITIES:
            raise InvalidInput(f"Unknown composition '{composition}'.")
        return cls(diameter_km, velocity_kms, COMPOSITION_DENSITIES[composition], composition, angle_deg)

    @property
    def radius_m(self) -> float:
        return self.diameter_km * 500.0

    @property
    def mass_kg(self) -> float:
        return (4.0 / 3.0) * pi * self.radius_m**3 * self.density_kgpm3

    @property
    def kinetic_energy_J(self) -> float:
        return 0.5 * self.mass_kg * (self.velocity_kms * 1000.0) ** 2

    @property
    def energy_mt(self) -> float:
        return kinetic_energy_megatons(self.diameter_km, self.velocity_kms, self.density_kgpm3)


@dataclass(frozen=True)
class GeologicalData:
    rock_type: str
    soil_type: str
    population_density: float  # people / km^2
    earthquake_count: int = 0

    def __post_init__(self):
        if self.population_density < 0:
            raise InvalidInput(f"population_density must be >= 0, got {self.population_density!r}.")
        if self.earthquake_count < 0:
            raise InvalidInput(f"earthquake_count must be >= 0, got {self.earthquake_count!r}.")


@dataclass(frozen=True)
class TargetLocation:
    latitude: float
    longitude: float
    name: str | None = None
    geology: GeologicalData | None = None

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise InvalidInput(f"latitude must be in [-90, 90], got {self.latitude!r}.")
        if not -180.0 <= self.longitude <= 180.0:
            raise InvalidInput(f"longitude must be in [-180, 180], got {self.longitude!r}.")


@dataclass(frozen=True)
class DamageZone:
    kind: str
    radius_km: float
    casualty_rate: float
    damage_rate: float
    description: str = ""
    color: str = "#3388ff"

    @property
    def area_km2(self) -> float:
        return pi * self.radius_km**2


@dataclass(frozen=True)
class EarthquakeEffects:
    magnitude: float
    epicenter_depth_km: float
    felt_radius_km: float | None
    shake_intensity: float  # 0..1
    mercalli_band: str


# ---------- Energetics ----------
def kinetic_energy_megatons(diameter_km: float, velocity_kms: float, density_kgpm3: float) -> float:
    """Sphere of the given diameter and density, E = 1/2 m v^2, expressed in Mt TNT."""
    _require_positive(diameter_km=diameter_km, velocity_kms=velocity_kms, density_kgpm3=density_kgpm3)
    try:
        volume = (4.0 / 3.0) * pi * (diameter_km * 500.0) ** 3
        energy_J = 0.5 * volume * density_kgpm3 * (velocity_kms * 1000.0) ** 2
    except OverflowError:
        energy_J = float("inf")
    if not isfinite(energy_J):
        raise InvalidInput(
            f"Kinetic energy overflows for diameter_km={diameter_km!r}, velocity_kms={velocity_kms!r}.")
    return energy_J / J_PER_MT_TNT


def _check_energy(energy_mt: float) -> None:
    if energy_mt < 0:
        raise InvalidInput(f"energy_mt must be >= 0, got {energy_mt!r}.")


# ---------- Crater ----------
def crater_diameter_m(energy_mt: float, target_density_kgpm3: float = DEFAULT_TARGET_DENSITY) -> float:
    """D = k (E/rho)^0.25, E in joules, D in metres."""
    _check_energy(energy_mt)
    _require_positive(target_density_kgpm3=target_density_kgpm3)
    energy_J = energy_mt * J_PER_MT_TNT
    return CRATER_K * (energy_J / target_density_kgpm3) ** 0.25


def target_density_for_rock(rock_type: str | None) -> float:
    return ROCK_DENSITIES.get(rock_type or "", DEFAULT_TARGET_DENSITY)


# ---------- Seismic ----------
def seismic_magnitude(energy_mt: float) -> float:
    if energy_mt <= 0:
        return 0.0
    energy_J = energy_mt * J_PER_MT_TNT
    return max(0.0, (2.0 / 3.0) * (log10(energy_J) - 4.8))


def distance_for_effective_magnitude(magnitude: float, meff_target: float) -> float | None:
    """Distance (km) where the attenuated magnitude drops to meff_target, None outside the law's bands."""
    r1 = (magnitude - meff_target) / 0.0238
    if 0.0 <= r1 < 60.0:
        return r1
    r2 = (magnitude - 1.1644 - meff_target) / 0.0048
    if 60.0 <= r2 < 700.0:
        return r2
    expo = (magnitude - 6.399 - meff_target) / 1.66
    r3_km = (10.0 ** expo) * R_EARTH_KM
    return r3_km if r3_km >= 700.0 else None


def mmi_band_from_meff(meff: float) -> str:
    if meff < 1.0:   return "-"
    if meff < 2.0:   return "I"
    if meff < 3.0:   return "I-II"
    if meff < 4.0:   return "III-IV"
    if meff < 5.0:   return "IV-V"
    if meff < 6.0:   return "VI-VII"
    if meff < 7.0:   return "VII-VIII"
    if meff < 8.0:   return "IX-X"
    if meff < 9.0:   return "X-XI"
    return "XII"


def earthquake_effects(energy_mt: float) -> EarthquakeEffects:
    M = seismic_magnitude(energy_mt)
    felt = 0.0 if M <= FELT_MEFF else distance_for_effective_magnitude(M, FELT_MEFF)
    return EarthquakeEffects(
        magnitude=M,
        epicenter_depth_km=0.0,
        felt_radius_km=felt,
        shake_intensity=min(1.0, M / 10.0),
        mercalli_band=mmi_band_from_meff(M),
    )


# ---------- Damage zones ----------
def damage_zones(energy_mt: float) -> tuple[DamageZone, ...]:
    """Four nested blast bands; every radius scales with the cube root of energy."""
    _check_energy(energy_mt)
    scale = energy_mt ** (1.0 / 3.0)
    return tuple(
        DamageZone(kind, scale * mult, casualty_rate, damage_rate, description, color)
        for kind, mult, casualty_rate, damage_rate, description, color in ZONE_TABLE
    )


# Rates apply to each zone's full disk; inner zones are not subtracted, so
# population near ground zero is counted once per enclosing zone.
def estimate_casualties(zones, population_density: float) -> int:
    if population_density < 0:
        raise InvalidInput(f"population_density must be >= 0, got {population_density!r}.")
    casualties = 0.0
    for z in zones:
        casualties += z.area_km2 * population_density * z.casualty_rate
    return round(casualties)


def estimate_economic_damage(zones, gdp_per_km2_billion: float = DEFAULT_GDP_PER_KM2_BILLION) -> float:
    """Damage in billions USD."""
    if gdp_per_km2_billion < 0:
        raise InvalidInput(f"gdp_per_km2_billion must be >= 0, got {gdp_per_km2_billion!r}.")
    total = 0.0
    for z in zones:
        total += z.area_km2 * gdp_per_km2_billion * z.damage_rate
    return round(total, 2)
