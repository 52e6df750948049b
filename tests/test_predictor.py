"""Tests for the full prediction pipeline and its pluggable strategies."""
import math

import pytest

from neo_impact.errors import InvalidInput
from neo_impact.impact_model import (
    GeologicalData,
    Projectile,
    TargetLocation,
    crater_diameter_m,
    damage_zones,
    estimate_casualties,
    estimate_economic_damage,
)
from neo_impact.predictor import (
    DEFAULT_POPULATION_DENSITY,
    FixedProbability,
    ImpactPredictor,
    NotModeled,
    UniformCorrection,
    UniformProbability,
    UnitCorrection,
    economic_breakdown,
    heuristic_estimates,
    infrastructure_damage,
    mitigation_scenarios,
    prepare_features,
    rock_type_index,
    simulate_preset,
)

LARGE = Projectile(1.0, 20.0, 2600.0)
SMALL = Projectile(0.05, 18.0, 2500.0)
PARIS = TargetLocation(48.8566, 2.3522, "Paris")


def _geo(density=2000.0, rock="Granite", quakes=12):
    return GeologicalData(rock, "Loam", density, quakes)


def _predictor(**kw):
    kw.setdefault("probability", FixedProbability(0.005))
    return ImpactPredictor(**kw)


# ── end-to-end ──────────────────────────────────────────────────────


class TestPredict:

    def test_one_km_scenario(self):
        pred = _predictor().predict(LARGE, PARIS, "large")
        assert 1e4 < pred.kinetic_energy_mt < 1e5
        assert pred.crater_diameter_m == pytest.approx(crater_diameter_m(pred.kinetic_energy_mt))
        radii = [z.radius_km for z in pred.damage_zones]
        assert radii == sorted(radii) and len(set(radii)) == 4
        zone = pred.impact_zone
        assert math.isfinite(zone.estimated_casualties) and zone.estimated_casualties >= 0
        assert math.isfinite(zone.economic_damage_billion) and zone.economic_damage_billion >= 0

    def test_zones_estimator_uses_default_density_without_geology(self):
        pred = _predictor().predict(LARGE, PARIS)
        zones = damage_zones(pred.kinetic_energy_mt)
        assert pred.impact_zone.estimated_casualties == estimate_casualties(zones, DEFAULT_POPULATION_DENSITY)
        assert pred.impact_zone.economic_damage_billion == estimate_economic_damage(zones)
        assert pred.impact_zone.population_displacement == 5 * pred.impact_zone.estimated_casualties

    def test_geology_density_drives_casualties(self):
        sparse = TargetLocation(10.0, 10.0, geology=_geo(density=10.0))
        dense = TargetLocation(10.0, 10.0, geology=_geo(density=10000.0))
        p = _predictor()
        assert p.predict(LARGE, sparse).impact_zone.estimated_casualties < \
            p.predict(LARGE, dense).impact_zone.estimated_casualties

    def test_rock_type_changes_crater(self):
        basalt = TargetLocation(0.0, 0.0, geology=_geo(rock="Basalt"))
        sandstone = TargetLocation(0.0, 0.0, geology=_geo(rock="Sandstone"))
        p = _predictor()
        assert p.predict(LARGE, basalt).crater_diameter_m < p.predict(LARGE, sandstone).crater_diameter_m

    def test_impact_radius_is_outer_zone(self):
        pred = _predictor().predict(LARGE, PARIS)
        assert pred.impact_zone.radius_km == pred.damage_zones[-1].radius_km
        area = pred.secondary_effects.population_impact.affected_area_km2
        assert area == pytest.approx(math.pi * pred.impact_zone.radius_km**2)

    def test_small_object_has_smaller_footprint(self):
        p = _predictor()
        small, large = p.predict(SMALL, PARIS), p.predict(LARGE, PARIS)
        assert small.damage_zones[0].radius_km < large.damage_zones[0].radius_km
        assert 1.0 <= small.kinetic_energy_mt < 10.0

    def test_idempotent_with_fixed_strategies(self):
        p = _predictor(estimator="heuristic", correction=UnitCorrection())
        loc = TargetLocation(35.0, 139.0, geology=_geo())
        assert p.predict(LARGE, loc, "x") == p.predict(LARGE, loc, "x")

    def test_only_probability_varies_with_random_source(self):
        p = ImpactPredictor(probability=UniformProbability(seed=7))
        a, b = p.predict(LARGE, PARIS).to_dict(), p.predict(LARGE, PARIS).to_dict()
        pa, pb = a.pop("impact_probability"), b.pop("impact_probability")
        assert a == b
        assert 0.001 <= pa <= 0.011 and 0.001 <= pb <= 0.011

    def test_secondary_effects_assembled(self):
        pred = _predictor().predict(SMALL, PARIS)
        env = pred.secondary_effects.environmental_impact
        assert env.dust_cloud_radius_km == pytest.approx(env.crater_diameter_m * 10 / 1000)
        assert env.earthquake.magnitude == env.seismic_magnitude
        econ = pred.secondary_effects.economic_impact
        assert econ.direct_damage_billion == pred.impact_zone.economic_damage_billion
        assert econ.indirect_damage_billion == pytest.approx(1.5 * econ.direct_damage_billion)

    def test_heuristic_estimator(self):
        loc = TargetLocation(0.0, 0.0, geology=_geo(density=1000.0))
        pred = _predictor(estimator="heuristic").predict(LARGE, loc)
        # (1 km * 10)^2 * 1000 * 0.1
        assert pred.impact_zone.estimated_casualties == 10000
        assert pred.impact_zone.economic_damage_billion == pytest.approx(10.0)
        assert pred.impact_zone.population_displacement == 50000

    def test_to_dict(self):
        d = _predictor().predict(LARGE, PARIS, "abc").to_dict()
        assert d["asteroid_id"] == "abc"
        assert d["impact_probability"] == 0.005
        assert len(d["mitigation_scenarios"]) == 4
        assert d["damage_zones"][0]["kind"] == "total_destruction"

    def test_unknown_estimator(self):
        with pytest.raises(InvalidInput):
            ImpactPredictor(estimator="neural")


# ── probability sources ─────────────────────────────────────────────


class TestProbability:

    def test_not_modeled(self):
        assert ImpactPredictor(probability=NotModeled()).predict(SMALL, PARIS).impact_probability is None

    def test_fixed_bounds(self):
        with pytest.raises(InvalidInput):
            FixedProbability(1.5)

    def test_uniform_range(self):
        src = UniformProbability(seed=1)
        for _ in range(200):
            assert 0.001 <= src(SMALL, PARIS) < 0.011

    def test_uniform_seed_reproducible(self):
        a, b = UniformProbability(seed=3), UniformProbability(seed=3)
        assert [a(SMALL, PARIS) for _ in range(5)] == [b(SMALL, PARIS) for _ in range(5)]

    def test_uniform_bounds_validated(self):
        with pytest.raises(InvalidInput):
            UniformProbability(low=0.5, high=0.1)


# ── features & heuristic path ───────────────────────────────────────


class TestHeuristic:

    def test_features(self):
        loc = TargetLocation(12.0, -7.0, geology=_geo(density=5000.0, rock="Limestone", quakes=40))
        f = prepare_features(Projectile(0.3, 12.0, angle_deg=30.0), loc)
        assert f == pytest.approx([0.3, 12.0, 30.0, 12.0, -7.0, 0.5, 0.4, 0.4])

    def test_features_without_geology(self):
        f = prepare_features(SMALL, PARIS)
        assert f[5] == DEFAULT_POPULATION_DENSITY / 10000.0
        assert f[6] == 0.0
        assert f[7] == 0.5

    def test_rock_type_index(self):
        assert rock_type_index("Granite") == 0.0
        assert rock_type_index("Shale") == pytest.approx(0.8)
        assert rock_type_index("Chalk") == 0.5

    def test_negative_correction_is_absolute(self):
        f = prepare_features(LARGE, TargetLocation(0.0, 0.0, geology=_geo(density=100.0)))
        cas, dmg, disp = heuristic_estimates(f, lambda _: (-0.5, -0.25, -1.0))
        assert cas == 500 and dmg == pytest.approx(2.5) and disp == 5000

    def test_monotone_in_diameter_and_density(self):
        def est(d, density):
            loc = TargetLocation(0.0, 0.0, geology=_geo(density=density))
            return heuristic_estimates(prepare_features(Projectile(d, 20.0), loc))

        assert est(0.1, 500.0)[0] < est(0.5, 500.0)[0] < est(2.0, 500.0)[0]
        assert est(0.5, 10.0)[0] < est(0.5, 100.0)[0] < est(0.5, 1000.0)[0]
        assert est(0.1, 500.0)[1] < est(0.5, 500.0)[1]

    def test_small_object_damage_not_rounded_away(self):
        def damage(d):
            return heuristic_estimates(prepare_features(Projectile(d, 20.0), PARIS))[1]

        assert damage(0.01) == pytest.approx(0.001)
        assert 0.0 < damage(0.01) < damage(0.02)

    def test_uniform_correction_bounded(self):
        corr = UniformCorrection(seed=11)
        for _ in range(50):
            factors = corr([0.0] * 8)
            assert len(factors) == 3
            assert all(0.0 <= x <= 1.0 for x in factors)

    def test_uniform_correction_output_non_negative(self):
        f = prepare_features(LARGE, PARIS)
        corr = UniformCorrection(seed=5)
        for _ in range(20):
            assert all(x >= 0 for x in heuristic_estimates(f, corr))


# ── secondary effects ───────────────────────────────────────────────


class TestSecondaryEffects:

    def test_infrastructure_small_energy(self):
        infra = infrastructure_damage(1.0)
        assert infra.roads == pytest.approx(4.0)
        assert infra.buildings == pytest.approx(6.0)
        assert infra.utilities == pytest.approx(5.0)

    def test_infrastructure_capped(self):
        infra = infrastructure_damage(1e4)
        assert infra.roads == infra.buildings == infra.utilities == 100.0

    def test_recovery_years(self):
        assert economic_breakdown(1.0).recovery_years == 5      # 1e9 USD
        assert economic_breakdown(100.0).recovery_years == 6    # 1e11 USD

    def test_recovery_zero_for_tiny_damage(self):
        assert economic_breakdown(0.0).recovery_years == 0
        assert economic_breakdown(1e-10).recovery_years == 0

    def test_indirect(self):
        assert economic_breakdown(2.0).indirect_damage_billion == pytest.approx(3.0)


# ── mitigation catalog ──────────────────────────────────────────────


class TestMitigation:

    def test_four_valid_scenarios(self):
        scenarios = mitigation_scenarios(PARIS)
        assert [s.id for s in scenarios] == [
            "kinetic-impactor", "gravity-tractor", "nuclear-deflection", "evacuation"]
        for s in scenarios:
            assert 0.0 < s.success_probability <= 1.0
            assert s.cost_usd > 0 and s.time_required_years > 0 and s.effectiveness_score > 0

    def test_evacuation_cost_depends_on_location(self):
        assert mitigation_scenarios(PARIS)[-1].cost_usd == 2e9
        assert mitigation_scenarios(TargetLocation(0.0, 0.0))[-1].cost_usd == 2e9
        assert mitigation_scenarios()[-1].cost_usd == 1e9

    def test_constant_across_projectiles(self):
        p = _predictor()
        assert p.predict(SMALL, PARIS).mitigation_scenarios == p.predict(LARGE, PARIS).mitigation_scenarios


# ── presets ─────────────────────────────────────────────────────────


class TestPresets:

    def test_simulate_preset(self):
        pred = simulate_preset("small-rocky", PARIS, _predictor())
        assert pred.asteroid_id == "small-rocky"
        assert pred.kinetic_energy_mt == pytest.approx(6.335, rel=1e-3)

    def test_presets_ordered_by_energy(self):
        ids = ["small-rocky", "medium-metallic", "large-rocky", "giant-icy", "extinction-level"]
        energies = [simulate_preset(i, PARIS, _predictor()).kinetic_energy_mt for i in ids]
        assert energies == sorted(energies)

    def test_unknown_preset(self):
        with pytest.raises(InvalidInput):
            simulate_preset("moon", PARIS)
