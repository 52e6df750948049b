"""Static data: the NeoWs fallback records and the named test projectiles."""
from __future__ import annotations

from .impact_model import Projectile


def _neo(neo_id, name, h, dmin, dmax, hazardous, date, v_kms, miss_km,
         od_date, period, q, Q, e, i) -> dict:
    return {
        "id": neo_id,
        "name": name,
        "absolute_magnitude_h": h,
        "estimated_diameter": {
            "kilometers": {"estimated_diameter_min": dmin, "estimated_diameter_max": dmax},
        },
        "is_potentially_hazardous_asteroid": hazardous,
        "close_approach_data": [{
            "close_approach_date": date,
            "relative_velocity": {"kilometers_per_second": v_kms},
            "miss_distance": {"kilometers": miss_km},
            "orbiting_body": "Earth",
        }],
        "orbital_data": {
            "orbit_determination_date": od_date,
            "orbital_period": period,
            "perihelion_distance": q,
            "aphelion_distance": Q,
            "eccentricity": e,
            "inclination": i,
        },
    }


# Served in place of NASA NeoWs whenever the upstream is unreachable
FALLBACK_NEOS: tuple[dict, ...] = (
    _neo("2054", "54 Alexandra", 7.57, 147.3404906829, 329.4445142292, True,
         "2025-03-15", "15.7434821043", "7458963.485738643",
         "2021-04-11", "1681.76", "1.644", "4.367", "0.4539", "11.85"),
    _neo("3122", "3122 Florence", 14.1, 4.35, 9.73, True,
         "2025-09-01", "13.5221", "7035095.385738643",
         "2021-05-30", "859.50", "1.017", "2.521", "0.4227", "22.15"),
    _neo("99942", "99942 Apophis", 19.7, 0.31, 0.68, True,
         "2029-04-13", "7.42", "31895.377",
         "2021-04-11", "323.60", "0.746", "1.099", "0.191", "3.34"),
    _neo("1566", "1566 Icarus", 16.9, 1.0, 2.3, False,
         "2025-06-16", "27.71", "16726695.23",
         "2021-04-11", "408.78", "0.187", "1.078", "0.827", "22.83"),
    _neo("2101", "2101 Adonis", 18.7, 0.5, 1.1, False,
         "2025-07-10", "12.84", "3284759.12",
         "2021-04-11", "930.95", "0.441", "3.302", "0.764", "1.33"),
    _neo("4179", "4179 Toutatis", 15.3, 2.44, 5.46, True,
         "2025-11-29", "11.02", "7053662.477",
         "2021-04-11", "1470.09", "0.924", "4.132", "0.635", "0.47"),
)


# id -> (display name, projectile); sizes span Chelyabinsk to Chicxulub
PRESET_PROJECTILES: dict[str, tuple[str, Projectile]] = {
    "small-rocky": ("Small Rocky Asteroid", Projectile(0.05, 18.0, 2500.0, "rocky")),
    "medium-metallic": ("Medium Metallic Asteroid", Projectile(0.2, 25.0, 7800.0, "metallic")),
    "large-rocky": ("Large Rocky Asteroid", Projectile(1.0, 20.0, 2200.0, "rocky")),
    "giant-icy": ("Giant Icy Comet", Projectile(5.0, 30.0, 1000.0, "icy")),
    "extinction-level": ("Extinction Level Asteroid", Projectile(10.0, 25.0, 2500.0, "rocky")),
}
