import math

R_EARTH_KM = 6371.0088


def _destination_point(lon_deg: float, lat_deg: float, bearing_rad: float, distance_km: float):
    """Point reached from (lon,lat) going 'distance_km' along 'bearing_rad' on a sphere."""
    δ = distance_km / R_EARTH_KM
    φ1 = math.radians(lat_deg)
    λ1 = math.radians(lon_deg)
    θ = bearing_rad

    sinφ2 = math.sin(φ1)*math.cos(δ) + math.cos(φ1)*math.sin(δ)*math.cos(θ)
    φ2 = math.asin(max(-1.0, min(1.0, sinφ2)))
    y = math.sin(θ)*math.sin(δ)*math.cos(φ1)
    x = math.cos(δ) - math.sin(φ1)*math.sin(φ2)
    λ2 = λ1 + math.atan2(y, x)
    # normalize lon to [-180, 180)
    lon2 = math.degrees((λ2 + math.pi) % (2*math.pi) - math.pi)
    return lon2, math.degrees(φ2)


def circle_ring(lon: float, lat: float, radius_km: float, steps: int = 64) -> list:
    """Closed ring of [lon, lat] pairs approximating a circle."""
    coords = []
    for i in range(steps + 1):
        b = 2 * math.pi * (i / steps)
        x, y = _destination_point(lon, lat, b, radius_km)
        coords.append([x, y])
    coords[-1] = coords[0]
    return coords


def zones_as_geojson(lat: float, lon: float, zones, steps: int = 64) -> dict:
    """One polygon feature per damage zone, outermost first so inner rings draw on top."""
    features = []
    for z in sorted(zones, key=lambda z: z.radius_km, reverse=True):
        features.append({
            "type": "Feature",
            "properties": {
                "kind": z.kind,
                "radius_km": z.radius_km,
                "description": z.description,
                "color": z.color,
            },
            "geometry": {"type": "Polygon", "coordinates": [circle_ring(lon, lat, z.radius_km, steps)]},
        })
    features.append({
        "type": "Feature",
        "properties": {"kind": "impact_point"},
        "geometry": {"type": "Point", "coordinates": [lon, lat]},
    })
    return {"type": "FeatureCollection", "features": features}
