# roadnet/utils/geo.py
import math

EARTH_RADIUS_M = 6371000


def lonlat_to_latlon(coord):
    """Convert (lon, lat) -> (lat, lon) for mapping libraries like Leaflet."""
    lon, lat = coord[0], coord[1]
    return (lat, lon)


def latlon_to_lonlat(coord):
    lat, lon = coord[0], coord[1]
    return (lon, lat)


def haversine(a, b):
    """
    Great-circle distance in meters between a=(lat, lon) and b=(lat, lon).
    """
    lat1, lon1 = a
    lat2, lon2 = b
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    hav = math.sin(dphi/2)**2 + math.cos(phi1)*math.cos(phi2)*math.sin(dlambda/2)**2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, hav)))


def polyline_length(latlngs):
    """Sum of haversine distances between consecutive (lat, lon) points."""
    total = 0.0
    for i in range(1, len(latlngs)):
        total += haversine(latlngs[i - 1], latlngs[i])
    return total
