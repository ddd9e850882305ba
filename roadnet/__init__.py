"""GeoJSON road network routing."""

__version__ = "0.1.0"
