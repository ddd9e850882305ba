import json

from roadnet.utils.graph_builder import GeoDataError


def load_geojson(path):
    """Load and return GeoJSON file content."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise GeoDataError(f"Could not load {path}: {e}") from e
