# roadnet/utils/graph_builder.py
"""
GeoJSON -> RoadGraph.

Nodes file: Point features with an id in `osmid`, the feature id, or `id`.
Edges file: LineString / MultiLineString features with endpoint ids in
`u`/`from`/`source` and `v`/`to`/`target`.

Inputs are either paths (read with geopandas) or already-parsed
FeatureCollection dicts.
"""

import logging
import math
import os

import geopandas as gpd
from shapely.geometry import LineString, MultiLineString, Point

from roadnet.routing.graph import EdgeRecord, NodeRecord, build_graph, is_finite_number

log = logging.getLogger(__name__)

NODE_ID_FIELDS = ("osmid", "id")
SOURCE_FIELDS = ("u", "from", "source")
TARGET_FIELDS = ("v", "to", "target")
_RESERVED = {"geometry", "oneway"} | set(SOURCE_FIELDS) | set(TARGET_FIELDS) | set(NODE_ID_FIELDS)


class GeoDataError(ValueError):
    """Raised when a node/edge source is not usable GeoJSON at all."""


def _is_missing(value):
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)


def normalize_id(value):
    """
    Ids as strings. Tabular readers turn integer columns with gaps into
    floats, so 123.0 -> "123". Missing values -> "".
    """
    if _is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if hasattr(value, "item"):
        # numpy scalar
        return normalize_id(value.item())
    return str(value)


def _first_present(row, fields):
    for name in fields:
        if name in row and not _is_missing(row[name]) and row[name] != "":
            return row[name]
    return None


def _to_frame(source):
    """Path or FeatureCollection dict -> GeoDataFrame."""
    if isinstance(source, gpd.GeoDataFrame):
        return source

    if isinstance(source, (str, os.PathLike)):
        try:
            return gpd.read_file(source)
        except Exception as e:
            raise GeoDataError(f"Could not read {source}: {e}") from e

    if not isinstance(source, dict) or source.get("type") != "FeatureCollection":
        raise GeoDataError("Expected a GeoJSON FeatureCollection")

    features = []
    for f in source.get("features") or []:
        if not isinstance(f, dict):
            continue
        props = dict(f.get("properties") or {})
        # keep the feature-level id, GeoDataFrame.from_features drops it
        if f.get("id") is not None:
            props["id"] = f["id"]
        features.append({"type": "Feature", "geometry": f.get("geometry"), "properties": props})

    if not features:
        return gpd.GeoDataFrame({"geometry": []}, geometry="geometry")

    try:
        return gpd.GeoDataFrame.from_features(features)
    except Exception as e:
        raise GeoDataError(f"Invalid GeoJSON features: {e}") from e


def _line_coords(geom):
    """
    Normalize geometry -> (lon, lat) path, or list of paths for MultiLineString.
    Anything that isn't a line gives an empty geometry.
    """
    if geom is None or geom.is_empty:
        return []
    if isinstance(geom, LineString):
        return [(c[0], c[1]) for c in geom.coords]
    if isinstance(geom, MultiLineString):
        return [[(c[0], c[1]) for c in line.coords] for line in geom.geoms]
    return []


def _numeric_attributes(row):
    attrs = {}
    for k, v in row.items():
        if k in _RESERVED:
            continue
        if hasattr(v, "item") and not isinstance(v, (str, bytes)):
            v = v.item()
        if is_finite_number(v):
            attrs[k] = float(v)
    return attrs


def read_nodes(source):
    """Node features -> list of NodeRecord. Features without id or Point are skipped."""
    gdf = _to_frame(source)
    nodes = []
    for _, row in gdf.iterrows():
        nid = normalize_id(_first_present(row, NODE_ID_FIELDS))
        geom = row.get("geometry")
        if not nid or not isinstance(geom, Point) or geom.is_empty:
            continue
        nodes.append(NodeRecord(id=nid, lon=geom.x, lat=geom.y))
    return nodes


def read_edges(source):
    """Edge features -> list of EdgeRecord. Endpoint ids may be empty; build() drops those."""
    gdf = _to_frame(source)
    edges = []
    for _, row in gdf.iterrows():
        oneway = row.get("oneway", False)
        if _is_missing(oneway):
            oneway = False
        edges.append(EdgeRecord(
            source=normalize_id(_first_present(row, SOURCE_FIELDS)),
            target=normalize_id(_first_present(row, TARGET_FIELDS)),
            geometry=_line_coords(row.get("geometry")),
            attributes=_numeric_attributes(row),
            oneway=oneway,
        ))
    return edges


def build_road_graph(edges_source, nodes_source=None):
    """
    Convert edges (+ optional nodes) GeoJSON into a RoadGraph.
    Nodes missing from the nodes file take their position from edge geometry.
    """
    log.info("Loading roads...")
    nodes = read_nodes(nodes_source) if nodes_source is not None else []
    edges = read_edges(edges_source)
    return build_graph(nodes, edges)
