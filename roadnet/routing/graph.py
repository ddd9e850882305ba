# roadnet/routing/graph.py
"""
Routable road graph.

build_graph(nodes, edges) turns explicit node/edge records into a RoadGraph:
  - node_index:     id -> (lat, lon)
  - adjacency:      networkx.MultiDiGraph, one keyed edge per traversal record
                    (forward always, reverse unless the road is one-way)
  - edge_geometry:  "u|v" -> list of (lat, lon) in travel order
  - numeric_props:  attribute names usable as weights (always has "length")

A RoadGraph is never mutated after build. Loading new data means building a
new one and dropping the old.
"""

import logging
import math
import numbers
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import networkx as nx
import numpy as np

from roadnet.utils.geo import lonlat_to_latlon, polyline_length

log = logging.getLogger(__name__)

LatLon = Tuple[float, float]


@dataclass(frozen=True)
class NodeRecord:
    id: object
    lon: float
    lat: float


@dataclass
class EdgeRecord:
    """
    One road segment as supplied by a data source.

    geometry is a list of (lon, lat) pairs, or a list of such lists for
    multi-part roads.
    """
    source: object
    target: object
    geometry: Sequence = field(default_factory=list)
    attributes: Dict[str, float] = field(default_factory=dict)
    oneway: object = False


@dataclass(frozen=True)
class AdjacencyRecord:
    target: str
    key: str
    attributes: Mapping[str, float]


def node_key(value) -> str:
    if value is None:
        return ""
    return str(value)


def edge_key(u: str, v: str) -> str:
    return f"{u}|{v}"


def is_finite_number(value) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, numbers.Real) and math.isfinite(value)


def is_oneway(flag) -> bool:
    """True for boolean True, numeric 1 or the literal string "True"."""
    if isinstance(flag, str):
        return flag == "True"
    if isinstance(flag, (bool, np.bool_)):
        return bool(flag)
    if isinstance(flag, numbers.Real):
        return flag == 1
    return False


def edge_cost(attributes: Mapping[str, float], weight: str) -> float:
    """Value of `weight` on this edge if it is a finite number, else its length."""
    value = attributes.get(weight)
    if is_finite_number(value):
        return value
    return attributes["length"]


def flatten_geometry(geometry) -> List[LatLon]:
    """(lon, lat) path or multi-part path -> flat list of (lat, lon)."""
    if not geometry:
        return []
    # empty parts are allowed, so look at the first non-empty one
    first = next((part for part in geometry if len(part)), None)
    if first is None or isinstance(first[0], (list, tuple)):
        points = [pt for part in geometry for pt in part]
    else:
        points = list(geometry)
    return [lonlat_to_latlon(pt) for pt in points if len(pt) >= 2]


class RoadGraph:
    def __init__(self, node_index, adjacency, edge_geometry, numeric_props, edges):
        self.node_index: Dict[str, LatLon] = node_index
        self.adjacency: nx.MultiDiGraph = adjacency
        self.edge_geometry: Dict[str, List[LatLon]] = edge_geometry
        self.numeric_props: Set[str] = numeric_props
        self.edges: List[EdgeRecord] = edges

    @classmethod
    def empty(cls):
        return cls({}, nx.MultiDiGraph(), {}, {"length"}, [])

    def __contains__(self, node_id) -> bool:
        """A node is routable only if it has at least one outgoing record."""
        u = node_key(node_id)
        return u in self.adjacency and self.adjacency.out_degree(u) > 0

    def neighbors(self, node_id) -> List[AdjacencyRecord]:
        """Outgoing traversal records of a node, in insertion order."""
        u = node_key(node_id)
        if u not in self.adjacency:
            return []
        return [
            AdjacencyRecord(target=v, key=data["edge_key"], attributes=data["attributes"])
            for _, v, data in self.adjacency.out_edges(u, data=True)
        ]

    def node_point(self, node_id) -> Optional[LatLon]:
        return self.node_index.get(node_key(node_id))

    def geometry(self, u, v) -> List[LatLon]:
        return self.edge_geometry.get(edge_key(node_key(u), node_key(v)), [])

    def stats(self) -> dict:
        total_len_m = sum(e.attributes["length"] for e in self.edges)
        records = self.adjacency.number_of_edges()
        keys = sum(1 for _, deg in self.adjacency.out_degree() if deg > 0)
        return {
            "nodes": len(self.node_index),
            "edges": len(self.edges),
            "total_length_km": round(total_len_m / 1000, 1),
            "avg_degree": round(records / max(1, keys), 2),
            "numeric_props": sorted(self.numeric_props),
        }

    def attribute_range(self, prop: str) -> Tuple[Optional[float], Optional[float]]:
        """(min, max) of `prop` across edges, using length where it is missing."""
        values = [edge_cost(e.attributes, prop) for e in self.edges]
        values = [v for v in values if is_finite_number(v)]
        if not values:
            return None, None
        return min(values), max(values)


def build_graph(nodes: Iterable[NodeRecord], edges: Iterable[EdgeRecord]) -> RoadGraph:
    node_index: Dict[str, LatLon] = {}
    for node in nodes:
        nid = node_key(node.id)
        if not nid:
            continue
        node_index[nid] = (node.lat, node.lon)

    adjacency = nx.MultiDiGraph()
    edge_geometry: Dict[str, List[LatLon]] = {}
    numeric_props: Set[str] = set()
    built: List[EdgeRecord] = []
    dropped = 0

    for edge in edges:
        u = node_key(edge.source)
        v = node_key(edge.target)
        if not u or not v:
            dropped += 1
            continue

        latlngs = flatten_geometry(edge.geometry)
        attributes = dict(edge.attributes)
        if not is_finite_number(attributes.get("length")):
            attributes["length"] = polyline_length(latlngs)

        numeric_props.update(k for k, val in attributes.items() if is_finite_number(val))

        edge_geometry[edge_key(u, v)] = latlngs
        edge_geometry[edge_key(v, u)] = list(reversed(latlngs))

        adjacency.add_edge(u, v, edge_key=edge_key(u, v), attributes=attributes)
        if not is_oneway(edge.oneway):
            adjacency.add_edge(v, u, edge_key=edge_key(v, u), attributes=attributes)
        built.append(EdgeRecord(u, v, edge.geometry, attributes, edge.oneway))

    numeric_props.add("length")

    for nid in adjacency.nodes:
        if nid in node_index:
            continue
        for other in list(adjacency.successors(nid)) + list(adjacency.predecessors(nid)):
            pts = edge_geometry.get(edge_key(nid, other))
            if pts:
                node_index[nid] = pts[0]
                break

    if dropped:
        log.debug("Dropped %d edges without both endpoint ids", dropped)
    log.info("Graph created: %d nodes, %d edges", len(node_index), len(built))
    return RoadGraph(node_index, adjacency, edge_geometry, numeric_props, built)
