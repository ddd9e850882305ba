# roadnet/routing/routing.py
import heapq
import itertools
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from roadnet.utils.geo import haversine

from .graph import RoadGraph, edge_cost, node_key

log = logging.getLogger(__name__)


@dataclass
class Route:
    path: List[str]
    distance: float


def nearest_node(graph: RoadGraph, point) -> Optional[Tuple[str, float]]:
    """
    Find the graph node closest to a (lat, lon) point.
    Returns (node_id, distance_m) or None if no nodes are loaded.
    """
    best_id = None
    best_d = float("inf")

    for nid, pt in graph.node_index.items():
        d = haversine(point, pt)
        if d < best_d:
            best_d = d
            best_id = nid

    if best_id is None:
        return None
    return best_id, best_d


def shortest_path(graph: RoadGraph, start, goal, weight: str = "length") -> Optional[Route]:
    """
    Dijkstra between two node ids using `weight` as edge cost.
    Edges without a finite `weight` value cost their length instead.

    Negative costs are not rejected; the result is then only as good as
    plain Dijkstra gets, but the search always terminates.
    """
    s, t = node_key(start), node_key(goal)
    if s not in graph or t not in graph:
        return None

    dist = {s: 0}
    prev = {}
    visited = set()
    seq = itertools.count()
    heap = [(0, next(seq), s)]

    while heap:
        _, _, u = heapq.heappop(heap)
        if u in visited:
            continue
        visited.add(u)
        if u == t:
            break
        for rec in graph.neighbors(u):
            alt = dist[u] + edge_cost(rec.attributes, weight)
            if alt < dist.get(rec.target, float("inf")):
                dist[rec.target] = alt
                prev[rec.target] = u
                heapq.heappush(heap, (alt, next(seq), rec.target))

    if t != s and t not in prev:
        log.info("No path from %s to %s", s, t)
        return None

    path = [t]
    cur = t
    while cur != s:
        cur = prev.get(cur)
        # a negative cycle can leave the predecessor chain without `s`
        if cur is None or len(path) > len(prev):
            return None
        path.append(cur)
    path.reverse()

    return Route(path=path, distance=dist[t])


def route_geometry(graph: RoadGraph, path) -> List[Tuple[float, float]]:
    """
    Concatenate per-edge geometries along a node path into one (lat, lon)
    polyline, dropping the duplicated point where consecutive segments meet.
    """
    latlngs = []
    for a, b in zip(path, path[1:]):
        seg = graph.geometry(a, b)
        if not seg:
            continue
        if latlngs and latlngs[-1] == seg[0]:
            latlngs.extend(seg[1:])
        else:
            latlngs.extend(seg)
    return latlngs


def compute_shortest_route(graph: RoadGraph, start, end, weight: str = "length") -> Optional[Route]:
    """
    Snap (lat, lon) start/end points to their nearest graph nodes and route
    between them.
    """
    start_hit = nearest_node(graph, start)
    end_hit = nearest_node(graph, end)

    if start_hit is None or end_hit is None:
        return None

    return shortest_path(graph, start_hit[0], end_hit[0], weight)
