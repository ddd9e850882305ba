import logging
import math
import os

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS

from roadnet.config import RoadnetConfig
from roadnet.logging_config import configure
from roadnet.routing.graph import RoadGraph, edge_cost
from roadnet.routing.routing import (
    compute_shortest_route,
    nearest_node,
    route_geometry,
    shortest_path,
)
from roadnet.utils.geo import latlon_to_lonlat
from roadnet.utils.geo_loader import load_geojson
from roadnet.utils.graph_builder import GeoDataError, build_road_graph
from roadnet.utils.sample_data import sample_network

log = logging.getLogger(__name__)


def _finite_float(value):
    """Query-string parser that rejects nan and inf."""
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(value)
    return number


def _graph() -> RoadGraph:
    return current_app.config["ROAD_GRAPH"]


def _set_graph(graph: RoadGraph):
    current_app.config["ROAD_GRAPH"] = graph


def _initial_graph(config: RoadnetConfig) -> RoadGraph:
    if os.path.exists(config.edges_path) and os.path.exists(config.nodes_path):
        return build_road_graph(config.edges_path, config.nodes_path)
    log.info("No network in %s, starting with an empty graph", config.data_dir)
    return RoadGraph.empty()


def _route_payload(graph, route, weight):
    coords = [list(latlon_to_lonlat(p)) for p in route_geometry(graph, route.path)]
    return {
        "path": route.path,
        "distance": route.distance,
        "weight": weight,
        "geometry": {"type": "LineString", "coordinates": coords},
    }


def create_app(config: RoadnetConfig = None) -> Flask:
    config = config or RoadnetConfig.from_env()
    configure(config.log_level)

    app = Flask(__name__)
    CORS(app)
    app.config["ROADNET"] = config
    app.config["ROAD_GRAPH"] = _initial_graph(config)

    # ============================================================
    # MAP LAYERS API
    # ============================================================
    @app.route("/api/v1/map/<layer>", methods=["GET"])
    def get_map_layer(layer):
        valid_layers = {
            "edges": config.edges_file,
            "nodes": config.nodes_file,
        }

        if layer not in valid_layers:
            return jsonify({"error": "Invalid layer name"}), 400

        file_path = os.path.join(config.data_dir, valid_layers[layer])
        try:
            data = load_geojson(file_path)
        except GeoDataError as e:
            return jsonify({"error": str(e)}), 404
        return jsonify(data)

    # ============================================================
    # GRAPH API
    # ============================================================
    @app.route("/api/v1/graph/load", methods=["POST"])
    def load_graph():
        body = request.get_json(silent=True) or {}
        if not body.get("edges"):
            return jsonify({"error": "Please provide an edges FeatureCollection."}), 400

        try:
            graph = build_road_graph(body["edges"], body.get("nodes"))
        except GeoDataError as e:
            return jsonify({"error": f"Could not parse files. Make sure they are valid GeoJSON. ({e})"}), 400

        _set_graph(graph)
        return jsonify({"status": "loaded", **graph.stats()})

    @app.route("/api/v1/graph/sample", methods=["GET", "POST"])
    def load_sample():
        nodes, edges = sample_network()
        graph = build_road_graph(edges, nodes)
        _set_graph(graph)
        return jsonify({"status": "loaded", **graph.stats()})

    @app.route("/api/v1/graph/clear", methods=["POST"])
    def clear_graph():
        _set_graph(RoadGraph.empty())
        return jsonify({"status": "cleared"})

    @app.route("/api/v1/graph/stats", methods=["GET"])
    def graph_stats():
        return jsonify(_graph().stats())

    @app.route("/api/v1/graph/nearest", methods=["GET"])
    def graph_nearest():
        lat = request.args.get("lat", type=_finite_float)
        lon = request.args.get("lon", type=_finite_float)
        if lat is None or lon is None:
            return jsonify({"error": "lat and lon are required"}), 400

        graph = _graph()
        hit = nearest_node(graph, (lat, lon))
        if hit is None:
            return jsonify({"error": "No nodes loaded yet."}), 404

        nid, dist = hit
        node_lat, node_lon = graph.node_point(nid)
        return jsonify({"id": nid, "distance": dist, "lat": node_lat, "lon": node_lon})

    # ============================================================
    # CHOROPLETH LAYER
    # ============================================================
    @app.route("/api/v1/graph/edges", methods=["GET"])
    def graph_edges():
        graph = _graph()
        prop = request.args.get("prop") or config.default_weight
        lo, hi = graph.attribute_range(prop)

        features = []
        for edge in graph.edges:
            value = edge_cost(edge.attributes, prop)
            intensity = 0.0
            if lo is not None:
                t = (value - lo) / max(1e-9, hi - lo)
                intensity = min(1.0, max(0.0, t))

            coords = [list(latlon_to_lonlat(p)) for p in graph.geometry(edge.source, edge.target)]
            feat = {
                "type": "Feature",
                "properties": {
                    "u": edge.source,
                    "v": edge.target,
                    **edge.attributes,
                    "value": value,
                    "intensity": intensity,
                },
                "geometry": {
                    "type": "LineString",
                    "coordinates": coords,
                },
            }
            features.append(feat)

        return jsonify({
            "type": "FeatureCollection",
            "prop": prop,
            "min": lo,
            "max": hi,
            "features": features,
        })

    # ============================================================
    # ROUTING API
    # ============================================================
    @app.route("/api/v1/route", methods=["GET"])
    def route():
        graph = _graph()
        weight = request.args.get("weight") or config.default_weight
        start = request.args.get("start")
        goal = request.args.get("goal")

        if start and goal:
            result = shortest_path(graph, start, goal, weight)
        else:
            coords = [request.args.get(k, type=_finite_float) for k in ("from_lat", "from_lon", "to_lat", "to_lon")]
            if any(c is None for c in coords):
                return jsonify({"error": "Pick a start and end node first."}), 400
            result = compute_shortest_route(graph, (coords[0], coords[1]), (coords[2], coords[3]), weight)

        if result is None:
            return jsonify({"error": "No path found."}), 404

        return jsonify(_route_payload(graph, result, weight))

    return app


# ============================================================
# RUN SERVER
# ============================================================
if __name__ == "__main__":
    create_app().run(debug=True)
