import json

import pytest

from roadnet.routing.routing import shortest_path
from roadnet.utils.geo import polyline_length
from roadnet.utils.geo_loader import load_geojson
from roadnet.utils.graph_builder import (
    GeoDataError,
    build_road_graph,
    normalize_id,
    read_edges,
    read_nodes,
)
from roadnet.utils.sample_data import sample_network


def _fc(features):
    return {"type": "FeatureCollection", "features": features}


def _edge(props, coords=((114.0, 22.0), (114.001, 22.0))):
    return {
        "type": "Feature",
        "properties": props,
        "geometry": {"type": "LineString", "coordinates": [list(c) for c in coords]},
    }


def test_sample_network_routes():
    nodes, edges = sample_network()
    g = build_road_graph(edges, nodes)

    assert g.stats()["nodes"] == 3
    assert g.stats()["edges"] == 3
    assert g.numeric_props == {"length", "bc"}

    route = shortest_path(g, "100", "300", "length")
    assert route.path == ["100", "200", "300"]
    assert route.distance == pytest.approx(920)


def test_node_ids_from_osmid_feature_id_or_property():
    nodes = read_nodes(_fc([
        {"type": "Feature", "properties": {"osmid": 7}, "geometry": {"type": "Point", "coordinates": [1.0, 2.0]}},
        {"type": "Feature", "id": "f8", "properties": {}, "geometry": {"type": "Point", "coordinates": [3.0, 4.0]}},
        {"type": "Feature", "properties": {"id": "p9"}, "geometry": {"type": "Point", "coordinates": [5.0, 6.0]}},
        {"type": "Feature", "properties": {"name": "no id"}, "geometry": {"type": "Point", "coordinates": [7.0, 8.0]}},
    ]))
    assert [(n.id, n.lat, n.lon) for n in nodes] == [
        ("7", 2.0, 1.0),
        ("f8", 4.0, 3.0),
        ("p9", 6.0, 5.0),
    ]


@pytest.mark.parametrize("props", [
    {"u": "a", "v": "b"},
    {"from": "a", "to": "b"},
    {"source": "a", "target": "b"},
])
def test_edge_endpoint_field_names(props):
    edges = read_edges(_fc([_edge(props)]))
    assert (edges[0].source, edges[0].target) == ("a", "b")


def test_edge_attributes_keep_only_finite_numbers():
    edges = read_edges(_fc([_edge({"u": "a", "v": "b", "length": 12, "bc": 0.5, "name": "Queen's Road"})]))
    assert edges[0].attributes == {"length": 12.0, "bc": 0.5}


def test_missing_length_in_some_features_is_recomputed():
    g = build_road_graph(_fc([
        _edge({"u": "a", "v": "b", "length": 50}),
        _edge({"u": "b", "v": "c"}, coords=((114.001, 22.0), (114.002, 22.0))),
    ]))
    lengths = {(e.source, e.target): e.attributes["length"] for e in g.edges}
    assert lengths[("a", "b")] == 50
    assert lengths[("b", "c")] == pytest.approx(polyline_length([(22.0, 114.001), (22.0, 114.002)]))


def test_oneway_property_survives_mixed_columns():
    g = build_road_graph(_fc([
        _edge({"u": "a", "v": "b", "length": 1, "oneway": True}),
        _edge({"u": "b", "v": "c", "length": 1}),
    ]))
    assert [r.target for r in g.neighbors("b")] == ["c"]
    assert [r.target for r in g.neighbors("c")] == ["b"]


def test_multilinestring_is_flattened():
    feature = {
        "type": "Feature",
        "properties": {"u": "a", "v": "b"},
        "geometry": {
            "type": "MultiLineString",
            "coordinates": [[[114.0, 22.0], [114.001, 22.0]], [[114.001, 22.0], [114.002, 22.0]]],
        },
    }
    g = build_road_graph(_fc([feature]))
    assert len(g.geometry("a", "b")) == 4
    assert g.node_point("b") == (22.0, 114.002)


def test_edges_without_endpoints_are_dropped():
    g = build_road_graph(_fc([_edge({"u": "a"}), _edge({"u": "a", "v": "b"})]))
    assert len(g.edges) == 1


def test_normalize_id():
    assert normalize_id(123.0) == "123"
    assert normalize_id(12.5) == "12.5"
    assert normalize_id("abc") == "abc"
    assert normalize_id(None) == ""
    assert normalize_id(float("nan")) == ""


@pytest.mark.parametrize("payload", [None, [], {"type": "Feature"}, {"features": []}])
def test_non_feature_collections_are_rejected(payload):
    with pytest.raises(GeoDataError):
        read_edges(payload)


def test_empty_feature_collection():
    g = build_road_graph(_fc([]), _fc([]))
    assert g.node_index == {}
    assert g.edges == []


def test_build_from_files(tmp_path):
    nodes, edges = sample_network()
    (tmp_path / "nodes.geojson").write_text(json.dumps(nodes))
    (tmp_path / "edges.geojson").write_text(json.dumps(edges))

    g = build_road_graph(str(tmp_path / "edges.geojson"), str(tmp_path / "nodes.geojson"))
    assert shortest_path(g, "100", "300").path == ["100", "200", "300"]


def test_unreadable_file(tmp_path):
    with pytest.raises(GeoDataError):
        read_edges(str(tmp_path / "missing.geojson"))
    with pytest.raises(GeoDataError):
        load_geojson(tmp_path / "missing.geojson")
