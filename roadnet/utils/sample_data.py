# Tiny three-node road network around Central, Hong Kong.
# 100-200-300 is shorter than the direct 100-300 road.

SAMPLE_NODES = {
    "100": (22.2822, 114.1589),
    "200": (22.2799, 114.1629),
    "300": (22.2850, 114.1655),
}

SAMPLE_EDGES = [
    {"u": "100", "v": "200", "length": 400, "bc": 0.12},
    {"u": "200", "v": "300", "length": 520, "bc": 0.30},
    {"u": "100", "v": "300", "length": 700, "bc": 0.05},
]


def sample_network():
    """Return (nodes, edges) FeatureCollections for the sample network."""
    nodes = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"osmid": nid},
                "geometry": {"type": "Point", "coordinates": [lon, lat]},
            }
            for nid, (lat, lon) in SAMPLE_NODES.items()
        ],
    }

    features = []
    for e in SAMPLE_EDGES:
        (lat1, lon1), (lat2, lon2) = SAMPLE_NODES[e["u"]], SAMPLE_NODES[e["v"]]
        features.append({
            "type": "Feature",
            "properties": dict(e),
            "geometry": {"type": "LineString", "coordinates": [[lon1, lat1], [lon2, lat2]]},
        })
    edges = {"type": "FeatureCollection", "features": features}

    return nodes, edges
