import pytest

from roadnet.app import create_app
from roadnet.config import RoadnetConfig
from roadnet.routing.graph import EdgeRecord, NodeRecord, build_graph

TRIANGLE_NODES = {
    "100": (22.2822, 114.1589),
    "200": (22.2799, 114.1629),
    "300": (22.2850, 114.1655),
}


def _line(u, v):
    (lat1, lon1), (lat2, lon2) = TRIANGLE_NODES[u], TRIANGLE_NODES[v]
    return [(lon1, lat1), (lon2, lat2)]


@pytest.fixture
def triangle():
    nodes = [NodeRecord(id=nid, lon=lon, lat=lat) for nid, (lat, lon) in TRIANGLE_NODES.items()]
    edges = [
        EdgeRecord("100", "200", _line("100", "200"), {"length": 400, "bc": 0.12}),
        EdgeRecord("200", "300", _line("200", "300"), {"length": 520, "bc": 0.30}),
        EdgeRecord("100", "300", _line("100", "300"), {"length": 700, "bc": 0.05}),
    ]
    return build_graph(nodes, edges)


@pytest.fixture
def app(tmp_path):
    app = create_app(RoadnetConfig(data_dir=str(tmp_path)))
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
