import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client():
    from cloudscan.app import app
    from cloudscan.services.nodes.instance import node_manager

    with TestClient(app) as test_client:
        yield test_client

    for node_id in list(node_manager.nodes):
        node_manager.remove_node(node_id)
    node_manager.resolver.clear()


@pytest.fixture
def scan_node(client):
    """The default cloud_to_scan node created at startup."""
    from cloudscan.services.nodes.instance import node_manager

    return node_manager.nodes["cloud_to_scan"]
