"""
Tests for the point cloud push endpoint
"""
import numpy as np

from cloudscan.services.protocol.binary import pack_points_binary


def lidr_body():
    return pack_points_binary(np.array([[1.0, 0.0, 0.1], [2.0, 0.5, 0.1]]), 5.0)


class TestCloudsEndpoint:
    def test_unknown_node(self, client):
        response = client.post("/api/v1/clouds/missing", content=lidr_body())
        assert response.status_code == 404

    def test_invalid_body(self, client):
        response = client.post("/api/v1/clouds/cloud_to_scan", content=b"garbage")

        assert response.status_code == 400
        assert "LIDR" in response.json()["detail"]

    def test_not_accepted_without_listeners(self, client):
        response = client.post("/api/v1/clouds/cloud_to_scan", content=lidr_body())

        assert response.status_code == 200
        data = response.json()
        assert data["accepted"] is False
        assert data["points"] == 2
        assert data["stamp"] == 5.0

    def test_accepted_while_feed_active(self, client, scan_node):
        # Stand in for a connected scan listener
        scan_node.connections.active_connections[scan_node.topic].append(object())
        scan_node.subscription.refresh()
        try:
            response = client.post("/api/v1/clouds/cloud_to_scan", params={"frame_id": "sensor"}, content=lidr_body())
        finally:
            scan_node.connections.active_connections[scan_node.topic].clear()
            scan_node.subscription.refresh()

        assert response.status_code == 200
        assert response.json()["accepted"] is True
