"""
测试系统数据 API

测试 /systemdata 各端点（使用临时数据库和可控时钟）。
"""

import pytest
from fastapi.testclient import TestClient

from telemetry_collector.api.app import create_app
from telemetry_collector.config import AppConfig

from conftest import make_payload


@pytest.fixture
def app(store):
    """创建测试应用（注入临时存储）"""
    return create_app(AppConfig(), store=store)


@pytest.fixture
def client(app):
    return TestClient(app)


class TestIngest:
    """POST /systemdata"""

    def test_ingest_success(self, client):
        response = client.post("/systemdata", json=make_payload())
        assert response.status_code == 201

        data = response.json()
        assert data["success"] is True
        assert data["data"]["machineId"] == "PC-1"
        assert data["data"]["timestamp"] == "2026-10-17T12:00:00.000000Z"
        assert isinstance(data["data"]["id"], int)

    def test_missing_field(self, client):
        payload = make_payload()
        del payload["uptimeSeconds"]

        response = client.post("/systemdata", json=payload)
        assert response.status_code == 400

        data = response.json()
        assert data["success"] is False
        assert data["reason"] == "MissingField"
        assert "uptimeSeconds" in data["message"]

    def test_out_of_range(self, client, store):
        response = client.post("/systemdata", json=make_payload(cpu=101))
        assert response.status_code == 400
        assert response.json()["reason"] == "OutOfRange"
        assert store.count() == 0

    @pytest.mark.parametrize("overrides", [
        {"uptimeSeconds": 1e20},
        {"cpuPercent": int("9" * 400)},
    ])
    def test_oversized_numbers_rejected(self, client, store, overrides):
        response = client.post("/systemdata", json=make_payload(**overrides))
        assert response.status_code == 400
        assert response.json()["reason"] == "OutOfRange"
        assert store.count() == 0

    def test_invalid_json(self, client):
        response = client.post(
            "/systemdata",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["reason"] == "InvalidField"


class TestQuery:
    """GET /systemdata"""

    def test_end_to_end(self, client):
        client.post("/systemdata", json=make_payload("PC-1", cpu=45.2, ram=67.8, disk=23.1))

        response = client.get("/systemdata")
        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data["latest"]) == 1
        latest = data["latest"][0]
        assert latest["machineId"] == "PC-1"
        assert latest["cpuPercent"] == 45.2
        assert latest["ramPercent"] == 67.8
        assert latest["diskPercent"] == 23.1
        assert data["overview"] == {
            "avgCpu": 45.2, "avgRam": 67.8, "avgDisk": 23.1, "totalMachines": 1
        }
        assert data["timeRange"] == "24 hours"

        response = client.get("/systemdata", params={"machineId": "PC-1"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["machineId"] == "PC-1"
        assert data["latest"]["machineId"] == "PC-1"
        assert [s["id"] for s in data["historical"]] == [data["latest"]["id"]]

    def test_empty_store(self, client):
        response = client.get("/systemdata")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["latest"] == []
        assert data["overview"]["avgCpu"] == 0
        assert data["overview"]["totalMachines"] == 0

    def test_unknown_machine(self, client):
        response = client.get("/systemdata", params={"machineId": "ghost"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["latest"] is None
        assert data["historical"] == []

    def test_machine_id_query_trimmed(self, client):
        client.post("/systemdata", json=make_payload("PC-1"))

        response = client.get("/systemdata", params={"machineId": " PC-1 "})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["machineId"] == "PC-1"
        assert data["latest"]["machineId"] == "PC-1"
        assert len(data["historical"]) == 1

    def test_blank_machine_id_returns_all_machines(self, client):
        client.post("/systemdata", json=make_payload("PC-1"))

        response = client.get("/systemdata", params={"machineId": "   "})
        assert response.status_code == 200
        assert response.json()["data"]["overview"]["totalMachines"] == 1

    @pytest.mark.parametrize("hours", ["0", "169", "abc"])
    def test_invalid_hours(self, client, hours):
        response = client.get("/systemdata", params={"hours": hours})
        assert response.status_code == 400
        assert response.json()["reason"] == "QueryParameterInvalid"

    def test_hours_window(self, client, clock):
        client.post("/systemdata", json=make_payload("PC-1"))
        clock.advance(hours=3)
        client.post("/systemdata", json=make_payload("PC-1"))

        response = client.get("/systemdata", params={"machineId": "PC-1", "hours": "2"})
        data = response.json()["data"]
        assert len(data["historical"]) == 1
        assert data["timeRange"] == "2 hours"


class TestMachines:
    """GET /systemdata/machines"""

    def test_list_machines(self, client, clock):
        client.post("/systemdata", json=make_payload("PC-2"))
        client.post("/systemdata", json=make_payload("PC-1"))
        clock.advance(seconds=10)
        client.post("/systemdata", json=make_payload("PC-1", cpu=99))

        response = client.get("/systemdata/machines")
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [m["machineId"] for m in data["data"]] == ["PC-1", "PC-2"]
        assert data["data"][0]["cpuPercent"] == 99


class TestCleanup:
    """DELETE /systemdata/cleanup"""

    def test_cleanup(self, client, clock, store):
        client.post("/systemdata", json=make_payload("PC-1"))
        clock.advance(hours=5)
        client.post("/systemdata", json=make_payload("PC-2"))

        response = client.delete("/systemdata/cleanup", params={"hours": "2"})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["deletedCount"] == 1
        assert store.count() == 1

    def test_cleanup_empty_store(self, client):
        response = client.delete("/systemdata/cleanup")
        assert response.status_code == 200
        assert response.json()["deletedCount"] == 0

    def test_cleanup_huge_hours(self, client, store):
        client.post("/systemdata", json=make_payload("PC-1"))

        response = client.delete("/systemdata/cleanup", params={"hours": "20000000"})
        assert response.status_code == 200
        assert response.json()["deletedCount"] == 0
        assert store.count() == 1

    def test_cleanup_invalid_hours(self, client):
        response = client.delete("/systemdata/cleanup", params={"hours": "0"})
        assert response.status_code == 400


class TestMeta:
    """健康检查、根路径、404、存储故障"""

    def test_health(self, client):
        response = client.get("/systemdata/health")
        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_service_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["store"] == "connected"

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["version"] == "1.0.0"

    def test_unknown_route(self, client):
        response = client.get("/nope")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Endpoint not found", "path": "/nope"}

    def test_store_unavailable(self, client, store):
        store.close()

        response = client.get("/systemdata/machines")
        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "Internal server error"

        response = client.post("/systemdata", json=make_payload())
        assert response.status_code == 500

        # 健康检查不依赖存储
        assert client.get("/systemdata/health").status_code == 200
        assert client.get("/health").json()["store"] == "disconnected"
