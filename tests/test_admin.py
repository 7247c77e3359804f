"""
缓存管理端点测试
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from stmtcache.admin import create_cache_admin_router
from stmtcache.cache.blocking_cache import BlockingCache
from stmtcache.cache.memory_cache import MemoryCache
from stmtcache.log import log


@pytest.fixture
def caches():
    users = MemoryCache("users")
    users.put("k", [{"id": 1}])
    users.get("k")
    users.get("missing")
    return {"users": users, "orders": BlockingCache(MemoryCache("orders"))}


@pytest.fixture
def client(caches):
    app = FastAPI()
    app.include_router(create_cache_admin_router(caches), prefix="/stmtcache")
    return TestClient(app)


class TestCacheAdminRouter:
    """统计端点"""

    def test_list_caches(self, client):
        response = client.get("/stmtcache/caches")

        assert response.status_code == 200
        body = response.json()
        assert {cache["id"] for cache in body["caches"]} == {"users", "orders"}
        assert "timestamp" in body

    def test_get_cache(self, client):
        response = client.get("/stmtcache/caches/users")

        assert response.status_code == 200
        body = response.json()
        assert body["type"] == "MemoryCache"
        assert body["size"] == 1
        assert body["stats"]["hits"] == 1
        assert body["stats"]["misses"] == 1
        assert body["stats"]["hit_rate"] == 0.5

    def test_decorated_cache_reports_delegate_stats(self, client):
        body = client.get("/stmtcache/caches/orders").json()

        assert body["type"] == "BlockingCache"
        assert body["size"] == 0

    def test_unknown_cache(self, client):
        assert client.get("/stmtcache/caches/nope").status_code == 404

    def test_caches_registered_later_are_visible(self, client, caches):
        caches["late"] = MemoryCache("late")
        assert client.get("/stmtcache/caches/late").status_code == 200

    def test_metrics(self, client):
        with log.timer("users.findById"):
            pass

        body = client.get("/stmtcache/metrics").json()

        assert body["metrics"]["users.findById"]["count"] == 1

    def test_no_mutating_endpoints(self, client):
        assert client.delete("/stmtcache/caches/users").status_code == 405
        assert client.post("/stmtcache/caches/users").status_code == 405
