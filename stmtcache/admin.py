"""
缓存管理端点

Read-only statistics of shared caches and executor timings, for mounting
into a host FastAPI application::

    app.include_router(create_cache_admin_router(caches), prefix="/stmtcache")

Shared caches only change through commit / rollback, so there are no
mutating endpoints.
"""

import time
from typing import Any, Dict, Mapping

from fastapi import APIRouter, HTTPException

from .cache.cache_interface import ICache
from .log import log

__all__ = ["create_cache_admin_router"]


def _describe(cache: ICache) -> Dict[str, Any]:
    return {
        "id": cache.id,
        "type": type(cache).__name__,
        "size": cache.size(),
        "stats": cache.get_stats().to_dict(),
    }


def create_cache_admin_router(caches: Mapping[str, ICache]) -> APIRouter:
    """
    Build the statistics router

    Args:
        caches: {cache id: shared cache}; read on every request, so caches
            registered later show up too
    """
    router = APIRouter()

    # ==================== 缓存统计端点 ====================

    @router.get("/caches")
    async def list_caches():
        """所有共享缓存的统计信息"""
        return {
            "caches": [_describe(cache) for cache in caches.values()],
            "timestamp": time.time(),
        }

    @router.get("/caches/{cache_id}")
    async def get_cache(cache_id: str):
        """单个共享缓存的统计信息"""
        cache = caches.get(cache_id)
        if cache is None:
            log.debug(f"Stats requested for unknown cache {cache_id}", tag="ADMIN")
            raise HTTPException(status_code=404, detail=f"Cache {cache_id} not found")
        return _describe(cache)

    # ==================== 性能指标端点 ====================

    @router.get("/metrics")
    async def get_metrics():
        """语句执行耗时统计"""
        return {
            "metrics": log.get_metrics(),
            "timestamp": time.time(),
        }

    return router
