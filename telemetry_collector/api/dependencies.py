"""
依赖注入模块

提供 FastAPI 依赖项。
"""

from fastapi import Request

from ..errors import StoreUnavailable
from ..store import SampleStore


async def get_store(request: Request) -> SampleStore:
    """获取启动时创建的存储实例"""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise StoreUnavailable("Sample store is not initialized")
    return store
