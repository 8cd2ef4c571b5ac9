"""
FastAPI 应用配置

配置 CORS、请求日志、错误处理、路由注册。
"""

import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import AppConfig, get_config
from ..errors import StoreUnavailable, TelemetryError
from ..models import format_ts, utc_now
from ..store import SampleStore
from .routers import systemdata

logger = logging.getLogger(__name__)


def build_store(config: AppConfig) -> SampleStore:
    """根据配置创建存储实例"""
    return SampleStore(
        config.database.path,
        retention_hours=config.retention.hours,
        timeout=config.database.timeout,
    )


def register_exception_handlers(app: FastAPI):
    """统一错误响应格式：{success: false, message, ...}"""

    @app.exception_handler(TelemetryError)
    async def telemetry_error_handler(request: Request, exc: TelemetryError):
        if isinstance(exc, StoreUnavailable) or exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "success": False,
                    "message": "Internal server error",
                    "error": exc.message,
                },
            )

        logger.info(f"{request.method} {request.url.path} rejected: {exc.reason}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "reason": exc.reason,
                "message": exc.message,
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "success": False,
                    "message": "Endpoint not found",
                    "path": request.url.path,
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Internal server error",
                "error": str(exc),
            },
        )


def create_app(config: Optional[AppConfig] = None, store: Optional[SampleStore] = None) -> FastAPI:
    """
    创建 FastAPI 应用实例

    Args:
        config: 应用配置，不指定则从配置文件加载
        store: 启动时创建的存储实例；不指定则在 startup 时按配置创建，shutdown 时关闭
    """
    if config is None:
        config = get_config()

    app = FastAPI(
        title="Telemetry Collector",
        description="机器遥测数据采集和查询服务",
        version=__version__,
    )
    app.state.store = store
    started_at = time.monotonic()

    # CORS 中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"{request.method} {request.url.path}")
        return await call_next(request)

    register_exception_handlers(app)

    # 注册路由
    app.include_router(systemdata.router)

    @app.get("/", tags=["meta"])
    async def root():
        return {
            "message": "Telemetry Collector API",
            "version": __version__,
            "timestamp": format_ts(utc_now()),
        }

    @app.get("/health", tags=["meta"])
    async def health():
        current = app.state.store
        connected = current is not None and current.ping()
        return {
            "status": "healthy",
            "uptime": round(time.monotonic() - started_at, 2),
            "store": "connected" if connected else "disconnected",
            "timestamp": format_ts(utc_now()),
        }

    @app.on_event("startup")
    async def startup_event():
        if app.state.store is None:
            app.state.store = build_store(config)
            app.state.owns_store = True
        logger.info(f"Telemetry Collector starting up (store={app.state.store.db_path})")

    @app.on_event("shutdown")
    async def shutdown_event():
        if getattr(app.state, "owns_store", False):
            app.state.store.close()
        logger.info("Telemetry Collector shutting down...")

    return app
