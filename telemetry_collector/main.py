"""
主程序入口

启动两个并发任务：
1. REST API 服务
2. 过期样本清理任务
"""

import asyncio
import logging
import sys
from pathlib import Path

import uvicorn

from . import __version__
from .config import AppConfig, get_config
from .retention import run_cleanup


def setup_logging(config: AppConfig):
    """配置日志"""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    level = getattr(logging, config.logging.level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    # 如果配置了文件日志
    if config.logging.file:
        log_path = Path(config.logging.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(log_format))
        logging.getLogger().addHandler(file_handler)

    # 降低第三方库日志级别
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


async def run_api_server(app, config: AppConfig):
    """运行 API 服务器"""
    server_config = uvicorn.Config(
        app=app,
        host=config.api.host,
        port=config.api.port,
        log_level="info",
        access_log=False  # 请求日志由中间件输出
    )
    server = uvicorn.Server(server_config)
    await server.serve()


async def main():
    """主函数：创建存储并启动所有任务"""
    from .api.app import build_store, create_app

    logger = logging.getLogger(__name__)

    config = get_config()
    setup_logging(config)
    logger.info(f"Telemetry Collector v{__version__}")
    logger.info(f"Config loaded: API={config.api.host}:{config.api.port}")

    store = build_store(config)
    logger.info(f"Sample store initialized: {store.db_path} (retention={store.retention_hours}h)")

    app = create_app(config, store=store)

    api_task = asyncio.create_task(run_api_server(app, config))
    cleanup_task = asyncio.create_task(run_cleanup(
        store,
        config.retention.hours,
        config.retention.cleanup_interval_seconds,
    ))

    try:
        # API 服务退出（收到信号）后停止清理任务
        await api_task
    except asyncio.CancelledError:
        logger.info("Tasks cancelled, shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise
    finally:
        cleanup_task.cancel()
        await asyncio.gather(cleanup_task, return_exceptions=True)
        store.close()


def cli():
    """命令行入口"""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown requested, exiting...")
        sys.exit(0)


if __name__ == "__main__":
    cli()
