"""
数据清理任务

- 被动：定期删除超出保留窗口的样本（查询时已按窗口过滤）
- 主动：管理员按小时数手动清理
"""

import asyncio
import logging

from .store import DEFAULT_RETENTION_HOURS, SampleStore

logger = logging.getLogger(__name__)


def purge(store: SampleStore, hours: int = DEFAULT_RETENTION_HOURS) -> int:
    """
    手动清理早于 hours 小时的样本

    Returns:
        删除数量（空存储返回 0）
    """
    deleted = store.purge_older_than(hours)
    logger.info(f"Cleanup requested: removed {deleted} samples older than {hours}h")
    return deleted


async def run_cleanup(store: SampleStore, retention_hours: int, interval_seconds: int):
    """
    运行数据清理任务

    每隔 interval_seconds 清理一次过期样本。
    """
    logger.info(f"Starting cleanup task (interval={interval_seconds}s, retention={retention_hours}h)")

    while True:
        try:
            await asyncio.sleep(interval_seconds)

            # SQLite 操作放到线程中执行，避免阻塞事件循环
            deleted = await asyncio.to_thread(store.purge_older_than, retention_hours)
            logger.info(f"Cleanup completed: removed {deleted} samples older than {retention_hours}h")

        except asyncio.CancelledError:
            logger.info("Cleanup task cancelled")
            raise
        except Exception as e:
            logger.error(f"Cleanup error: {e}", exc_info=True)
            await asyncio.sleep(60)  # 出错后等一分钟
