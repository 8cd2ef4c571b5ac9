"""
采集循环

每隔 interval_seconds 采集并上报一次：
- 采集或上报失败只记录日志，循环继续
- 连续失败超过 max_offline_seconds 后退出（不在本地缓存补发）
- 停止时补发最后一次采集的样本
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from .collectors import collect_sample
from .config import AgentSettings
from .sender import SampleSender

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_OFFLINE = 1


class AgentRunner:
    """Agent 主循环"""

    def __init__(
        self,
        settings: AgentSettings,
        sender: SampleSender,
        collect: Callable[[str], Awaitable[Dict[str, Any]]] = collect_sample,
    ):
        self.settings = settings
        self.sender = sender
        self._collect = collect
        self._stop_event = asyncio.Event()
        self.last_sample: Optional[Dict[str, Any]] = None
        self.cycles = 0

    def stop(self):
        """请求停止（信号处理器调用）"""
        self._stop_event.set()

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def should_continue(self) -> bool:
        """离线时长超过上限则停止"""
        offline = self.sender.offline_seconds
        if offline > self.settings.max_offline_seconds:
            logger.error(f"Server offline for {offline:.0f}s. Stopping agent.")
            return False
        return True

    async def run_once(self) -> bool:
        """执行一次采集 + 上报"""
        self.cycles += 1
        try:
            sample = await self._collect(self.settings.machine_id)
        except Exception as e:
            logger.error(f"Error collecting system information: {e}", exc_info=True)
            return False

        self.last_sample = sample
        logger.debug(f"Collected sample: {sample}")
        return await self.sender.send(sample)

    def log_status(self):
        logger.info(
            f"Agent status: machine={self.settings.machine_id}, cycles={self.cycles}, "
            f"failed_sends={self.sender.failed_sends}, "
            f"since_last_success={self.sender.offline_seconds:.0f}s"
        )

    async def _wait(self, seconds: float):
        """等待下一个周期，收到停止请求时提前返回"""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def run(self, once: bool = False) -> int:
        """
        运行采集循环

        Returns:
            退出码：正常停止为 0，离线超时为 1
        """
        logger.info(
            f"Starting telemetry agent (server={self.settings.server_url}, "
            f"machine={self.settings.machine_id}, interval={self.settings.interval_seconds}s, "
            f"max_retries={self.settings.max_retries})"
        )
        await self.sender.check_health()

        since_status = 0.0
        while not self.stopping:
            sent = await self.run_once()

            if once:
                return EXIT_OK if sent else EXIT_OFFLINE

            if not self.should_continue():
                logger.error("Stopping monitoring due to server connectivity issues")
                return EXIT_OFFLINE

            since_status += self.settings.interval_seconds
            if since_status >= self.settings.status_interval_seconds:
                self.log_status()
                since_status = 0.0

            await self._wait(self.settings.interval_seconds)

        await self.shutdown()
        return EXIT_OK

    async def shutdown(self):
        """停止前补发最后一次样本"""
        if self.last_sample is None:
            logger.info("No system data to send. Goodbye!")
            return
        if await self.sender.send(self.last_sample):
            logger.info("Final data sent. Goodbye!")
        else:
            logger.warning("Failed to send final data. Goodbye!")
