"""
样本上报

POST 到 Collector，失败时按线性递增延迟重试（第 n 次失败后等待 n × retry_delay）。
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from . import __version__
from .config import AgentSettings

logger = logging.getLogger(__name__)

USER_AGENT = f"telemetry-agent/{__version__}"


class SampleSender:
    """样本上报客户端"""

    def __init__(
        self,
        settings: AgentSettings,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            settings: Agent 配置
            client: HTTP 客户端（测试可注入 MockTransport）
            sleep: 重试等待函数
            clock: 单调时钟，用于计算离线时长
        """
        self.settings = settings
        self._client = client or httpx.AsyncClient(
            timeout=settings.request_timeout_seconds,
            headers={"User-Agent": USER_AGENT},
        )
        self._sleep = sleep
        self._clock = clock
        self.last_success = clock()
        self.failed_sends = 0

    @property
    def offline_seconds(self) -> float:
        """距离上次成功上报的秒数"""
        return self._clock() - self.last_success

    async def send(self, payload: Dict[str, Any]) -> bool:
        """
        上报一个样本

        Returns:
            是否上报成功（全部重试失败返回 False，不抛异常）
        """
        max_retries = self.settings.max_retries
        last_error: Optional[Exception] = None

        for attempt in range(1, max_retries + 1):
            try:
                logger.info(f"Sending data to server (attempt {attempt}/{max_retries})")
                response = await self._client.post(self.settings.server_url, json=payload)
                response.raise_for_status()

                logger.info(f"Data sent successfully (status={response.status_code}, machine={payload.get('machineId')})")
                self.last_success = self._clock()
                self.failed_sends = 0
                return True

            except httpx.HTTPError as e:
                last_error = e
                logger.warning(f"Attempt {attempt} failed: {e}")
                if attempt < max_retries:
                    delay = self.settings.retry_delay_seconds * attempt
                    logger.info(f"Retrying in {delay:.1f}s...")
                    await self._sleep(delay)

        self.failed_sends += 1
        logger.error(f"Failed to send data after {max_retries} attempts: {last_error}")
        return False

    async def check_health(self) -> bool:
        """探测 Collector 是否可达（启动时预热）"""
        try:
            response = await self._client.get(self.settings.health_url, timeout=5)
            response.raise_for_status()
            logger.info("Server is reachable")
            return True
        except httpx.HTTPError as e:
            logger.warning(f"Server connectivity test failed, continuing: {e}")
            return False

    async def aclose(self):
        await self._client.aclose()
