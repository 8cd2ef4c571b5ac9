"""
配置管理模块

从环境变量加载配置（前缀 TELEMETRY_AGENT_），例如：

    TELEMETRY_AGENT_SERVER_URL=http://collector:5000/systemdata
    TELEMETRY_AGENT_MACHINE_ID=PC-1
    TELEMETRY_AGENT_VERBOSE=true
"""

import socket
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AgentSettings(BaseSettings):
    """Agent 配置模型"""

    model_config = SettingsConfigDict(env_prefix="TELEMETRY_AGENT_", env_file=".env", extra="ignore")

    server_url: str = Field(default="http://localhost:5000/systemdata", description="Collector 上报地址")
    machine_id: str = Field(default_factory=lambda: socket.gethostname(), description="机器标识，默认主机名")
    interval_seconds: float = Field(default=60, gt=0, description="采集间隔（秒）")
    max_retries: int = Field(default=3, ge=1, description="单次上报最大尝试次数")
    retry_delay_seconds: float = Field(default=5, ge=0, description="重试基础延迟（秒），第 n 次重试等待 n 倍")
    max_offline_seconds: float = Field(default=300, gt=0, description="连续上报失败超过该时长后退出")
    request_timeout_seconds: float = Field(default=40, gt=0, description="单次请求超时（秒）")
    status_interval_seconds: float = Field(default=60, gt=0, description="状态日志间隔（秒）")
    verbose: bool = Field(default=False, description="输出 INFO 级别日志")

    @property
    def health_url(self) -> str:
        """健康检查地址"""
        return self.server_url.rstrip("/") + "/health"


# 全局配置实例（延迟加载）
_settings: Optional[AgentSettings] = None


def get_settings() -> AgentSettings:
    """获取全局配置实例"""
    global _settings
    if _settings is None:
        _settings = AgentSettings()
    return _settings
