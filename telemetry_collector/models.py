"""
数据模型定义

包括：
- 样本模型（入库前 / 入库后）
- 概览与查询视图
- API 响应模型

对外 JSON 使用 camelCase 字段名（machineId、cpuPercent ...），
内部属性使用 snake_case。
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SampleIn(BaseModel):
    """已通过校验、尚未入库的样本"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    machine_id: str = Field(..., alias="machineId")
    cpu_percent: float = Field(..., alias="cpuPercent")
    ram_percent: float = Field(..., alias="ramPercent")
    disk_percent: float = Field(..., alias="diskPercent")
    os_description: str = Field(..., alias="osDescription")
    uptime_seconds: int = Field(..., alias="uptimeSeconds")
    recorded_at: str = Field(..., alias="recordedAt")  # UTC ISO 8601，采集端不提供


class Sample(SampleIn):
    """已入库样本（不可变）"""

    id: int


class Overview(BaseModel):
    """跨机器概览（按需计算，不入库）"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    avg_cpu: float = Field(0, alias="avgCpu")
    avg_ram: float = Field(0, alias="avgRam")
    avg_disk: float = Field(0, alias="avgDisk")
    total_machines: int = Field(0, alias="totalMachines")


class AllMachinesView(BaseModel):
    """所有机器视图：最新样本 + 概览"""

    model_config = ConfigDict(populate_by_name=True)

    latest: List[Sample] = Field(default_factory=list)
    overview: Overview = Field(default_factory=Overview)
    time_range: str = Field(..., alias="timeRange")


class MachineView(BaseModel):
    """单机视图：最新样本 + 窗口内历史"""

    model_config = ConfigDict(populate_by_name=True)

    machine_id: str = Field(..., alias="machineId")
    latest: Optional[Sample] = None
    historical: List[Sample] = Field(default_factory=list)
    time_range: str = Field(..., alias="timeRange")


# =============================================================================
# API 响应模型
# =============================================================================

class IngestReceipt(BaseModel):
    """入库回执"""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    machine_id: str = Field(..., alias="machineId")
    timestamp: str


class IngestResponse(BaseModel):
    """POST /systemdata 响应"""

    success: bool = True
    message: str = "System data saved successfully"
    data: IngestReceipt


class MachinesResponse(BaseModel):
    """GET /systemdata/machines 响应"""

    success: bool = True
    data: List[Sample] = Field(default_factory=list)
    count: int = 0


class CleanupResponse(BaseModel):
    """DELETE /systemdata/cleanup 响应"""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    deleted_count: int = Field(..., alias="deletedCount")


class HealthResponse(BaseModel):
    """GET /systemdata/health 响应"""

    success: bool = True
    message: str = "System data API is healthy"
    timestamp: str


# =============================================================================
# 时间戳工具
# =============================================================================

TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """当前 UTC 时间（naive，与存储格式一致）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_ts(dt: datetime) -> str:
    """格式化为定长 ISO 8601 字符串（字典序即时间序）"""
    return dt.strftime(TS_FORMAT)
