"""
样本校验

唯一的入库关卡：任何未通过校验的数据都不会进入存储。
与存储层解耦，可脱离数据库单独测试。
"""

import math
from datetime import datetime
from typing import Any, Mapping, Optional

from .errors import InvalidField, MissingField, OutOfRange
from .models import SampleIn, format_ts, utc_now

PERCENT_FIELDS = ("cpuPercent", "ramPercent", "diskPercent")
REQUIRED_FIELDS = (
    "machineId",
    "cpuPercent",
    "ramPercent",
    "diskPercent",
    "osDescription",
    "uptimeSeconds",
)

# SQLite INTEGER 上限
MAX_UPTIME_SECONDS = 2 ** 63 - 1
RANGE_MESSAGE = "Invalid data ranges: cpu/ram/disk (0-100), uptime (>=0)"


def _is_number(value: Any) -> bool:
    # bool 是 int 的子类，这里不接受
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_blank(value: Any) -> bool:
    return isinstance(value, str) and not value.strip()


def _within(value: Any, low: int, high: int) -> bool:
    # 超大 int 无法转为 float，只对 float 检查 isfinite
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return low <= value <= high


def validate_sample(candidate: Any, now: Optional[datetime] = None) -> SampleIn:
    """
    校验候选样本并生成 SampleIn

    Args:
        candidate: Agent 提交的原始 JSON 对象
        now: 入库时间（默认当前 UTC 时间），由存储时钟提供

    Returns:
        带 recorded_at 时间戳的 SampleIn

    Raises:
        MissingField: 缺少必填字段（或字符串字段为空）
        InvalidField: 字段类型错误
        OutOfRange: cpu/ram/disk 不在 [0, 100]，或 uptime 不在 [0, MAX_UPTIME_SECONDS]
    """
    if not isinstance(candidate, Mapping):
        raise InvalidField("body", "Request body must be a JSON object")

    missing = [
        name for name in REQUIRED_FIELDS
        if candidate.get(name) is None or _is_blank(candidate.get(name))
    ]
    if missing:
        raise MissingField(missing)

    machine_id = candidate["machineId"]
    if not isinstance(machine_id, str):
        raise InvalidField("machineId", "machineId must be a string")

    os_description = candidate["osDescription"]
    if not isinstance(os_description, str):
        raise InvalidField("osDescription", "osDescription must be a string")

    for name in PERCENT_FIELDS + ("uptimeSeconds",):
        if not _is_number(candidate[name]):
            raise InvalidField(name, f"{name} must be a number")

    for name in PERCENT_FIELDS:
        value = candidate[name]
        if not _within(value, 0, 100):
            raise OutOfRange(name, value, RANGE_MESSAGE)

    uptime = candidate["uptimeSeconds"]
    if not _within(uptime, 0, MAX_UPTIME_SECONDS):
        raise OutOfRange("uptimeSeconds", uptime, RANGE_MESSAGE)

    return SampleIn(
        machine_id=machine_id.strip(),
        cpu_percent=float(candidate["cpuPercent"]),
        ram_percent=float(candidate["ramPercent"]),
        disk_percent=float(candidate["diskPercent"]),
        os_description=os_description,
        uptime_seconds=int(round(uptime)),
        recorded_at=format_ts(now or utc_now()),
    )
