"""
数据采集器模块

包含 CPU、内存、磁盘、系统信息采集器
"""

import asyncio
from typing import Any, Dict

from .cpu import get_cpu_percent
from .disk import get_disk_percent
from .memory import get_ram_percent
from .system import get_os_description, get_uptime_seconds

__all__ = [
    "collect_sample",
    "get_cpu_percent",
    "get_disk_percent",
    "get_ram_percent",
    "get_os_description",
    "get_uptime_seconds",
]


async def collect_sample(machine_id: str) -> Dict[str, Any]:
    """
    采集一次完整样本

    Returns:
        Collector 上报格式：
        {machineId, cpuPercent, ramPercent, diskPercent, osDescription, uptimeSeconds}
    """
    cpu_pct, ram_pct, disk_pct = await asyncio.gather(
        get_cpu_percent(),
        get_ram_percent(),
        get_disk_percent(),
    )

    return {
        "machineId": machine_id,
        "cpuPercent": cpu_pct,
        "ramPercent": ram_pct,
        "diskPercent": disk_pct,
        "osDescription": get_os_description(),
        "uptimeSeconds": get_uptime_seconds(),
    }
