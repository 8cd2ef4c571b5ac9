"""
磁盘采集器

采集系统盘的磁盘使用情况
"""

from typing import List, Optional

import psutil

# 优先匹配的系统盘挂载点（Windows / Linux / macOS）
PREFERRED_MOUNTS = ("C:\\", "/", "/System/Volumes/Data")


def pick_main_mount(mounts: List[str]) -> Optional[str]:
    """
    选择系统盘挂载点

    Args:
        mounts: 当前机器的挂载点列表

    Returns:
        优先返回 PREFERRED_MOUNTS 中的第一个匹配项，否则返回第一个挂载点
    """
    for preferred in PREFERRED_MOUNTS:
        if preferred in mounts:
            return preferred
    return mounts[0] if mounts else None


async def get_disk_percent() -> float:
    """
    采集系统盘使用率

    Returns:
        0~100 的浮点数；找不到可用挂载点时返回 0
    """
    mounts = [p.mountpoint for p in psutil.disk_partitions(all=False)]
    mount = pick_main_mount(mounts) or "/"

    try:
        usage = psutil.disk_usage(mount)
    except OSError:
        return 0.0

    if not usage.total:
        return 0.0
    return round(usage.used / usage.total * 100.0, 2)
