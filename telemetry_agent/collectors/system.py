"""
系统信息采集器

操作系统描述与开机时长
"""

import platform
import time

import psutil


def get_os_description() -> str:
    """操作系统描述：系统 版本 架构（如 "Linux 6.8.0 x86_64"）"""
    parts = [platform.system(), platform.release(), platform.machine()]
    description = " ".join(p for p in parts if p)
    return description or "Unknown OS"


def get_uptime_seconds() -> int:
    """开机以来的秒数"""
    return max(0, int(round(time.time() - psutil.boot_time())))
