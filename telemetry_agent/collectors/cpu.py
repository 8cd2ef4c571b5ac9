"""
CPU 采集器

通过 psutil 计算 CPU 使用率
"""

import asyncio

import psutil


async def get_cpu_percent(interval: float = 1.0) -> float:
    """
    采集 CPU 使用率

    在 interval 秒内采样两次计算 delta，放到线程中执行避免阻塞事件循环。

    Returns:
        0~100 的浮点数，保留两位小数
    """
    cpu_pct = await asyncio.to_thread(psutil.cpu_percent, interval)
    return round(cpu_pct, 2)
