"""
内存采集器
"""

import psutil


async def get_ram_percent() -> float:
    """采集内存使用率（已用 / 总量），保留两位小数"""
    mem = psutil.virtual_memory()
    if not mem.total:
        return 0.0
    return round(mem.used / mem.total * 100.0, 2)
