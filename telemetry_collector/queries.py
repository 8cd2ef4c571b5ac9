"""
查询引擎

基于 SampleStore 的只读组合查询：
- 所有机器最新状态 + 概览
- 单台机器最新状态 + 历史
- 机器列表
"""

from typing import List, Optional, Sequence

from .errors import QueryParameterInvalid
from .models import AllMachinesView, MachineView, Overview, Sample
from .store import DEFAULT_RETENTION_HOURS, SampleStore

MAX_HISTORY_HOURS = 168  # 一周


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0
    return round(sum(values) / len(values), 2)


def compute_overview(samples: Sequence[Sample]) -> Overview:
    """
    计算跨机器概览

    Args:
        samples: 窗口内的样本

    Returns:
        平均值保留两位小数；空集合时全部为 0
    """
    return Overview(
        avg_cpu=_mean([s.cpu_percent for s in samples]),
        avg_ram=_mean([s.ram_percent for s in samples]),
        avg_disk=_mean([s.disk_percent for s in samples]),
        total_machines=len({s.machine_id for s in samples}),
    )


def get_all_machines_view(store: SampleStore, window_hours: int = DEFAULT_RETENTION_HOURS) -> AllMachinesView:
    """所有机器最新样本 + 窗口内概览"""
    return AllMachinesView(
        latest=store.latest_per_machine(),
        overview=compute_overview(store.all_within_window(window_hours)),
        time_range=f"{window_hours} hours",
    )


def get_machine_view(
    store: SampleStore,
    machine_id: str,
    window_hours: int = DEFAULT_RETENTION_HOURS
) -> MachineView:
    """单台机器最新样本 + 窗口内历史"""
    return MachineView(
        machine_id=machine_id,
        latest=store.latest_for(machine_id),
        historical=store.history_for(machine_id, window_hours),
        time_range=f"{window_hours} hours",
    )


def list_machines(store: SampleStore) -> List[Sample]:
    """机器发现：每台机器的最新样本"""
    return store.latest_per_machine()


def parse_hours(
    raw: Optional[str],
    default: int = DEFAULT_RETENTION_HOURS,
    minimum: int = 1,
    maximum: Optional[int] = None,
) -> int:
    """
    解析 hours 查询参数

    Raises:
        QueryParameterInvalid: 非整数或超出范围
    """
    if raw is None or raw == "":
        return default

    if maximum is not None:
        message = f"Invalid hours parameter ({minimum}-{maximum})"
    else:
        message = f"Invalid hours parameter (>= {minimum})"

    try:
        hours = int(str(raw).strip())
    except ValueError:
        raise QueryParameterInvalid("hours", message)

    if hours < minimum or (maximum is not None and hours > maximum):
        raise QueryParameterInvalid("hours", message)
    return hours
