"""
系统数据 API

- POST   /systemdata           Agent 上报样本
- GET    /systemdata           所有机器概览 / 单台机器历史
- GET    /systemdata/machines  机器列表
- DELETE /systemdata/cleanup   手动清理
- GET    /systemdata/health    健康检查
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from ...errors import InvalidField
from ...models import (
    CleanupResponse, HealthResponse, IngestReceipt, IngestResponse,
    MachinesResponse, format_ts, utc_now,
)
from ...queries import (
    MAX_HISTORY_HOURS, get_all_machines_view, get_machine_view,
    list_machines, parse_hours,
)
from ...retention import purge
from ...store import SampleStore
from ...validation import validate_sample
from ..dependencies import get_store

router = APIRouter(prefix="/systemdata", tags=["systemdata"])


@router.post("", response_model=IngestResponse, status_code=status.HTTP_201_CREATED)
async def ingest_sample(request: Request, store: SampleStore = Depends(get_store)):
    """
    接收 Agent 上报的样本

    Body: {machineId, cpuPercent, ramPercent, diskPercent, osDescription, uptimeSeconds}
    """
    try:
        candidate = await request.json()
    except ValueError:
        raise InvalidField("body", "Request body must be valid JSON")

    sample = store.append(validate_sample(candidate, now=store.now()))

    return IngestResponse(
        data=IngestReceipt(
            id=sample.id,
            machine_id=sample.machine_id,
            timestamp=sample.recorded_at,
        )
    )


@router.get("")
async def get_system_data(
    machine_id: Optional[str] = Query(None, alias="machineId", description="只查询指定机器"),
    hours: Optional[str] = Query(None, description=f"历史窗口小时数（1-{MAX_HISTORY_HOURS}，默认 24）"),
    store: SampleStore = Depends(get_store)
):
    """
    查询系统数据

    - 不带 machineId：所有机器最新样本 + 概览
    - 带 machineId：该机器最新样本 + 窗口内历史
    """
    window_hours = parse_hours(hours, maximum=MAX_HISTORY_HOURS)
    machine_id = machine_id.strip() if machine_id else machine_id

    if machine_id:
        view = get_machine_view(store, machine_id, window_hours)
    else:
        view = get_all_machines_view(store, window_hours)

    return {"success": True, "data": view.model_dump(by_alias=True)}


@router.get("/machines", response_model=MachinesResponse)
async def get_machines(store: SampleStore = Depends(get_store)):
    """获取所有机器及其最新样本"""
    machines = list_machines(store)
    return MachinesResponse(data=machines, count=len(machines))


@router.delete("/cleanup", response_model=CleanupResponse)
async def cleanup(
    hours: Optional[str] = Query(None, description="删除早于该小时数的样本（>= 1，默认 24）"),
    store: SampleStore = Depends(get_store)
):
    """手动清理旧数据"""
    window_hours = parse_hours(hours)
    deleted = purge(store, window_hours)
    return CleanupResponse(
        message=f"Cleaned up {deleted} old records",
        deleted_count=deleted,
    )


@router.get("/health", response_model=HealthResponse)
async def health():
    """健康检查"""
    return HealthResponse(timestamp=format_ts(utc_now()))
