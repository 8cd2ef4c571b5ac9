"""
测试公共 fixture
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# 添加项目路径到 sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))

from telemetry_collector.store import SampleStore
from telemetry_collector.validation import validate_sample


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 17, 12, 0, 0))


@pytest.fixture
def store(tmp_path, clock):
    """创建临时测试存储"""
    store = SampleStore(str(tmp_path / "test_telemetry.db"), clock=clock)
    yield store
    store.close()


def make_payload(machine_id="PC-1", cpu=45.2, ram=67.8, disk=23.1, **overrides):
    """构造 Agent 上报格式的样本"""
    payload = {
        "machineId": machine_id,
        "cpuPercent": cpu,
        "ramPercent": ram,
        "diskPercent": disk,
        "osDescription": "Linux 6.8.0 x86_64",
        "uptimeSeconds": 3600,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def add_sample(store):
    """按存储时钟校验并追加样本"""

    def _add(machine_id="PC-1", cpu=45.2, ram=67.8, disk=23.1, **overrides):
        candidate = make_payload(machine_id, cpu, ram, disk, **overrides)
        return store.append(validate_sample(candidate, now=store.now()))

    return _add
