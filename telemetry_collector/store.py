"""
样本存储层

封装所有 SQLite 操作：追加样本、按窗口查询、清理过期样本。

过期规则：recorded_at + retention_hours 之后样本即视为过期。
所有查询在读取时按截止时间过滤，物理删除由定期清理任务完成。
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from .errors import QueryParameterInvalid, StoreUnavailable
from .models import Sample, SampleIn, format_ts, utc_now

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_HOURS = 24
# 早于任何样本的截止时间（datetime.min）
EARLIEST_TS = "0001-01-01T00:00:00.000000Z"

SCHEMA = """
CREATE TABLE IF NOT EXISTS samples (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    machine_id TEXT NOT NULL,
    cpu_percent REAL NOT NULL,
    ram_percent REAL NOT NULL,
    disk_percent REAL NOT NULL,
    os_description TEXT NOT NULL,
    uptime_seconds INTEGER NOT NULL,
    recorded_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_samples_machine_ts ON samples(machine_id, recorded_at);
CREATE INDEX IF NOT EXISTS idx_samples_ts ON samples(recorded_at);
"""

COLUMNS = (
    "id, machine_id, cpu_percent, ram_percent, disk_percent, "
    "os_description, uptime_seconds, recorded_at"
)


def pick_latest_per_machine(samples: Iterable[Sample]) -> List[Sample]:
    """
    按 machine_id 分组，取每组 recorded_at 最大的样本

    时间戳相同时取后插入的（id 更大）。结果按 machine_id 排序，保证前端渲染稳定。
    """
    latest: Dict[str, Sample] = {}
    for sample in samples:
        current = latest.get(sample.machine_id)
        if current is None or (sample.recorded_at, sample.id) > (current.recorded_at, current.id):
            latest[sample.machine_id] = sample
    return [latest[machine_id] for machine_id in sorted(latest)]


class SampleStore:
    """样本存储（启动时创建一次，注入到 API 与清理任务）"""

    def __init__(
        self,
        db_path: str,
        retention_hours: int = DEFAULT_RETENTION_HOURS,
        timeout: int = 30,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        初始化存储

        Args:
            db_path: 数据库文件路径
            retention_hours: 保留窗口（小时）
            timeout: SQLite 锁等待超时（秒）
            clock: 返回当前 UTC 时间的函数（测试可注入）
        """
        if retention_hours < 1:
            raise ValueError("retention_hours must be >= 1")

        self.db_path = Path(db_path)
        self.retention_hours = retention_hours
        self.timeout = timeout
        self._clock = clock or utc_now
        self._write_lock = threading.Lock()
        self._closed = False

        # 确保目录存在
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        with self.get_conn() as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.executescript(SCHEMA)

    def now(self) -> datetime:
        """存储时钟的当前时间"""
        return self._clock()

    @contextmanager
    def get_conn(self):
        """
        获取数据库连接（上下文管理器）

        sqlite3.Error 统一转换为 StoreUnavailable。
        """
        if self._closed:
            raise StoreUnavailable("Sample store is closed")
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        except sqlite3.Error as e:
            logger.error(f"Failed to open sample store {self.db_path}: {e}")
            raise StoreUnavailable(str(e)) from e

        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Sample store error: {e}", exc_info=True)
            raise StoreUnavailable(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def close(self):
        """关闭存储，之后的任何调用都抛出 StoreUnavailable"""
        self._closed = True
        logger.info(f"Sample store closed: {self.db_path}")

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # 截止时间
    # =========================================================================

    def _hours_ago(self, hours: float) -> str:
        """now - hours 的时间戳；超出 datetime 可表示范围时取最早时间"""
        try:
            return format_ts(self.now() - timedelta(hours=hours))
        except OverflowError:
            return EARLIEST_TS

    def _cutoff(self, window_hours: float) -> str:
        """查询截止时间：窗口与保留期取较短者"""
        hours = min(window_hours, self.retention_hours)
        return self._hours_ago(hours)

    @staticmethod
    def _to_sample(row: sqlite3.Row) -> Sample:
        return Sample(**dict(row))

    # =========================================================================
    # 写入
    # =========================================================================

    def append(self, sample: SampleIn) -> Sample:
        """
        追加样本

        Returns:
            带 id 的已入库样本
        """
        with self._write_lock:
            with self.get_conn() as conn:
                cursor = conn.execute("""
                    INSERT INTO samples (
                        machine_id, cpu_percent, ram_percent, disk_percent,
                        os_description, uptime_seconds, recorded_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (
                    sample.machine_id, sample.cpu_percent, sample.ram_percent,
                    sample.disk_percent, sample.os_description,
                    sample.uptime_seconds, sample.recorded_at,
                ))
                sample_id = cursor.lastrowid

        logger.debug(f"Stored sample {sample_id} for machine {sample.machine_id}")
        return Sample(id=sample_id, **sample.model_dump())

    def purge_older_than(self, window_hours: float = DEFAULT_RETENTION_HOURS) -> int:
        """
        删除 recorded_at 早于 now - window_hours 的样本

        截止时间在持锁后计算，并发追加的样本（时间戳为当前时间）不会被删除。

        Returns:
            删除数量
        """
        if window_hours < 1:
            raise QueryParameterInvalid("hours", "Invalid hours parameter (>= 1)")

        with self._write_lock:
            cutoff = self._hours_ago(window_hours)
            with self.get_conn() as conn:
                cursor = conn.execute("DELETE FROM samples WHERE recorded_at < ?", (cutoff,))
                deleted = cursor.rowcount

        if deleted:
            logger.info(f"Purged {deleted} samples older than {cutoff}")
        return deleted

    # =========================================================================
    # 查询
    # =========================================================================

    def all_within_window(self, window_hours: float = DEFAULT_RETENTION_HOURS) -> List[Sample]:
        """窗口内所有机器的样本，按时间升序"""
        cutoff = self._cutoff(window_hours)
        with self.get_conn() as conn:
            cursor = conn.execute(f"""
                SELECT {COLUMNS}
                FROM samples
                WHERE recorded_at >= ?
                ORDER BY recorded_at ASC, id ASC
            """, (cutoff,))
            return [self._to_sample(row) for row in cursor.fetchall()]

    def history_for(self, machine_id: str, window_hours: float = DEFAULT_RETENTION_HOURS) -> List[Sample]:
        """单台机器窗口内的样本，按时间升序；未知机器返回空列表"""
        cutoff = self._cutoff(window_hours)
        with self.get_conn() as conn:
            cursor = conn.execute(f"""
                SELECT {COLUMNS}
                FROM samples
                WHERE machine_id = ? AND recorded_at >= ?
                ORDER BY recorded_at ASC, id ASC
            """, (machine_id, cutoff))
            return [self._to_sample(row) for row in cursor.fetchall()]

    def latest_per_machine(self) -> List[Sample]:
        """每台机器在保留期内的最新样本"""
        return pick_latest_per_machine(self.all_within_window(self.retention_hours))

    def latest_for(self, machine_id: str) -> Optional[Sample]:
        """单台机器在保留期内的最新样本（不受查询窗口限制）"""
        cutoff = self._cutoff(self.retention_hours)
        with self.get_conn() as conn:
            cursor = conn.execute(f"""
                SELECT {COLUMNS}
                FROM samples
                WHERE machine_id = ? AND recorded_at >= ?
                ORDER BY recorded_at DESC, id DESC
                LIMIT 1
            """, (machine_id, cutoff))
            row = cursor.fetchone()
            return self._to_sample(row) if row else None

    def count(self) -> int:
        """物理存储的样本数量（含尚未清理的过期样本）"""
        with self.get_conn() as conn:
            cursor = conn.execute("SELECT COUNT(*) FROM samples")
            return cursor.fetchone()[0]

    def ping(self) -> bool:
        """检查存储是否可用"""
        try:
            with self.get_conn() as conn:
                conn.execute("SELECT 1")
            return True
        except StoreUnavailable:
            return False
