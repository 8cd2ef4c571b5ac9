"""
Telemetry Agent - 被监控机器上的采集代理

定期采集 CPU/内存/磁盘使用率和系统信息，推送到 Telemetry Collector。
"""

__version__ = "1.0.0"
