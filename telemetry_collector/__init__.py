"""
Telemetry Collector - 中心采集服务

负责：
- 接收 Agent 推送的 CPU/内存/磁盘样本
- 在保留窗口内存储样本（默认 24 小时）
- 提供最新状态、历史窗口、跨机器概览查询
- 定期清理过期样本
"""

__version__ = "1.0.0"
