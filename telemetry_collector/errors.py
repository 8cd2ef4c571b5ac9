"""
错误类型定义

- 客户端输入错误（400）：MissingField / OutOfRange / InvalidField / QueryParameterInvalid
- 存储错误（500）：StoreUnavailable
"""

from typing import List, Optional


class TelemetryError(Exception):
    """所有业务错误的基类"""

    status_code: int = 500
    reason: str = "TelemetryError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SampleRejected(TelemetryError):
    """样本校验失败（不会重试）"""

    status_code = 400
    reason = "SampleRejected"


class MissingField(SampleRejected):
    """缺少必填字段"""

    reason = "MissingField"

    def __init__(self, fields: List[str]):
        self.fields = list(fields)
        super().__init__(f"Missing required fields: {', '.join(self.fields)}")


class OutOfRange(SampleRejected):
    """数值超出允许范围"""

    reason = "OutOfRange"

    def __init__(self, field: str, value, message: Optional[str] = None):
        self.field = field
        self.value = value
        super().__init__(message or f"Invalid value for {field}: {value!r}")


class InvalidField(SampleRejected):
    """字段类型错误（如非数字的百分比）"""

    reason = "InvalidField"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class QueryParameterInvalid(TelemetryError):
    """查询参数非法，在访问存储之前拒绝"""

    status_code = 400
    reason = "QueryParameterInvalid"

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(message)


class StoreUnavailable(TelemetryError):
    """存储层不可用"""

    status_code = 500
    reason = "StoreUnavailable"
