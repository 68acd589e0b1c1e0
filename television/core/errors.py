"""
television.core.errors
~~~~~~~~~~~~~~~~~~~~~~

业务异常体系 —— 所有命令/查询失败都以 ``TelevisionError`` 子类抛出。

每个异常携带 ``code``（与 HTTP 状态码对齐），由 ``television.main`` 中的
异常处理器统一转换为 ``ApiResponse.fail()``。异常在事务内部抛出时，
该命令的全部写入都会被丢弃。
"""
from __future__ import annotations


class TelevisionError(Exception):
    """业务异常基类。"""

    code: int = 400
    default_msg: str = "请求失败"

    def __init__(self, msg: str | None = None) -> None:
        self.msg = msg or self.default_msg
        super().__init__(self.msg)

    @property
    def kind(self) -> str:
        """异常种类名（即类名），供客户端区分失败原因。"""
        return type(self).__name__


class NotFound(TelevisionError):
    """频道或用户档案不存在。"""

    code = 404
    default_msg = "资源不存在"


class Unauthorized(TelevisionError):
    """调用者不是资源所有者。"""

    code = 403
    default_msg = "无权操作该频道"


class AlreadyExists(TelevisionError):
    """reject 策略下重复创建同名频道。"""

    code = 409
    default_msg = "频道已存在"


class AlreadyTuned(TelevisionError):
    code = 409
    default_msg = "用户已在收看该频道"


class ChannelNotFound(TelevisionError):
    """调台目标频道不存在。"""

    code = 404
    default_msg = "目标频道不存在"


class NoActiveTuneIn(TelevisionError):
    code = 409
    default_msg = "用户当前未收看任何频道"


class ChannelMismatch(TelevisionError):
    code = 409
    default_msg = "用户当前收看的不是该频道"


class InvalidState(TelevisionError):
    """存储层或宿主环境故障（含无法解析的持久化文档）。"""

    code = 500
    default_msg = "存储状态异常"
