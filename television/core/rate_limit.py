"""
television.core.rate_limit
~~~~~~~~~~~~~~~~~~~~~~~~~~

HTTP 接口限流配置。

基于客户端 IP 地址进行限流，可通过 ``RATE_LIMIT_ENABLED=false`` 整体关闭（测试环境使用）。
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from television.core.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=settings.RATE_LIMIT_ENABLED,
)
