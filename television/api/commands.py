"""
television.api.commands
~~~~~~~~~~~~~~~~~~~~~~~

命令 / 查询通用入口 —— 与消息格式一一对应的两个端点。

端点:
  - ``POST /execute``  → 执行一条命令（需携带调用者标识与区块信息）
  - ``POST /query``    → 执行一条只读查询
"""
from typing import Any

from fastapi import APIRouter, Depends, Request

from television.api.deps import get_television
from television.core.rate_limit import limiter
from television.schemas.api_response import ApiResponse
from television.schemas.messages import CommandResponse, ExecuteRequest, QueryRequest
from television.services.television import Television

router: APIRouter = APIRouter()


@router.post("/execute", summary="执行命令", response_model=ApiResponse[CommandResponse])
@limiter.limit("20/second")
async def execute(
    request: Request,
    body: ExecuteRequest,
    television: Television = Depends(get_television),
):
    """执行一条命令。

    ``sender`` 由上游网关完成认证后写入请求体，本服务直接信任。
    失败时返回对应的业务错误码，且该命令不会留下任何写入。

    Args:
        request: FastAPI Request 对象（用于限流判断）。
        body: 命令请求体。
    """
    response = await television.execute(body.sender, body.msg, block=body.block)
    return ApiResponse.ok(data=response)


@router.post("/query", summary="执行查询", response_model=ApiResponse[Any])
@limiter.limit("20/second")
async def query(
    request: Request,
    body: QueryRequest,
    television: Television = Depends(get_television),
):
    """执行一条只读查询，返回查询结果原值。"""
    result = await television.query(body.msg)
    return ApiResponse.ok(data=result)
