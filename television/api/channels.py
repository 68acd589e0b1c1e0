"""
television.api.channels
~~~~~~~~~~~~~~~~~~~~~~~

频道与观众档案的只读 REST 接口，无需鉴权。

端点:
  - ``GET /channels``                       → 频道名列表（字典序）
  - ``GET /channels/{channel}/broadcast``   → 当前播出内容
  - ``GET /channels/{channel}/ratings``     → 评分记录
  - ``GET /channels/{channel}/viewers``     → 当前收看人数
  - ``GET /channels/{channel}``             → 频道完整状态
  - ``GET /users/{user}/profile``           → 观众档案

频道名与用户标识按 path 参数匹配，可以包含 ``/``。带后缀的路由先于频道详情注册，
因此名字以 ``/broadcast``、``/ratings`` 或 ``/viewers`` 结尾的频道只能通过
``POST /api/query`` 读取。
"""
from fastapi import APIRouter, Depends, Request

from television.api.deps import get_television
from television.core.rate_limit import limiter
from television.schemas.api_response import ApiResponse
from television.schemas.state import ChannelState, UserProfile
from television.services.television import Television

router: APIRouter = APIRouter()


# ── 频道查询 ──────────────────────────────────────────────────────────

@router.get("/channels", summary="获取频道列表", response_model=ApiResponse[list[str]])
@limiter.limit("10/second")
async def list_channels(request: Request, television: Television = Depends(get_television)):
    """按字典序返回所有频道名。"""
    return ApiResponse.ok(data=await television.list_channels())


@router.get("/channels/{channel:path}/broadcast", summary="获取当前播出内容", response_model=ApiResponse[str])
@limiter.limit("10/second")
async def current_broadcast(request: Request, channel: str, television: Television = Depends(get_television)):
    return ApiResponse.ok(data=await television.get_current_broadcast(channel))


@router.get("/channels/{channel:path}/ratings", summary="获取评分记录", response_model=ApiResponse[list[int]])
@limiter.limit("10/second")
async def channel_ratings(request: Request, channel: str, television: Television = Depends(get_television)):
    return ApiResponse.ok(data=await television.get_channel_ratings(channel))


@router.get("/channels/{channel:path}/viewers", summary="获取收看人数", response_model=ApiResponse[int])
@limiter.limit("10/second")
async def channel_viewers(request: Request, channel: str, television: Television = Depends(get_television)):
    return ApiResponse.ok(data=await television.get_channel_viewers(channel))


@router.get("/channels/{channel:path}", summary="获取频道详情", response_model=ApiResponse[ChannelState])
@limiter.limit("10/second")
async def channel_info(request: Request, channel: str, television: Television = Depends(get_television)):
    """返回频道的所有者、播出内容、评分和收看人数。"""
    return ApiResponse.ok(data=await television.get_channel(channel))


# ── 观众档案 ──────────────────────────────────────────────────────────

@router.get("/users/{user:path}/profile", summary="获取观众档案", response_model=ApiResponse[UserProfile])
@limiter.limit("10/second")
async def user_profile(request: Request, user: str, television: Television = Depends(get_television)):
    """返回观众当前收看的频道及调台历史。

    频道被删除后 ``current_channel`` 仍保留原值。
    """
    return ApiResponse.ok(data=await television.get_user_profile(user))
