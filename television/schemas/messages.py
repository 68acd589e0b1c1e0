"""
television.schemas.messages
~~~~~~~~~~~~~~~~~~~~~~~~~~~

命令 / 查询消息及请求、响应模型。

命令消息以 ``action`` 字段区分，查询消息以 ``query`` 字段区分，
均为 Pydantic 判别联合（discriminated union），在 HTTP 边界完成校验。
"""
from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

ChannelName = Annotated[str, Field(min_length=1, description="频道名")]
Identity = Annotated[str, Field(min_length=1, description="调用者 / 用户标识")]


# ── 命令消息 ──────────────────────────────────────────────────────────

class CreateChannel(BaseModel):
    action: Literal["create_channel"] = "create_channel"
    channel: ChannelName


class RemoveChannel(BaseModel):
    action: Literal["remove_channel"] = "remove_channel"
    channel: ChannelName


class UpdateBroadcast(BaseModel):
    action: Literal["update_broadcast"] = "update_broadcast"
    channel: ChannelName
    broadcast: str = Field(..., description="新的播出内容")


class TuneIn(BaseModel):
    action: Literal["tune_in"] = "tune_in"
    channel: ChannelName


class RateBroadcast(BaseModel):
    action: Literal["rate_broadcast"] = "rate_broadcast"
    channel: ChannelName
    rating: int = Field(..., ge=0, le=255, description="评分（0-255）")


class TransferChannelOwnership(BaseModel):
    action: Literal["transfer_channel_ownership"] = "transfer_channel_ownership"
    channel: ChannelName
    new_owner: Identity


ExecuteMsg = Annotated[
    Union[
        CreateChannel,
        RemoveChannel,
        UpdateBroadcast,
        TuneIn,
        RateBroadcast,
        TransferChannelOwnership,
    ],
    Field(discriminator="action"),
]


# ── 查询消息 ──────────────────────────────────────────────────────────

class GetCurrentBroadcast(BaseModel):
    query: Literal["get_current_broadcast"] = "get_current_broadcast"
    channel: ChannelName


class ListChannels(BaseModel):
    query: Literal["list_channels"] = "list_channels"


class GetUserProfile(BaseModel):
    query: Literal["get_user_profile"] = "get_user_profile"
    user: Identity


class GetChannelRatings(BaseModel):
    query: Literal["get_channel_ratings"] = "get_channel_ratings"
    channel: ChannelName


class GetChannelViewers(BaseModel):
    query: Literal["get_channel_viewers"] = "get_channel_viewers"
    channel: ChannelName


QueryMsg = Annotated[
    Union[
        GetCurrentBroadcast,
        ListChannels,
        GetUserProfile,
        GetChannelRatings,
        GetChannelViewers,
    ],
    Field(discriminator="query"),
]


# ── 请求 / 响应 ───────────────────────────────────────────────────────

class BlockInfo(BaseModel):
    """宿主环境提供的区块信息，是唯一的时间来源。"""

    height: int = Field(..., ge=0, description="区块高度")
    time: int = Field(..., ge=0, description="区块时间（秒）")


class ExecuteRequest(BaseModel):
    """命令请求体。``sender`` 由宿主完成认证，本服务直接信任。"""

    sender: Identity
    block: BlockInfo
    msg: ExecuteMsg


class QueryRequest(BaseModel):
    """查询请求体。"""

    msg: QueryMsg


class Attribute(BaseModel):
    key: str
    value: str


class CommandResponse(BaseModel):
    """命令成功后的返回，属性顺序固定为 ``method`` → ``channel``。"""

    attributes: list[Attribute] = Field(default_factory=list)

    @classmethod
    def of(cls, method: str, channel: str) -> CommandResponse:
        """构造标准的两属性响应。"""
        return cls(attributes=[
            Attribute(key="method", value=method),
            Attribute(key="channel", value=channel),
        ])

    def get(self, key: str) -> str | None:
        """按 key 读取属性值，不存在返回 None。"""
        for attr in self.attributes:
            if attr.key == key:
                return attr.value
        return None
