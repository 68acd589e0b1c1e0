"""
television.schemas.state
~~~~~~~~~~~~~~~~~~~~~~~~

持久化状态模型 —— 频道注册表与观众档案在键值存储中的文档结构。

两个命名空间互相独立：``channels`` 以频道名为键，``user_profiles`` 以用户标识为键，
存储层不做跨命名空间的外键约束。
"""
from __future__ import annotations

from pydantic import BaseModel, Field

CHANNELS_NAMESPACE = "channels"
USER_PROFILES_NAMESPACE = "user_profiles"


class ChannelState(BaseModel):
    """单个频道的完整状态。"""

    owner: str = Field(..., description="有权修改该频道的调用者标识")
    broadcast: str = Field(default="", description="当前播出内容")
    ratings: list[int] = Field(default_factory=list, description="评分记录（只追加）")
    viewer_count: int = Field(default=0, ge=0, description="当前收看人数")


class ViewHistory(BaseModel):
    """一次调台记录，写入后不再修改。"""

    channel: str = Field(..., description="调入的频道名")
    start_time: int = Field(..., ge=0, description="调入时间（区块时间，秒）")
    start_height: int = Field(..., ge=0, description="调入时的区块高度")


class UserProfile(BaseModel):
    """观众档案，首次调台时惰性创建，永不删除。"""

    current_channel: str | None = Field(default=None, description="当前收看频道，None 表示未收看")
    viewing_history: list[ViewHistory] = Field(
        default_factory=list, description="调台历史（按时间正序，只追加）",
    )
