"""
television.services.viewer_sessions
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

观众会话追踪 —— 维护用户标识到 ``UserProfile`` 的映射。

每个用户只有两种状态：未收看（档案不存在或 ``current_channel`` 为空）
和正在收看某个频道。调台是唯一的状态迁移，没有"离开"操作。
调台时同步调整新旧频道的收看人数，保证人数与档案一致。
"""
from __future__ import annotations

from television.core.errors import AlreadyTuned, ChannelMismatch, ChannelNotFound, NoActiveTuneIn
from television.core.logging import get_logger
from television.db.repository import USER_PROFILES
from television.db.transaction import StoreTransaction
from television.schemas.messages import BlockInfo
from television.schemas.state import UserProfile, ViewHistory
from television.services.channel_registry import ChannelRegistry

logger = get_logger(__name__)


class ViewerSessionTracker:
    """观众会话追踪器。

    Attributes:
        registry: 同一事务内的频道注册表。
    """

    def __init__(self, registry: ChannelRegistry) -> None:
        self.registry = registry

    @property
    def tx(self) -> StoreTransaction:
        return self.registry.tx

    async def tune_in(self, user: str, channel: str, block: BlockInfo) -> UserProfile:
        """把用户切换到 ``channel``。

        先校验目标频道存在，再调整人数，校验失败时不会留下任何修改。
        旧频道若已被删除，减员静默跳过。
        """
        profile = await USER_PROFILES.may_load(self.tx, user) or UserProfile()
        previous = profile.current_channel

        if previous == channel:
            raise AlreadyTuned(f"用户 {user} 已在收看 {channel}")

        if not await self.registry.exists(channel):
            raise ChannelNotFound(f"频道不存在: {channel}")

        if previous is not None:
            await self.registry.adjust_viewer_count(previous, -1)
        await self.registry.adjust_viewer_count(channel, +1)

        profile.current_channel = channel
        profile.viewing_history.append(
            ViewHistory(channel=channel, start_time=block.time, start_height=block.height),
        )
        USER_PROFILES.save(self.tx, user, profile)

        logger.debug(
            "调台 | user=%s | %s -> %s | height=%d",
            user, previous, channel, block.height,
        )
        return profile

    async def rate_current_channel(self, user: str, channel: str, score: int) -> None:
        """为正在收看的频道评分。"""
        profile = await USER_PROFILES.may_load(self.tx, user)
        if profile is None or profile.current_channel is None:
            raise NoActiveTuneIn(f"用户 {user} 当前未收看任何频道")
        if profile.current_channel != channel:
            raise ChannelMismatch(
                f"用户 {user} 正在收看 {profile.current_channel}，不是 {channel}",
            )
        await self.registry.record_rating(channel, score)

    async def get_profile(self, user: str) -> UserProfile:
        return await USER_PROFILES.load(self.tx, user)
