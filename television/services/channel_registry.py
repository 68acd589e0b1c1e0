"""
television.services.channel_registry
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

频道注册表 —— 维护频道名到 ``ChannelState`` 的映射。

负责所有权校验、播出内容更新、评分追加和收看人数增减。
每个实例绑定到一个事务，由 ``Television`` 在每条命令开始时创建。
"""
from __future__ import annotations

from typing import Literal

from television.core.errors import AlreadyExists, Unauthorized
from television.core.logging import get_logger
from television.db.repository import CHANNELS
from television.db.transaction import StoreTransaction
from television.schemas.state import ChannelState

logger = get_logger(__name__)

CreatePolicy = Literal["overwrite", "reject"]


class ChannelRegistry:
    """频道注册表。

    Attributes:
        tx: 当前命令的事务视图。
        create_policy: 重名创建策略，``overwrite`` 覆盖、``reject`` 拒绝。
    """

    def __init__(self, tx: StoreTransaction, create_policy: CreatePolicy = "overwrite") -> None:
        self.tx = tx
        self.create_policy = create_policy

    # ── 写操作 ────────────────────────────────────────────────────────

    async def create(self, name: str, caller: str) -> ChannelState:
        """以 ``caller`` 为所有者创建频道。

        overwrite 策略下会整体替换同名频道（评分、播出内容、收看人数全部清零）。
        """
        if await CHANNELS.has(self.tx, name):
            if self.create_policy == "reject":
                raise AlreadyExists(f"频道已存在: {name}")
            logger.warning("覆盖已存在的频道 | channel=%s | new_owner=%s", name, caller)

        state = ChannelState(owner=caller)
        CHANNELS.save(self.tx, name, state)
        return state

    async def remove(self, name: str, caller: str) -> None:
        """删除频道。仍指向该频道的观众档案不做任何修正。"""
        await self._load_owned(name, caller)
        CHANNELS.remove(self.tx, name)

    async def update_broadcast(self, name: str, caller: str, text: str) -> ChannelState:
        state = await self._load_owned(name, caller)
        state.broadcast = text
        CHANNELS.save(self.tx, name, state)
        return state

    async def record_rating(self, name: str, score: int) -> ChannelState:
        """追加评分。收看资格由 ``ViewerSessionTracker`` 在调用前校验。"""
        state = await CHANNELS.load(self.tx, name)
        state.ratings.append(score)
        CHANNELS.save(self.tx, name, state)
        return state

    async def adjust_viewer_count(self, name: str, delta: int) -> int | None:
        """饱和增减收看人数（不低于 0）。

        Returns:
            调整后的人数；频道已不存在时不做任何事并返回 None。
        """
        state = await CHANNELS.may_load(self.tx, name)
        if state is None:
            logger.debug("频道已被删除，跳过人数调整 | channel=%s | delta=%d", name, delta)
            return None
        state.viewer_count = max(state.viewer_count + delta, 0)
        CHANNELS.save(self.tx, name, state)
        return state.viewer_count

    async def transfer_ownership(self, name: str, caller: str, new_owner: str) -> ChannelState:
        state = await self._load_owned(name, caller)
        state.owner = new_owner
        CHANNELS.save(self.tx, name, state)
        return state

    # ── 只读操作 ──────────────────────────────────────────────────────

    async def get(self, name: str) -> ChannelState:
        return await CHANNELS.load(self.tx, name)

    async def exists(self, name: str) -> bool:
        return await CHANNELS.has(self.tx, name)

    async def list_names(self) -> list[str]:
        """按字典序升序列出所有频道名，无频道时返回空列表。"""
        return await CHANNELS.keys(self.tx)

    async def get_broadcast(self, name: str) -> str:
        return (await self.get(name)).broadcast

    async def get_ratings(self, name: str) -> list[int]:
        return (await self.get(name)).ratings

    async def get_viewer_count(self, name: str) -> int:
        return (await self.get(name)).viewer_count

    async def _load_owned(self, name: str, caller: str) -> ChannelState:
        """读取频道并校验调用者是所有者。"""
        state = await CHANNELS.load(self.tx, name)
        if state.owner != caller:
            raise Unauthorized(f"{caller} 不是频道 {name} 的所有者")
        return state
