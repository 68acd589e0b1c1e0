"""
television.services.television
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

命令分发服务 —— 每个应用实例一个，持有存储句柄并串行执行所有命令。

- ``execute(sender, msg, block)`` → 在单个事务中执行一条命令，返回属性列表
- ``query(msg)``                  → 在只读事务中执行一条查询，返回原始值
- ``transaction()``               → 独占存储的事务作用域（提交或回滚恰好一次）

在 FastAPI lifespan 中初始化并挂载于 ``app.state.television``。
"""
from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from television.core.config import settings
from television.core.errors import InvalidState, TelevisionError
from television.core.logging import get_logger
from television.db.kv_store import KeyValueStore
from television.db.transaction import StoreTransaction
from television.schemas.messages import (
    BlockInfo,
    CommandResponse,
    CreateChannel,
    ExecuteMsg,
    GetChannelRatings,
    GetChannelViewers,
    GetCurrentBroadcast,
    GetUserProfile,
    ListChannels,
    QueryMsg,
    RateBroadcast,
    RemoveChannel,
    TransferChannelOwnership,
    TuneIn,
    UpdateBroadcast,
)
from television.schemas.state import ChannelState, UserProfile
from television.services.channel_registry import ChannelRegistry, CreatePolicy
from television.services.viewer_sessions import ViewerSessionTracker

logger = get_logger(__name__)

CommandHandler = Callable[
    [ChannelRegistry, ViewerSessionTracker, str, "BlockInfo | None", Any],
    Awaitable[None],
]
QueryHandler = Callable[[ChannelRegistry, ViewerSessionTracker, Any], Awaitable[Any]]


class Television:
    """频道注册表 + 观众会话的统一入口。

    Attributes:
        store: 底层键值存储。
        create_policy: 重名频道创建策略。
    """

    def __init__(self, store: KeyValueStore, create_policy: CreatePolicy | None = None) -> None:
        self.store = store
        self.create_policy: CreatePolicy = create_policy or settings.CHANNEL_CREATE_POLICY
        self._lock = asyncio.Lock()
        self._commands: dict[str, CommandHandler] = {
            "create_channel": self._create_channel,
            "remove_channel": self._remove_channel,
            "update_broadcast": self._update_broadcast,
            "tune_in": self._tune_in,
            "rate_broadcast": self._rate_broadcast,
            "transfer_channel_ownership": self._transfer_channel_ownership,
        }
        self._queries: dict[str, QueryHandler] = {
            "get_current_broadcast": lambda reg, _, msg: reg.get_broadcast(msg.channel),
            "list_channels": lambda reg, _, msg: reg.list_names(),
            "get_user_profile": lambda _, tracker, msg: tracker.get_profile(msg.user),
            "get_channel_ratings": lambda reg, _, msg: reg.get_ratings(msg.channel),
            "get_channel_viewers": lambda reg, _, msg: reg.get_viewer_count(msg.channel),
        }

    # ── 事务 ──────────────────────────────────────────────────────────

    @asynccontextmanager
    async def transaction(self, read_only: bool = False) -> AsyncGenerator[StoreTransaction, None]:
        """独占存储的事务作用域。

        正常退出时整批提交写入；任何异常都会丢弃本事务的全部写入并原样抛出。
        """
        async with self._lock:
            tx = StoreTransaction(self.store, read_only=read_only)
            try:
                yield tx
            except TelevisionError as e:
                tx.discard()
                logger.warning("命令被拒绝，已回滚 | %s: %s", e.kind, e.msg)
                raise
            except Exception as e:
                tx.discard()
                logger.error("事务回滚: %s", e, exc_info=True)
                raise
            if not read_only:
                count = await tx.commit()
                logger.debug("事务已提交 | ops=%d", count)

    # ── 分发 ──────────────────────────────────────────────────────────

    async def execute(
        self,
        sender: str,
        msg: ExecuteMsg,
        block: BlockInfo | None = None,
    ) -> CommandResponse:
        """执行一条命令。

        Args:
            sender: 已认证的调用者标识。
            msg: 命令消息。
            block: 区块信息，``tune_in`` 必须提供。

        Returns:
            含 ``method`` 与 ``channel`` 属性的命令响应。
        """
        handler = self._commands.get(msg.action)
        if handler is None:
            raise InvalidState(f"未知命令: {msg.action}")

        async with self.transaction() as tx:
            registry = ChannelRegistry(tx, self.create_policy)
            await handler(registry, ViewerSessionTracker(registry), sender, block, msg)

        logger.info("命令已执行 | method=%s | channel=%s | sender=%s", msg.action, msg.channel, sender)
        return CommandResponse.of(msg.action, msg.channel)

    async def query(self, msg: QueryMsg) -> Any:
        """执行一条只读查询。"""
        handler = self._queries.get(msg.query)
        if handler is None:
            raise InvalidState(f"未知查询: {msg.query}")

        async with self.transaction(read_only=True) as tx:
            registry = ChannelRegistry(tx, self.create_policy)
            return await handler(registry, ViewerSessionTracker(registry), msg)

    # ── 命令处理 ──────────────────────────────────────────────────────

    async def _create_channel(self, registry, tracker, sender, block, msg: CreateChannel) -> None:
        await registry.create(msg.channel, sender)

    async def _remove_channel(self, registry, tracker, sender, block, msg: RemoveChannel) -> None:
        await registry.remove(msg.channel, sender)

    async def _update_broadcast(self, registry, tracker, sender, block, msg: UpdateBroadcast) -> None:
        await registry.update_broadcast(msg.channel, sender, msg.broadcast)

    async def _tune_in(self, registry, tracker, sender, block, msg: TuneIn) -> None:
        if block is None:
            raise InvalidState("调台命令缺少区块信息")
        await tracker.tune_in(sender, msg.channel, block)

    async def _rate_broadcast(self, registry, tracker, sender, block, msg: RateBroadcast) -> None:
        await tracker.rate_current_channel(sender, msg.channel, msg.rating)

    async def _transfer_channel_ownership(
        self, registry, tracker, sender, block, msg: TransferChannelOwnership,
    ) -> None:
        await registry.transfer_ownership(msg.channel, sender, msg.new_owner)

    # ── 便捷方法（供 Python 直接调用） ─────────────────────────────────

    async def create_channel(self, sender: str, channel: str) -> CommandResponse:
        return await self.execute(sender, CreateChannel(channel=channel))

    async def remove_channel(self, sender: str, channel: str) -> CommandResponse:
        return await self.execute(sender, RemoveChannel(channel=channel))

    async def update_broadcast(self, sender: str, channel: str, broadcast: str) -> CommandResponse:
        return await self.execute(sender, UpdateBroadcast(channel=channel, broadcast=broadcast))

    async def tune_in(self, sender: str, channel: str, block: BlockInfo) -> CommandResponse:
        return await self.execute(sender, TuneIn(channel=channel), block=block)

    async def rate_broadcast(self, sender: str, channel: str, rating: int) -> CommandResponse:
        return await self.execute(sender, RateBroadcast(channel=channel, rating=rating))

    async def transfer_channel_ownership(
        self, sender: str, channel: str, new_owner: str,
    ) -> CommandResponse:
        return await self.execute(
            sender, TransferChannelOwnership(channel=channel, new_owner=new_owner),
        )

    async def get_current_broadcast(self, channel: str) -> str:
        return await self.query(GetCurrentBroadcast(channel=channel))

    async def list_channels(self) -> list[str]:
        return await self.query(ListChannels())

    async def get_user_profile(self, user: str) -> UserProfile:
        return await self.query(GetUserProfile(user=user))

    async def get_channel_ratings(self, channel: str) -> list[int]:
        return await self.query(GetChannelRatings(channel=channel))

    async def get_channel_viewers(self, channel: str) -> int:
        return await self.query(GetChannelViewers(channel=channel))

    async def get_channel(self, channel: str) -> ChannelState:
        """读取频道完整状态（HTTP 频道详情接口使用）。"""
        async with self.transaction(read_only=True) as tx:
            return await ChannelRegistry(tx).get(channel)
