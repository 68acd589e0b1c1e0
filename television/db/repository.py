"""
television.db.repository
~~~~~~~~~~~~~~~~~~~~~~~~

类型化仓库 —— 把某个命名空间的 ``dict`` 文档映射为 Pydantic 模型。

仓库本身不持有状态，所有读写都经由调用方传入的 ``StoreTransaction`` 完成，
因此同一个仓库实例可以安全地在多个命令之间复用。
"""
from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from television.core.errors import InvalidState, NotFound
from television.db.transaction import StoreTransaction
from television.schemas.state import (
    CHANNELS_NAMESPACE,
    USER_PROFILES_NAMESPACE,
    ChannelState,
    UserProfile,
)

M = TypeVar("M", bound=BaseModel)


class Repository(Generic[M]):
    """单个命名空间的模型仓库。

    Attributes:
        namespace: 存储命名空间。
        model: 文档对应的 Pydantic 模型类。
        label: 人类可读的资源名，用于错误消息。
    """

    def __init__(self, namespace: str, model: type[M], label: str) -> None:
        self.namespace = namespace
        self.model = model
        self.label = label

    async def may_load(self, tx: StoreTransaction, key: str) -> M | None:
        """读取并校验文档，不存在返回 None。"""
        doc = await tx.get(self.namespace, key)
        if doc is None:
            return None
        try:
            return self.model.model_validate(doc)
        except ValidationError as e:
            raise InvalidState(f"{self.label}数据损坏: {key}") from e

    async def load(self, tx: StoreTransaction, key: str) -> M:
        """读取文档，不存在抛出 ``NotFound``。"""
        obj = await self.may_load(tx, key)
        if obj is None:
            raise NotFound(f"{self.label}不存在: {key}")
        return obj

    async def has(self, tx: StoreTransaction, key: str) -> bool:
        return await tx.get(self.namespace, key) is not None

    def save(self, tx: StoreTransaction, key: str, obj: M) -> None:
        tx.put(self.namespace, key, obj.model_dump(mode="json"))

    def remove(self, tx: StoreTransaction, key: str) -> None:
        tx.delete(self.namespace, key)

    async def keys(self, tx: StoreTransaction) -> list[str]:
        """按字典序升序返回全部键。"""
        return [key for key, _ in await tx.scan(self.namespace)]


CHANNELS: Repository[ChannelState] = Repository(CHANNELS_NAMESPACE, ChannelState, "频道")
USER_PROFILES: Repository[UserProfile] = Repository(USER_PROFILES_NAMESPACE, UserProfile, "用户档案")
