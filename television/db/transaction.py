"""
television.db.transaction
~~~~~~~~~~~~~~~~~~~~~~~~~

事务覆盖层 —— 在命令执行期间缓存所有写入，成功时整批提交，失败时整批丢弃。

读操作优先命中本事务已缓存的写入，因此同一命令内"先写后读"能看到自己的修改；
其他命令在提交之前看不到任何中间状态。
"""
from __future__ import annotations

import copy

from television.core.errors import InvalidState
from television.db.kv_store import Document, KeyValueStore, WriteOp, in_range


class StoreTransaction:
    """单个命令的读写视图。

    Attributes:
        store: 底层键值存储。
        read_only: 只读事务（查询用），任何写入都会抛出 ``InvalidState``。
    """

    def __init__(self, store: KeyValueStore, read_only: bool = False) -> None:
        self.store = store
        self.read_only = read_only
        self._pending: dict[tuple[str, str], Document | None] = {}

    async def get(self, namespace: str, key: str) -> Document | None:
        if (namespace, key) in self._pending:
            value = self._pending[(namespace, key)]
            return copy.deepcopy(value) if value is not None else None
        return await self.store.get(namespace, key)

    async def scan(
        self,
        namespace: str,
        start: str | None = None,
        end: str | None = None,
    ) -> list[tuple[str, Document]]:
        merged = dict(await self.store.scan(namespace, start, end))
        for (ns, key), value in self._pending.items():
            if ns != namespace or not in_range(key, start, end):
                continue
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = copy.deepcopy(value)
        return sorted(merged.items())

    def put(self, namespace: str, key: str, value: Document) -> None:
        self._check_writable()
        self._pending[(namespace, key)] = copy.deepcopy(value)

    def delete(self, namespace: str, key: str) -> None:
        self._check_writable()
        self._pending[(namespace, key)] = None

    @property
    def pending_ops(self) -> list[WriteOp]:
        """按首次写入顺序排列的待提交操作。"""
        return [WriteOp(ns, key, value) for (ns, key), value in self._pending.items()]

    async def commit(self) -> int:
        """提交全部缓存写入，返回提交的操作数。"""
        ops = self.pending_ops
        if ops:
            await self.store.apply(ops)
        self._pending.clear()
        return len(ops)

    def discard(self) -> None:
        self._pending.clear()

    def _check_writable(self) -> None:
        if self.read_only:
            raise InvalidState("只读事务中不允许写入")
