"""
television.db.kv_store
~~~~~~~~~~~~~~~~~~~~~~

键值存储抽象 —— get / put / delete / 区间扫描，按命名空间隔离。

值统一为 JSON 兼容的 ``dict`` 文档。写入以 ``WriteOp`` 批量提交（``apply``），
事务层（``television.db.transaction``）依赖这一接口实现整批提交。

``MemoryStore`` 为进程内实现，适用于开发与测试。
"""
from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

Document = dict[str, Any]


@dataclass(frozen=True)
class WriteOp:
    """一次待提交的写操作。``value`` 为 None 表示删除。"""

    namespace: str
    key: str
    value: Document | None

    @property
    def is_delete(self) -> bool:
        return self.value is None


class KeyValueStore(ABC):
    """可线性化的键值存储接口。"""

    @abstractmethod
    async def get(self, namespace: str, key: str) -> Document | None:
        """读取单个键，不存在返回 None。"""

    @abstractmethod
    async def scan(
        self,
        namespace: str,
        start: str | None = None,
        end: str | None = None,
    ) -> list[tuple[str, Document]]:
        """按键升序扫描 ``[start, end)`` 区间，边界为 None 表示不限。"""

    @abstractmethod
    async def apply(self, ops: list[WriteOp]) -> None:
        """按顺序应用一批写操作。"""

    async def put(self, namespace: str, key: str, value: Document) -> None:
        await self.apply([WriteOp(namespace, key, value)])

    async def delete(self, namespace: str, key: str) -> None:
        await self.apply([WriteOp(namespace, key, None)])


def in_range(key: str, start: str | None, end: str | None) -> bool:
    """判断 key 是否落在 ``[start, end)`` 区间内。"""
    if start is not None and key < start:
        return False
    if end is not None and key >= end:
        return False
    return True


class MemoryStore(KeyValueStore):
    """进程内存储。读写均做深拷贝，调用方拿到的文档与存储互不影响。"""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Document]] = {}

    async def get(self, namespace: str, key: str) -> Document | None:
        value = self._data.get(namespace, {}).get(key)
        return copy.deepcopy(value) if value is not None else None

    async def scan(
        self,
        namespace: str,
        start: str | None = None,
        end: str | None = None,
    ) -> list[tuple[str, Document]]:
        bucket = self._data.get(namespace, {})
        return [
            (key, copy.deepcopy(bucket[key]))
            for key in sorted(bucket)
            if in_range(key, start, end)
        ]

    async def apply(self, ops: list[WriteOp]) -> None:
        for op in ops:
            bucket = self._data.setdefault(op.namespace, {})
            if op.is_delete:
                bucket.pop(op.key, None)
            else:
                bucket[op.key] = copy.deepcopy(op.value)

    def snapshot(self) -> dict[str, dict[str, Document]]:
        """返回全部数据的深拷贝（调试与测试用）。"""
        return copy.deepcopy(self._data)
