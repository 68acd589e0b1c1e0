"""
television.db.mongo_store
~~~~~~~~~~~~~~~~~~~~~~~~~

MongoDB 键值存储 —— 每个命名空间对应一个集合，文档结构为
``{"_id": <key>, "value": {...}}``。

区间扫描直接利用 ``_id`` 的默认索引按字典序排序；一批写操作按命名空间分组，
每组一次有序 ``bulk_write``，所有分组在同一个多文档事务中提交。
多文档事务要求副本集或分片集群，单机 MongoDB 需以 ``transactional=False`` 运行。
"""
from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorDatabase
from pymongo import DeleteOne, ReplaceOne
from pymongo.errors import PyMongoError

from television.core.errors import InvalidState
from television.core.logging import get_logger
from television.db.kv_store import Document, KeyValueStore, WriteOp

logger = get_logger(__name__)


class MongoStore(KeyValueStore):
    """基于 motor 的键值存储实现。

    Attributes:
        db: MongoDB 数据库实例。
        transactional: 是否在多文档事务中提交一批写入。
    """

    def __init__(self, db: AsyncIOMotorDatabase, transactional: bool = True) -> None:
        self.db = db
        self.transactional = transactional
        if not transactional:
            logger.warning("MongoDB 多文档事务已关闭，跨命名空间写入失败时可能部分生效")

    async def get(self, namespace: str, key: str) -> Document | None:
        try:
            doc = await self.db[namespace].find_one({"_id": key})
        except PyMongoError as e:
            logger.error("MongoDB 读取失败 | ns=%s | key=%s | %s", namespace, key, e)
            raise InvalidState(f"存储读取失败: {e}") from e
        return doc["value"] if doc is not None else None

    async def scan(
        self,
        namespace: str,
        start: str | None = None,
        end: str | None = None,
    ) -> list[tuple[str, Document]]:
        id_range: dict[str, str] = {}
        if start is not None:
            id_range["$gte"] = start
        if end is not None:
            id_range["$lt"] = end
        query = {"_id": id_range} if id_range else {}
        try:
            cursor = self.db[namespace].find(query).sort("_id", 1)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("MongoDB 扫描失败 | ns=%s | %s", namespace, e)
            raise InvalidState(f"存储扫描失败: {e}") from e
        return [(doc["_id"], doc["value"]) for doc in docs]

    async def apply(self, ops: list[WriteOp]) -> None:
        grouped: dict[str, list[ReplaceOne | DeleteOne]] = {}
        for op in ops:
            if op.is_delete:
                request = DeleteOne({"_id": op.key})
            else:
                request = ReplaceOne({"_id": op.key}, {"_id": op.key, "value": op.value}, upsert=True)
            grouped.setdefault(op.namespace, []).append(request)

        try:
            if self.transactional:
                # 任一分组失败时整个事务中止，已发送的分组一并回滚
                async with await self.db.client.start_session() as session:
                    async with session.start_transaction():
                        await self._bulk_write(grouped, session)
            else:
                await self._bulk_write(grouped, None)
        except PyMongoError as e:
            logger.error("MongoDB 批量写入失败 | ops=%d | %s", len(ops), e)
            raise InvalidState(f"存储写入失败: {e}") from e
        logger.debug("MongoDB 批量写入完成 | ops=%d | transactional=%s", len(ops), self.transactional)

    async def _bulk_write(
        self,
        grouped: dict[str, list[ReplaceOne | DeleteOne]],
        session: AsyncIOMotorClientSession | None,
    ) -> None:
        for namespace, requests in grouped.items():
            await self.db[namespace].bulk_write(requests, ordered=True, session=session)
