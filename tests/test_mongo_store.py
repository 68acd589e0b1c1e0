"""
tests.test_mongo_store
~~~~~~~~~~~~~~~~~~~~~~

MongoStore 单元测试 —— mock 掉 motor 集合，不需要真实 MongoDB。
"""
from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo import DeleteOne, ReplaceOne
from pymongo.errors import PyMongoError

from television.core.errors import InvalidState
from television.db.kv_store import WriteOp
from television.db.mongo_store import MongoStore
from television.schemas.messages import BlockInfo
from television.schemas.state import CHANNELS_NAMESPACE, USER_PROFILES_NAMESPACE
from television.services.television import Television


def make_db() -> tuple[MagicMock, MagicMock]:
    """返回 (db, collection)，db[任意命名空间] 都得到同一个 collection mock。"""
    db = MagicMock()
    collection = MagicMock()
    db.__getitem__.return_value = collection
    return db, collection


class TestMongoStore:
    """测试 MongoStore 的文档映射与错误转换。"""

    @pytest.mark.asyncio
    async def test_get_unwraps_value(self) -> None:
        """get 应返回文档中的 value 字段。"""
        db, collection = make_db()
        collection.find_one = AsyncMock(return_value={"_id": "news", "value": {"owner": "alice"}})

        doc = await MongoStore(db).get("channels", "news")

        db.__getitem__.assert_called_with("channels")
        collection.find_one.assert_awaited_once_with({"_id": "news"})
        assert doc == {"owner": "alice"}

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self) -> None:
        db, collection = make_db()
        collection.find_one = AsyncMock(return_value=None)

        assert await MongoStore(db).get("channels", "news") is None

    @pytest.mark.asyncio
    async def test_scan_builds_id_range_and_sorts(self) -> None:
        """scan 应按 _id 区间过滤并升序排序。"""
        db, collection = make_db()
        cursor = MagicMock()
        cursor.to_list = AsyncMock(return_value=[
            {"_id": "news", "value": {"v": 1}},
            {"_id": "sports", "value": {"v": 2}},
        ])
        collection.find.return_value.sort.return_value = cursor

        items = await MongoStore(db).scan("channels", start="n", end="t")

        collection.find.assert_called_once_with({"_id": {"$gte": "n", "$lt": "t"}})
        collection.find.return_value.sort.assert_called_once_with("_id", 1)
        assert items == [("news", {"v": 1}), ("sports", {"v": 2})]

    @pytest.mark.asyncio
    async def test_scan_without_bounds_uses_empty_filter(self) -> None:
        db, collection = make_db()
        cursor = MagicMock()
        cursor.to_list = AsyncMock(return_value=[])
        collection.find.return_value.sort.return_value = cursor

        assert await MongoStore(db).scan("channels") == []
        collection.find.assert_called_once_with({})

    @pytest.mark.asyncio
    async def test_apply_groups_ops_into_bulk_writes(self) -> None:
        """apply 应按命名空间分组，每组一次有序 bulk_write。"""
        db, collection = make_db()
        collection.bulk_write = AsyncMock()

        await MongoStore(db, transactional=False).apply([
            WriteOp("channels", "news", {"v": 1}),
            WriteOp("user_profiles", "alice", {"current_channel": "news"}),
            WriteOp("channels", "old", None),
        ])

        assert collection.bulk_write.await_count == 2
        first_requests = collection.bulk_write.await_args_list[0].args[0]
        assert first_requests == [
            ReplaceOne({"_id": "news"}, {"_id": "news", "value": {"v": 1}}, upsert=True),
            DeleteOne({"_id": "old"}),
        ]
        assert collection.bulk_write.await_args_list[0].kwargs == {"ordered": True, "session": None}

    @pytest.mark.asyncio
    async def test_driver_errors_become_invalid_state(self) -> None:
        """驱动异常应转换为 InvalidState。"""
        db, collection = make_db()
        collection.find_one = AsyncMock(side_effect=PyMongoError("boom"))
        collection.bulk_write = AsyncMock(side_effect=PyMongoError("boom"))
        store = MongoStore(db, transactional=False)

        with pytest.raises(InvalidState):
            await store.get("channels", "news")
        with pytest.raises(InvalidState):
            await store.put("channels", "news", {"v": 1})


class FakeSession:
    """模拟 motor 会话：事务内的写入提交前只暂存在 ``pending`` 中。"""

    def __init__(self, mongo: FakeMongo) -> None:
        self.mongo = mongo
        self.pending: list[tuple[str, Any]] = []
        self.aborted = False

    async def __aenter__(self) -> FakeSession:
        return self

    async def __aexit__(self, *exc_info: object) -> bool:
        return False

    def start_transaction(self) -> FakeTransaction:
        return FakeTransaction(self)


class FakeTransaction:
    def __init__(self, session: FakeSession) -> None:
        self.session = session

    async def __aenter__(self) -> FakeSession:
        return self.session

    async def __aexit__(self, exc_type: type[BaseException] | None, *exc_info: object) -> bool:
        if exc_type is None:
            self.session.mongo.committed.extend(self.session.pending)
        else:
            self.session.aborted = True
        self.session.pending = []
        return False


class FakeCollection:
    def __init__(self, name: str, mongo: FakeMongo) -> None:
        self.name = name
        self.mongo = mongo

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        return self.mongo.docs.get((self.name, query["_id"]))

    async def bulk_write(self, requests: list[Any], ordered: bool = True, session: FakeSession | None = None) -> None:
        if self.name in self.mongo.failing:
            raise PyMongoError(f"{self.name} 写入失败")
        target = session.pending if session is not None else self.mongo.committed
        target.extend((self.name, request) for request in requests)


class FakeMongo:
    """同时充当 database 与 client：``db[ns]`` 取集合，``db.client.start_session()`` 开会话。"""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.docs: dict[tuple[str, str], dict[str, Any]] = {}
        self.committed: list[tuple[str, Any]] = []
        self.sessions: list[FakeSession] = []
        self.failing = failing or set()
        self.client = self

    def __getitem__(self, namespace: str) -> FakeCollection:
        return FakeCollection(namespace, self)

    async def start_session(self) -> FakeSession:
        session = FakeSession(self)
        self.sessions.append(session)
        return session

    def seed(self, namespace: str, key: str, value: dict[str, Any]) -> None:
        self.docs[(namespace, key)] = {"_id": key, "value": value}


NEWS: dict[str, Any] = {"owner": "alice", "broadcast": "", "ratings": [], "viewer_count": 0}


class TestMongoTransactions:
    """测试一批写入在同一个 MongoDB 事务中提交或整体回滚。"""

    @pytest.mark.asyncio
    async def test_batch_commits_in_one_session(self) -> None:
        mongo = FakeMongo()

        await MongoStore(mongo).apply([
            WriteOp(CHANNELS_NAMESPACE, "news", {"v": 1}),
            WriteOp(USER_PROFILES_NAMESPACE, "bob", {"current_channel": "news"}),
        ])

        assert len(mongo.sessions) == 1
        assert not mongo.sessions[0].aborted
        assert [ns for ns, _ in mongo.committed] == [CHANNELS_NAMESPACE, USER_PROFILES_NAMESPACE]

    @pytest.mark.asyncio
    async def test_failure_in_second_namespace_keeps_no_write(self) -> None:
        """第二个命名空间写入失败时，第一个命名空间的写入也不能生效。"""
        mongo = FakeMongo(failing={USER_PROFILES_NAMESPACE})

        with pytest.raises(InvalidState):
            await MongoStore(mongo).apply([
                WriteOp(CHANNELS_NAMESPACE, "news", {"v": 1}),
                WriteOp(USER_PROFILES_NAMESPACE, "bob", {"current_channel": "news"}),
            ])

        assert mongo.sessions[0].aborted
        assert mongo.committed == []

    @pytest.mark.asyncio
    async def test_failed_tune_in_keeps_viewer_count(self, block: BlockInfo) -> None:
        """调台写档案失败时，频道人数的修改随事务一起回滚。"""
        mongo = FakeMongo(failing={USER_PROFILES_NAMESPACE})
        mongo.seed(CHANNELS_NAMESPACE, "news", NEWS)
        television = Television(MongoStore(mongo), create_policy="overwrite")

        with pytest.raises(InvalidState):
            await television.tune_in("bob", "news", block)

        assert mongo.committed == []
        assert all(session.aborted for session in mongo.sessions)
        assert await television.get_channel_viewers("news") == 0

    @pytest.mark.asyncio
    async def test_non_transactional_mode_writes_directly(self) -> None:
        """关闭事务时不开启会话，写入直接落库。"""
        mongo = FakeMongo()

        await MongoStore(mongo, transactional=False).apply([
            WriteOp(CHANNELS_NAMESPACE, "news", {"v": 1}),
        ])

        assert mongo.sessions == []
        assert [ns for ns, _ in mongo.committed] == [CHANNELS_NAMESPACE]
