"""
tests.conftest
~~~~~~~~~~~~~~

共享 pytest fixtures —— 全部基于内存存储，测试无需 MongoDB 或网络。
"""
from __future__ import annotations

import os
from collections import Counter
from collections.abc import Callable

import pytest

# ── 在所有测试导入前设置环境变量 ─────────────────────────────────────
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from television.db.kv_store import MemoryStore  # noqa: E402
from television.db.transaction import StoreTransaction  # noqa: E402
from television.schemas.messages import BlockInfo  # noqa: E402
from television.schemas.state import CHANNELS_NAMESPACE, USER_PROFILES_NAMESPACE  # noqa: E402
from television.services.channel_registry import ChannelRegistry  # noqa: E402
from television.services.television import Television  # noqa: E402
from television.services.viewer_sessions import ViewerSessionTracker  # noqa: E402


def make_block(height: int = 100, time: int = 1_700_000_000) -> BlockInfo:
    """构造区块信息，高度与时间同步递增方便断言。"""
    return BlockInfo(height=height, time=time)


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def tx(store: MemoryStore) -> StoreTransaction:
    return StoreTransaction(store)


@pytest.fixture()
def registry(tx: StoreTransaction) -> ChannelRegistry:
    return ChannelRegistry(tx)


@pytest.fixture()
def tracker(registry: ChannelRegistry) -> ViewerSessionTracker:
    return ViewerSessionTracker(registry)


@pytest.fixture()
def television(store: MemoryStore) -> Television:
    return Television(store, create_policy="overwrite")


@pytest.fixture()
def block() -> BlockInfo:
    return make_block()


@pytest.fixture()
def assert_viewer_counts_consistent(store: MemoryStore) -> Callable[[], None]:
    """返回一个断言函数：每个现存频道的 viewer_count 等于指向它的档案数。"""

    def _check() -> None:
        data = store.snapshot()
        tuned = Counter(
            profile["current_channel"]
            for profile in data.get(USER_PROFILES_NAMESPACE, {}).values()
            if profile["current_channel"] is not None
        )
        for name, state in data.get(CHANNELS_NAMESPACE, {}).items():
            assert state["viewer_count"] == tuned[name], f"频道 {name} 人数不一致"

    return _check
