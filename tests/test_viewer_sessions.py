"""
tests.test_viewer_sessions
~~~~~~~~~~~~~~~~~~~~~~~~~~

ViewerSessionTracker 单元测试 —— 调台状态机、人数联动、评分资格。
"""
from __future__ import annotations

import pytest

from television.core.errors import (
    AlreadyTuned,
    ChannelMismatch,
    ChannelNotFound,
    NoActiveTuneIn,
    NotFound,
)
from television.schemas.messages import BlockInfo
from television.services.channel_registry import ChannelRegistry
from television.services.viewer_sessions import ViewerSessionTracker


class TestTuneIn:
    """测试调台流程。"""

    @pytest.mark.asyncio
    async def test_first_tune_in_creates_profile(
        self, registry: ChannelRegistry, tracker: ViewerSessionTracker, block: BlockInfo,
    ) -> None:
        """首次调台惰性创建档案，记录区块时间和高度。"""
        await registry.create("news", "alice")

        profile = await tracker.tune_in("bob", "news", block)

        assert profile.current_channel == "news"
        assert len(profile.viewing_history) == 1
        entry = profile.viewing_history[0]
        assert (entry.channel, entry.start_time, entry.start_height) == ("news", block.time, block.height)
        assert await registry.get_viewer_count("news") == 1

    @pytest.mark.asyncio
    async def test_switch_moves_viewer(
        self, registry: ChannelRegistry, tracker: ViewerSessionTracker, block: BlockInfo,
    ) -> None:
        """切换频道：旧频道减一，新频道加一，历史按顺序追加。"""
        await registry.create("news", "alice")
        await registry.create("sports", "alice")

        await tracker.tune_in("bob", "news", block)
        later = BlockInfo(height=block.height + 1, time=block.time + 6)
        profile = await tracker.tune_in("bob", "sports", later)

        assert await registry.get_viewer_count("news") == 0
        assert await registry.get_viewer_count("sports") == 1
        assert [h.channel for h in profile.viewing_history] == ["news", "sports"]
        assert profile.viewing_history[1].start_height == block.height + 1

    @pytest.mark.asyncio
    async def test_tune_in_twice_is_already_tuned(
        self, registry: ChannelRegistry, tracker: ViewerSessionTracker, block: BlockInfo,
    ) -> None:
        await registry.create("news", "alice")
        await tracker.tune_in("bob", "news", block)

        with pytest.raises(AlreadyTuned):
            await tracker.tune_in("bob", "news", block)

        assert await registry.get_viewer_count("news") == 1
        assert len((await tracker.get_profile("bob")).viewing_history) == 1

    @pytest.mark.asyncio
    async def test_missing_target_keeps_previous_count(
        self, registry: ChannelRegistry, tracker: ViewerSessionTracker, block: BlockInfo,
    ) -> None:
        """目标频道不存在时抛出 ChannelNotFound，旧频道人数不受影响。"""
        await registry.create("news", "alice")
        await tracker.tune_in("bob", "news", block)

        with pytest.raises(ChannelNotFound):
            await tracker.tune_in("bob", "ghost", block)

        assert await registry.get_viewer_count("news") == 1
        assert (await tracker.get_profile("bob")).current_channel == "news"

    @pytest.mark.asyncio
    async def test_previous_channel_removed_is_skipped(
        self, registry: ChannelRegistry, tracker: ViewerSessionTracker, block: BlockInfo,
    ) -> None:
        """旧频道已被删除时，调台到新频道仍然成功。"""
        await registry.create("news", "alice")
        await registry.create("sports", "alice")
        await tracker.tune_in("bob", "news", block)
        await registry.remove("news", "alice")

        profile = await tracker.tune_in("bob", "sports", block)

        assert profile.current_channel == "sports"
        assert await registry.get_viewer_count("sports") == 1
        assert not await registry.exists("news")

    @pytest.mark.asyncio
    async def test_get_profile_unknown_user(self, tracker: ViewerSessionTracker) -> None:
        with pytest.raises(NotFound):
            await tracker.get_profile("stranger")


class TestRateCurrentChannel:
    """测试评分资格校验。"""

    @pytest.mark.asyncio
    async def test_rate_without_profile(
        self, registry: ChannelRegistry, tracker: ViewerSessionTracker,
    ) -> None:
        await registry.create("news", "alice")

        with pytest.raises(NoActiveTuneIn):
            await tracker.rate_current_channel("bob", "news", 7)

    @pytest.mark.asyncio
    async def test_rate_other_channel_is_mismatch(
        self, registry: ChannelRegistry, tracker: ViewerSessionTracker, block: BlockInfo,
    ) -> None:
        await registry.create("news", "alice")
        await registry.create("sports", "alice")
        await tracker.tune_in("bob", "sports", block)

        with pytest.raises(ChannelMismatch):
            await tracker.rate_current_channel("bob", "news", 7)

        assert await registry.get_ratings("news") == []

    @pytest.mark.asyncio
    async def test_rate_current_channel_appends(
        self, registry: ChannelRegistry, tracker: ViewerSessionTracker, block: BlockInfo,
    ) -> None:
        await registry.create("news", "alice")
        await tracker.tune_in("bob", "news", block)

        await tracker.rate_current_channel("bob", "news", 3)
        await tracker.rate_current_channel("bob", "news", 7)

        assert await registry.get_ratings("news") == [3, 7]

    @pytest.mark.asyncio
    async def test_rate_removed_channel_is_not_found(
        self, registry: ChannelRegistry, tracker: ViewerSessionTracker, block: BlockInfo,
    ) -> None:
        """频道在观众收看期间被删除，评分时抛出 NotFound。"""
        await registry.create("news", "alice")
        await tracker.tune_in("bob", "news", block)
        await registry.remove("news", "alice")

        with pytest.raises(NotFound):
            await tracker.rate_current_channel("bob", "news", 7)
