"""メトリクス定義のユニットテスト"""

from unittest.mock import MagicMock

import pytest
from k1s0_toggle_cache import InMemoryToggleStore, ToggleCache, ToggleCacheConfig
from k1s0_toggle_cache import cache as cache_module
from k1s0_toggle_cache.metrics import flags_cached, refresh_total


def test_metrics_are_not_none() -> None:
    """全メトリクスが None でないこと。"""
    assert refresh_total is not None
    assert flags_cached is not None


def test_metrics_recordable() -> None:
    """NoopMeterProvider（デフォルト）で記録できること。"""
    refresh_total.add(1, {"outcome": "success"})
    flags_cached.add(3)
    flags_cached.add(-3)


async def test_flag_count_stays_balanced(monkeypatch: pytest.MonkeyPatch) -> None:
    """toggle_cache_flags の増減の合計がスナップショットの件数と一致すること。"""
    flags = MagicMock()
    refreshes = MagicMock()
    monkeypatch.setattr(cache_module, "flags_cached", flags)
    monkeypatch.setattr(cache_module, "refresh_total", refreshes)

    store = InMemoryToggleStore()
    store.set("testApp", "a", "true")
    store.set("testApp", "b", "false")
    cache = ToggleCache(store, ToggleCacheConfig(namespace="testApp", cache_interval_ms=60_000))

    def total() -> int:
        return sum(call.args[0] for call in flags.add.call_args_list)

    try:
        await cache.initialise()
        assert total() == 2
        store.set("testApp", "c", "true")
        await cache.refresh()
        assert total() == 3
        store.delete_namespace("testApp")
        await cache.refresh()
        assert total() == 0
        store.fail_with()
        await cache.refresh()
        assert total() == len(cache.snapshot()) == 0
    finally:
        await cache.dispose()

    outcomes = [call.args[1]["outcome"] for call in refreshes.add.call_args_list]
    assert outcomes == ["success", "success", "not_found", "error"]
