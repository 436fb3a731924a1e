"""InMemoryToggleStore のユニットテスト"""

import pytest
from k1s0_toggle_cache import InMemoryToggleStore, ToggleCacheErrorCodes, ToggleStoreError


async def test_fetch_unknown_namespace_returns_none() -> None:
    """未登録の namespace は None。"""
    store = InMemoryToggleStore()
    assert await store.fetch("testApp") is None


async def test_fetch_returns_tree_with_full_keys() -> None:
    """キーはルートと namespace を含むフルパスになること。"""
    store = InMemoryToggleStore()
    store.set("testApp", "onToggle", "true")
    node = await store.fetch("testApp")
    assert node is not None
    assert node.dir is True
    assert node.nodes[0].key == "/v1/toggles/testApp/onToggle"
    assert node.nodes[0].value == "true"


async def test_delete_last_key_removes_namespace() -> None:
    """最後のキーを削除すると namespace も消えること。"""
    store = InMemoryToggleStore()
    store.set("testApp", "onToggle", "true")
    store.delete("testApp", "onToggle")
    assert await store.fetch("testApp") is None


async def test_fail_with_and_recover() -> None:
    """fail_with で接続エラー、recover で復旧すること。"""
    store = InMemoryToggleStore()
    store.set("testApp", "onToggle", "true")
    store.fail_with("etcd down")
    with pytest.raises(ToggleStoreError) as exc_info:
        await store.fetch("testApp")
    assert exc_info.value.code == ToggleCacheErrorCodes.CONNECTION_ERROR
    store.recover()
    assert await store.fetch("testApp") is not None
    assert store.fetch_count == 2
