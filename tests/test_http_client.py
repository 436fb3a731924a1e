"""EtcdToggleStore のユニットテスト（respx モック）"""

import httpx
import pytest
import respx
from k1s0_toggle_cache import (
    EtcdToggleStore,
    StoreSection,
    ToggleCacheErrorCodes,
    ToggleStoreError,
)

BASE_URL = "http://127.0.0.1:4001"
TEST_APP_URL = f"{BASE_URL}/v2/keys/v1/toggles/testApp?recursive=true"

TEST_APP_BODY = {
    "action": "get",
    "node": {
        "key": "/v1/toggles/testApp",
        "dir": True,
        "nodes": [
            {"key": "/v1/toggles/testApp/onToggle", "value": "true", "modifiedIndex": 4463},
            {"key": "/v1/toggles/testApp/offToggle", "value": "false", "modifiedIndex": 4464},
        ],
    },
}


@respx.mock
async def test_fetch_success() -> None:
    """取得成功時にノードツリーが返ること。"""
    respx.get(TEST_APP_URL).mock(return_value=httpx.Response(200, json=TEST_APP_BODY))
    store = EtcdToggleStore()
    try:
        node = await store.fetch("testApp")
    finally:
        await store.aclose()
    assert node is not None
    assert [child.name for child in node.nodes] == ["onToggle", "offToggle"]


@respx.mock
async def test_fetch_key_not_found_returns_none() -> None:
    """etcd の Key not found は None になること。"""
    respx.get(f"{BASE_URL}/v2/keys/v1/toggles/anotherApp?recursive=true").mock(
        return_value=httpx.Response(
            404,
            json={"errorCode": 100, "message": "Key not found", "cause": "/v1/toggles/anotherApp"},
        )
    )
    store = EtcdToggleStore()
    try:
        assert await store.fetch("anotherApp") is None
    finally:
        await store.aclose()


@respx.mock
async def test_fetch_plain_404_is_http_error() -> None:
    """etcd 以外の 404 は HTTP_ERROR。"""
    respx.get(TEST_APP_URL).mock(return_value=httpx.Response(404, text="Not found"))
    store = EtcdToggleStore()
    try:
        with pytest.raises(ToggleStoreError) as exc_info:
            await store.fetch("testApp")
    finally:
        await store.aclose()
    assert exc_info.value.code == ToggleCacheErrorCodes.HTTP_ERROR


@respx.mock
async def test_fetch_server_error() -> None:
    """5xx で ToggleStoreError(HTTP_ERROR) が発生すること。"""
    respx.get(TEST_APP_URL).mock(return_value=httpx.Response(500, text="Internal Server Error"))
    store = EtcdToggleStore()
    try:
        with pytest.raises(ToggleStoreError) as exc_info:
            await store.fetch("testApp")
    finally:
        await store.aclose()
    assert exc_info.value.code == ToggleCacheErrorCodes.HTTP_ERROR


@respx.mock
async def test_fetch_connection_refused() -> None:
    """接続失敗で ToggleStoreError(CONNECTION_ERROR) が発生すること。"""
    respx.get(TEST_APP_URL).mock(side_effect=httpx.ConnectError("connection refused"))
    store = EtcdToggleStore()
    try:
        with pytest.raises(ToggleStoreError) as exc_info:
            await store.fetch("testApp")
    finally:
        await store.aclose()
    assert exc_info.value.code == ToggleCacheErrorCodes.CONNECTION_ERROR
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@respx.mock
async def test_fetch_malformed_body() -> None:
    """不正な JSON で ToggleStoreError(INVALID_RESPONSE) が発生すること。"""
    respx.get(TEST_APP_URL).mock(return_value=httpx.Response(200, text="not json"))
    store = EtcdToggleStore()
    try:
        with pytest.raises(ToggleStoreError) as exc_info:
            await store.fetch("testApp")
    finally:
        await store.aclose()
    assert exc_info.value.code == ToggleCacheErrorCodes.INVALID_RESPONSE


@respx.mock
async def test_fetch_uses_configured_endpoint_and_root() -> None:
    """host / port / root の設定が URL に反映されること。"""
    route = respx.get("https://etcd.internal:2379/v2/keys/flags/billing?recursive=true").mock(
        return_value=httpx.Response(
            200, json={"action": "get", "node": {"key": "/flags/billing", "dir": True}}
        )
    )
    store = EtcdToggleStore(
        StoreSection(host="etcd.internal", port=2379, scheme="https", root="/flags/")
    )
    try:
        node = await store.fetch("billing")
    finally:
        await store.aclose()
    assert route.called
    assert node is not None
    assert node.nodes == []


async def test_aclose_does_not_close_injected_client() -> None:
    """外部から渡した httpx クライアントは閉じないこと。"""
    client = httpx.AsyncClient(base_url=BASE_URL)
    store = EtcdToggleStore(client=client)
    await store.aclose()
    assert client.is_closed is False
    await client.aclose()
