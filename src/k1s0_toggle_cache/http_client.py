"""etcd v2 keys API を使った ToggleStore 実装"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from .client import ToggleStore
from .config import StoreSection
from .exceptions import ToggleCacheErrorCodes, ToggleStoreError
from .models import StoreNode

logger = structlog.stdlib.get_logger(__name__)

# etcd v2 の "Key not found"
_ETCD_KEY_NOT_FOUND = 100


class EtcdToggleStore(ToggleStore):
    """httpx を使った etcd トグルストア。

    GET /v2/keys/{root}/{namespace}?recursive=true でノードツリーを取得する。
    """

    def __init__(
        self,
        config: StoreSection | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or StoreSection()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=self._config.timeout_seconds,
        )

    def _path(self, namespace: str) -> str:
        root = self._config.root.strip("/")
        return f"/v2/keys/{root}/{namespace.strip('/')}"

    async def fetch(self, namespace: str) -> StoreNode | None:
        path = self._path(namespace)
        try:
            resp = await self._client.get(path, params={"recursive": "true"})
        except httpx.HTTPError as e:
            raise ToggleStoreError(
                ToggleCacheErrorCodes.CONNECTION_ERROR,
                f"fetch({namespace}): {e!r}",
                cause=e,
            ) from e

        if resp.status_code == 404 and self._is_key_not_found(resp):
            logger.debug("toggle namespace not found", namespace=namespace)
            return None
        if resp.status_code >= 400:
            raise ToggleStoreError(
                ToggleCacheErrorCodes.HTTP_ERROR,
                f"fetch({namespace}): HTTP {resp.status_code}: {resp.text}",
            )

        try:
            body: dict[str, Any] = resp.json()
            return StoreNode.from_dict(body["node"])
        except (ValueError, KeyError, TypeError) as e:
            raise ToggleStoreError(
                ToggleCacheErrorCodes.INVALID_RESPONSE,
                f"fetch({namespace}): malformed response: {e}",
                cause=e,
            ) from e

    @staticmethod
    def _is_key_not_found(resp: httpx.Response) -> bool:
        try:
            body = resp.json()
        except ValueError:
            return False
        return isinstance(body, dict) and body.get("errorCode") == _ETCD_KEY_NOT_FOUND

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
