"""InMemoryToggleStore 実装"""

from __future__ import annotations

from .client import ToggleStore
from .exceptions import ToggleCacheErrorCodes, ToggleStoreError
from .models import StoreNode


class InMemoryToggleStore(ToggleStore):
    """テスト用インメモリトグルストア。"""

    def __init__(self, root: str = "v1/toggles") -> None:
        self._root = root.strip("/")
        self._namespaces: dict[str, dict[str, str]] = {}
        self._failure: str | None = None
        self.fetch_count = 0

    def set(self, namespace: str, name: str, value: str) -> None:
        """トグルの生の値を設定する。"""
        self._namespaces.setdefault(namespace, {})[name] = value

    def delete(self, namespace: str, name: str) -> None:
        """トグルを削除する。最後のキーを削除すると namespace も消える。"""
        values = self._namespaces.get(namespace)
        if values is None:
            return
        values.pop(name, None)
        if not values:
            del self._namespaces[namespace]

    def delete_namespace(self, namespace: str) -> None:
        """namespace ごと削除する。"""
        self._namespaces.pop(namespace, None)

    def fail_with(self, message: str = "connection refused") -> None:
        """以降の fetch を接続エラーにする。"""
        self._failure = message

    def recover(self) -> None:
        """fail_with を解除する。"""
        self._failure = None

    async def fetch(self, namespace: str) -> StoreNode | None:
        self.fetch_count += 1
        if self._failure is not None:
            raise ToggleStoreError(ToggleCacheErrorCodes.CONNECTION_ERROR, self._failure)
        values = self._namespaces.get(namespace)
        if values is None:
            return None
        prefix = f"/{self._root}/{namespace}"
        return StoreNode(
            key=prefix,
            dir=True,
            nodes=[StoreNode(key=f"{prefix}/{name}", value=value) for name, value in values.items()],
        )
