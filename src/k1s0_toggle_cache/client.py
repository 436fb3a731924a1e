"""ToggleStore 抽象基底クラス"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import StoreNode


class ToggleStore(ABC):
    """フィーチャートグルを保持するリモートストアのクライアント。"""

    @abstractmethod
    async def fetch(self, namespace: str) -> StoreNode | None:
        """namespace 配下の全キーを再帰的に取得する。

        namespace が存在しなければ None を返す。

        Raises:
            ToggleStoreError: 接続失敗や不正なレスポンスの場合
        """
        ...

    async def aclose(self) -> None:
        """保持しているリソースを解放する。"""
        return None
