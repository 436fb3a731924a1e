"""toggle cache ライブラリの例外型定義"""

from __future__ import annotations


class ToggleCacheError(Exception):
    """toggle cache ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {self.args[0]}"


class ToggleCacheErrorCodes:
    """エラーコード定数。"""

    UNINITIALIZED_CACHE: str = "UNINITIALIZED_CACHE"
    FLAG_NOT_FOUND: str = "FLAG_NOT_FOUND"
    CACHE_DISPOSED: str = "CACHE_DISPOSED"
    CONNECTION_ERROR: str = "CONNECTION_ERROR"
    HTTP_ERROR: str = "HTTP_ERROR"
    INVALID_RESPONSE: str = "INVALID_RESPONSE"


class ToggleStoreError(ToggleCacheError):
    """ストアへの問い合わせに失敗した場合のエラー。"""


class UninitializedCacheError(ToggleCacheError):
    """キャッシュが一度も初期化されていない状態で get された場合のエラー。"""

    def __init__(self, namespace: str, cause: Exception | None = None) -> None:
        super().__init__(
            ToggleCacheErrorCodes.UNINITIALIZED_CACHE,
            f"キャッシュが初期化されていません: {namespace}",
            cause=cause,
        )
        self.namespace = namespace


class FlagNotFoundError(ToggleCacheError, KeyError):
    """スナップショットにフラグが存在しない場合のエラー。"""

    def __init__(self, name: str) -> None:
        super().__init__(
            ToggleCacheErrorCodes.FLAG_NOT_FOUND,
            f"フラグが見つかりません: {name}",
        )
        self.name = name
