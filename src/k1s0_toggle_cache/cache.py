"""ToggleCache — ブート時ロードと周期リフレッシュを行うトグルキャッシュ"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Mapping
from types import MappingProxyType
from typing import Awaitable, Callable, Union

import structlog

from .client import ToggleStore
from .config import ToggleCacheConfig
from .events import ToggleEventBus, ToggleEventType
from .exceptions import (
    FlagNotFoundError,
    ToggleCacheError,
    ToggleCacheErrorCodes,
    ToggleStoreError,
    UninitializedCacheError,
)
from .http_client import EtcdToggleStore
from .metrics import flags_cached, refresh_total
from .models import CacheState
from .parser import diff_flags, parse_nodes
from .scheduler import PeriodicTask

logger = structlog.stdlib.get_logger(__name__)

InitialiseCallback = Callable[[Union[Exception, None]], Union[Awaitable[None], None]]

_EMPTY: Mapping[str, bool] = MappingProxyType({})


class ToggleCache:
    """リモートストアを裏に持つ真偽値フィーチャートグルのインメモリキャッシュ。

    initialise() で最初のスナップショットを読み込み、以降は
    cache_interval_ms ごとにバックグラウンドで再取得して丸ごと差し替える。
    参照系（get / get_or_default）は現在のスナップショット参照を読むだけで
    ネットワークを待たない。

    スナップショットの書き込みはリフレッシュ経路のみが行い、差し替えは
    属性への単一代入なので参照側はロック不要。
    """

    def __init__(
        self,
        store: ToggleStore,
        config: ToggleCacheConfig,
        *,
        events: ToggleEventBus | None = None,
        owns_store: bool = False,
    ) -> None:
        self._store = store
        self._config = config
        self._namespace = config.namespace
        self._events = events or ToggleEventBus()
        self._owns_store = owns_store
        self._snapshot: Mapping[str, bool] | None = None
        self._last_error: ToggleCacheError | None = None
        self._disposed = False
        self._bootstrap_lock = asyncio.Lock()
        self._refresh_lock = asyncio.Lock()
        self._scheduler = PeriodicTask(
            self.refresh,
            config.cache_interval_seconds,
            name=f"toggle-cache:{self._namespace}",
        )
        self._log = logger.bind(namespace=self._namespace)

    @classmethod
    def for_etcd(
        cls, config: ToggleCacheConfig, *, events: ToggleEventBus | None = None
    ) -> ToggleCache:
        """設定に従って etcd ストアを生成し、それを所有するキャッシュを返す。"""
        return cls(EtcdToggleStore(config.store), config, events=events, owns_store=True)

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def events(self) -> ToggleEventBus:
        return self._events

    @property
    def state(self) -> CacheState:
        if self._snapshot is not None:
            return CacheState.READY
        if self._last_error is not None:
            return CacheState.FAILED
        return CacheState.UNINITIALIZED

    @property
    def last_error(self) -> ToggleCacheError | None:
        """直近の取得失敗。成功すると None に戻る。"""
        return self._last_error

    @property
    def disposed(self) -> bool:
        return self._disposed

    # -- lookup ---------------------------------------------------------------

    def get_or_default(self, name: str, default: bool) -> bool:
        """フラグ値を返す。未初期化・未登録・不正値の場合は default。"""
        snapshot = self._snapshot
        if snapshot is None:
            return default
        return snapshot.get(name, default)

    def get(self, name: str) -> bool:
        """フラグ値を返す。

        Raises:
            UninitializedCacheError: スナップショットが一度も読み込まれていない場合
            FlagNotFoundError: フラグが存在しない場合
        """
        snapshot = self._snapshot
        if snapshot is None:
            raise UninitializedCacheError(self._namespace, cause=self._last_error)
        try:
            return snapshot[name]
        except KeyError:
            raise FlagNotFoundError(name) from None

    def snapshot(self) -> Mapping[str, bool]:
        """現在のスナップショット（読み取り専用）。"""
        return self._snapshot if self._snapshot is not None else _EMPTY

    # -- lifecycle ------------------------------------------------------------

    async def initialise(self, callback: InitialiseCallback | None = None) -> None:
        """最初のスナップショットを読み込み、周期リフレッシュを開始する。

        結果は callback(error) で通知する。成功時の error は None。
        接続失敗時は "error" イベントも発行する。成功後の再呼び出しは何もしない。
        """
        error, emit = await self._bootstrap()
        if emit and not self._disposed:
            await self._events.emit(ToggleEventType.ERROR, error)
        if callback is not None:
            result = callback(error)
            if inspect.isawaitable(result):
                await result

    async def _bootstrap(self) -> tuple[ToggleCacheError | None, bool]:
        async with self._bootstrap_lock:
            if self._disposed:
                return self._disposed_error(), False
            if self._snapshot is not None:
                return None, False
            try:
                flags = await self._fetch()
            except ToggleStoreError as e:
                if self._disposed:
                    return self._disposed_error(), False
                self._last_error = e
                self._log.error("toggle cache initialisation failed", error=str(e))
                return e, True
            if self._disposed:
                return self._disposed_error(), False
            changes = self._install(flags)
            self._last_error = None
            self._scheduler.start()
        self._log.info("toggle cache initialised", flags=len(flags), changes=changes)
        return None, False

    async def refresh(self) -> list[str] | None:
        """ストアを再取得してスナップショットを差し替える。

        成功時は変更されたフラグ名のリストを返し "updated-cache" を発行する。
        取得に失敗した場合は古いスナップショットを維持して "error" を発行し、
        None を返す。未初期化・破棄済みの場合も None。例外は送出しない。
        """
        if self._disposed or self._snapshot is None:
            return None
        async with self._refresh_lock:
            if self._disposed:
                return None
            try:
                flags = await self._fetch()
            except ToggleStoreError as e:
                if self._disposed:
                    return None
                self._last_error = e
                self._log.warning("toggle cache refresh failed, serving stale snapshot", error=str(e))
                failure: ToggleStoreError | None = e
            else:
                if self._disposed:
                    return None
                changes = self._install(flags)
                self._last_error = None
                failure = None

        if self._disposed:
            return None
        if failure is not None:
            await self._events.emit(ToggleEventType.ERROR, failure)
            return None
        self._log.debug("toggle cache refreshed", flags=len(flags), changes=changes)
        await self._events.emit(ToggleEventType.UPDATED_CACHE, changes)
        return changes

    async def dispose(self) -> None:
        """周期リフレッシュを停止してキャッシュを不活性にする。冪等。

        破棄後も参照系は最後に読み込んだスナップショットで動作する。
        """
        if self._disposed:
            return
        self._disposed = True
        await self._scheduler.stop()
        if self._owns_store:
            await self._store.aclose()
        self._log.info("toggle cache disposed")

    # -- internals ------------------------------------------------------------

    async def _fetch(self) -> dict[str, bool]:
        try:
            root = await self._store.fetch(self._namespace)
        except ToggleStoreError:
            refresh_total.add(1, {"outcome": "error"})
            raise
        except Exception as e:
            refresh_total.add(1, {"outcome": "error"})
            raise ToggleStoreError(
                ToggleCacheErrorCodes.CONNECTION_ERROR,
                f"fetch({self._namespace}) failed: {e}",
                cause=e,
            ) from e
        refresh_total.add(1, {"outcome": "not_found" if root is None else "success"})
        return parse_nodes(root)

    def _install(self, flags: dict[str, bool]) -> list[str]:
        previous = self._snapshot if self._snapshot is not None else _EMPTY
        changes = diff_flags(previous, flags)
        self._snapshot = MappingProxyType(flags)
        flags_cached.add(len(flags) - len(previous))
        return changes

    def _disposed_error(self) -> ToggleCacheError:
        return ToggleCacheError(
            ToggleCacheErrorCodes.CACHE_DISPOSED,
            f"キャッシュは破棄済みです: {self._namespace}",
        )
