"""キャッシュ更新・エラー通知用のイベントバス"""

from __future__ import annotations

import inspect
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Union

import structlog

logger = structlog.stdlib.get_logger(__name__)


class ToggleEventType(str, Enum):
    """イベント種別。"""

    ERROR = "error"
    UPDATED_CACHE = "updated-cache"


@dataclass
class Event:
    """バスに発行されるイベント。

    payload は ERROR なら例外、UPDATED_CACHE なら変更されたフラグ名のリスト。
    """

    event_type: ToggleEventType
    payload: Any
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


EventHandler = Callable[[Event], Union[Awaitable[None], None]]


class ToggleEventBus:
    """インメモリ publish/subscribe イベントバス。

    ハンドラは同期関数・非同期関数のどちらでもよい。ハンドラの例外は
    ログに記録して握りつぶし、他のハンドラと発行元には伝播させない。
    """

    def __init__(self) -> None:
        self._handlers: dict[ToggleEventType, list[EventHandler]] = {}

    def subscribe(self, event_type: ToggleEventType | str, handler: EventHandler) -> None:
        """イベント種別にハンドラを登録する。"""
        self._handlers.setdefault(ToggleEventType(event_type), []).append(handler)

    def unsubscribe(self, event_type: ToggleEventType | str, handler: EventHandler | None = None) -> None:
        """ハンドラを解除する。handler 省略時はその種別の全ハンドラを解除する。"""
        key = ToggleEventType(event_type)
        if handler is None:
            self._handlers.pop(key, None)
            return
        handlers = self._handlers.get(key, [])
        if handler in handlers:
            handlers.remove(handler)

    def on(self, event_type: ToggleEventType | str) -> Callable[[EventHandler], EventHandler]:
        """subscribe のデコレータ版。"""

        def decorator(handler: EventHandler) -> EventHandler:
            self.subscribe(event_type, handler)
            return handler

        return decorator

    async def publish(self, event: Event) -> None:
        """イベントを登録済みの全ハンドラに配送する。"""
        for handler in list(self._handlers.get(event.event_type, [])):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(
                    "toggle event handler failed",
                    event_type=event.event_type.value,
                    error=str(e),
                )

    async def emit(self, event_type: ToggleEventType, payload: Any) -> Event:
        """イベントを生成して発行する。"""
        event = Event(event_type=event_type, payload=payload)
        await self.publish(event)
        return event
