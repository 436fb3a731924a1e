"""toggle cache データモデル"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CacheState(str, Enum):
    """キャッシュの状態。"""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


@dataclass
class StoreNode:
    """キーバリューストアのノード（etcd v2 のノードツリーに対応）。"""

    key: str
    value: str | None = None
    dir: bool = False
    nodes: list[StoreNode] = field(default_factory=list)

    @property
    def name(self) -> str:
        """キーパスの末尾セグメント。"""
        return self.key.rstrip("/").rsplit("/", 1)[-1]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StoreNode:
        """etcd のレスポンス JSON からノードツリーを構築する。"""
        value = data.get("value")
        if value is not None and not isinstance(value, str):
            raise TypeError(f"node value must be a string: {data['key']}")
        return cls(
            key=str(data["key"]),
            value=value,
            dir=bool(data.get("dir", False)),
            nodes=[cls.from_dict(child) for child in data.get("nodes", [])],
        )
