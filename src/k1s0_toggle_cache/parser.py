"""ストアのノードツリーをフラグのスナップショットへ変換する"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

import structlog

from .models import StoreNode

logger = structlog.stdlib.get_logger(__name__)

_LITERALS: dict[str, bool] = {"true": True, "false": False}


def parse_flag_value(raw: object) -> bool | None:
    """生の文字列を真偽値に変換する。

    "true" / "false" の完全一致のみ受け付け、それ以外は None を返す。
    """
    if not isinstance(raw, str):
        return None
    return _LITERALS.get(raw)


def iter_leaves(node: StoreNode) -> Iterator[StoreNode]:
    """ディレクトリを再帰的にたどり、値を持つ葉ノードを返す。"""
    if not node.dir:
        yield node
        return
    for child in node.nodes:
        yield from iter_leaves(child)


def parse_nodes(root: StoreNode | None) -> dict[str, bool]:
    """ノードツリーをフラグ名 -> 真偽値の辞書に平坦化する。

    フラグ名はキーパスの末尾セグメント。真偽値として解釈できない値は
    辞書に含めない。末尾セグメントが重複した場合は後に現れた値が優先される。
    """
    flags: dict[str, bool] = {}
    if root is None:
        return flags
    for leaf in iter_leaves(root):
        value = parse_flag_value(leaf.value)
        if value is None:
            logger.debug("dropping non-boolean toggle", key=leaf.key, value=leaf.value)
            continue
        if leaf.name in flags:
            logger.warning("duplicate toggle name", key=leaf.key, name=leaf.name)
        flags[leaf.name] = value
    return flags


def diff_flags(old: Mapping[str, bool], new: Mapping[str, bool]) -> list[str]:
    """値が変化したフラグ名（追加・削除を含む）をソートして返す。"""
    return sorted(name for name in old.keys() | new.keys() if old.get(name) != new.get(name))
