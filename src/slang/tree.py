"""Shared helpers for working with the lark Tree/Token nodes the parser builds."""
from __future__ import annotations
from typing import Any, List, Optional, TypeGuard
from typing_extensions import TypeAlias

from lark import Token, Tree

Node: TypeAlias = Tree | Token

def is_tree(node: Any) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: Any) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tree_label(node: Any) -> Optional[str]:
    return node.data if is_tree(node) else None

def tree_children(node: Any) -> List[Any]:
    if not is_tree(node):
        return []

    children = getattr(node, "children", None)
    if children is None:
        return []

    return list(children)

def node_meta(node: Any) -> Optional[Any]:
    if not is_tree(node):
        return None

    meta = node.meta
    if getattr(meta, "empty", True):
        return None

    return meta

def set_line(node: Tree, line: Optional[int]) -> Tree:
    """Record the source line of *node*'s lead token; equality ignores it."""
    if line is None:
        return node

    meta = node.meta
    meta.line = line
    meta.empty = False
    return node

