from __future__ import annotations

from typing import Any, List

from ..types import SlFn, SlangRuntimeError, State
from ..tree import Tree, tree_children
from .common import ident_token_value

def extract_param_names(params_node: Any) -> List[str]:
    names: List[str] = []

    for p in tree_children(params_node):
        name = ident_token_value(p)

        if name is None:
            raise SlangRuntimeError(f"Unsupported parameter node: {p}")
        names.append(name)

    return names

def eval_fn_literal(n: Tree, state: State) -> SlFn:
    """A function value captures only its parameters and body, never a scope."""
    params_node, body = n.children
    return SlFn(params=tuple(extract_param_names(params_node)), body=body)
