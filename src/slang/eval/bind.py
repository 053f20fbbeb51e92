from __future__ import annotations

from typing import Any, Callable, Optional

from ..types import SlValue, State, TypeMismatch, UndefinedVariable, type_name
from ..tree import Node, Tree
from .common import expect_ident_token, token_kind
from .expr import apply_binary_operator

EvalFunc = Callable[[Node, State], Any]

# Declaration kind token => compound operator applied to (old, new)
_COMPOUND_OPS = {
    'PLUSEQ': '+',
    'MINUSEQ': '-',
}

def eval_declaration(n: Tree, state: State, eval_func: EvalFunc) -> None:
    name_tok, kind_tok, rhs_node = n.children
    name = expect_ident_token(name_tok, "Declaration target")
    kind = token_kind(kind_tok)

    declare(
        state,
        name,
        rhs_node,
        is_new_binding=kind == 'LET',
        compound_op=_COMPOUND_OPS.get(kind or ''),
        eval_func=eval_func,
    )

    return None

def declare(
    state: State,
    name: str,
    rhs_node: Node,
    *,
    is_new_binding: bool,
    compound_op: Optional[str],
    eval_func: EvalFunc,
) -> None:
    """Bind or rebind `name` to the value of `rhs_node`.

    A new binding always lands in the innermost scope and may shadow an outer
    one. A reassignment mutates the nearest scope holding `name` and must keep
    the value's variant.
    """
    if is_new_binding:
        state.define(name, eval_func(rhs_node, state))
        return

    scope = state.find_scope(name)
    if scope is None:
        raise UndefinedVariable(name)

    value: SlValue = eval_func(rhs_node, state)
    old = scope[name]

    if compound_op is not None:
        value = apply_binary_operator(compound_op, old, value)

    if type(value) is not type(old):
        raise TypeMismatch(
            f"Cannot assign {type_name(value)} to '{name}' holding {type_name(old)}"
        )

    scope[name] = value
