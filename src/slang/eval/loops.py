from __future__ import annotations

from typing import Any, Callable

from ..types import SlBool, SlValue, StmtResult, State, TypeMismatch, is_break, type_name
from ..tree import Node, Tree
from .blocks import execute_block

EvalFunc = Callable[[Node, State], Any]

def _condition(cond_node: Node, state: State, eval_func: EvalFunc, context: str) -> bool:
    value: SlValue = eval_func(cond_node, state)

    if not isinstance(value, SlBool):
        raise TypeMismatch(f"{context} condition must be a Boolean, got {type_name(value)}")

    return value.value

def eval_if_stmt(n: Tree, state: State, eval_func: EvalFunc) -> StmtResult:
    cond_node, then_block, else_block = n.children

    # The executed block's result (BREAK included) flows out unchanged.
    if _condition(cond_node, state, eval_func, "if"):
        return execute_block(then_block, state, eval_func)

    return execute_block(else_block, state, eval_func)

def eval_while_stmt(n: Tree, state: State, eval_func: EvalFunc) -> StmtResult:
    cond_node, body = n.children

    while _condition(cond_node, state, eval_func, "while"):
        result = execute_block(body, state, eval_func)
        if is_break(result):
            break

    return None
