from __future__ import annotations

from typing import Any, Callable, Iterable

from ..types import BREAK, StmtResult, State, is_break
from ..tree import Node, Tree

EvalFunc = Callable[[Node, State], Any]

def run_statements(stmts: Iterable[Node], state: State, eval_func: EvalFunc) -> StmtResult:
    """Run statements in the current scope, returning the last statement's result.

    Stops right after a statement yields BREAK and hands BREAK back so the
    caller decides whether to propagate or consume it.
    """
    result: StmtResult = None

    for stmt in stmts:
        result = eval_func(stmt, state)
        if is_break(result):
            return BREAK

    return result

def execute_block(block: Tree, state: State, eval_func: EvalFunc) -> StmtResult:
    """Run a block in a fresh scope; the scope is dropped on every exit path."""
    with state.scope():
        return run_statements(block.children, state, eval_func)

def execute_program(program: Tree, state: State, eval_func: EvalFunc) -> StmtResult:
    """Run a top-level block directly in the current scope.

    No scope is pushed, so declarations outlive the call (a REPL session keeps
    them between inputs). A break that reaches this level is discarded.
    """
    result = run_statements(program.children, state, eval_func)
    if is_break(result):
        return None

    return result
