from __future__ import annotations

from types import SimpleNamespace
from typing import Callable, Optional
from lark import Token

from .runtime import call_function
from .types import (
    BREAK,
    SlValue,
    StmtResult,
    State,
    SlangRuntimeError,
    TypeMismatch,
)

from .tree import Node, Tree, is_token, node_meta
from .utils import stringify

from .eval.blocks import execute_block, execute_program
from .eval.loops import eval_if_stmt, eval_while_stmt
from .eval.bind import eval_declaration
from .eval.fn import eval_fn_literal
from .eval.expr import eval_array, eval_binop, eval_index, eval_unary
from .eval.common import expect_ident_token

EvalFunc = Callable[[Node, State], StmtResult]


def _maybe_attach_location(exc: SlangRuntimeError, node: Node) -> None:
    # Innermost node with a location wins; outer frames leave it alone.
    if exc.sl_meta is not None:
        return

    meta = node_meta(node)

    if meta is not None and getattr(meta, "line", None) is not None:
        exc.sl_meta = meta
        return

    if is_token(node) and node.line is not None:
        exc.sl_meta = SimpleNamespace(line=node.line, column=node.column)

# ---------------- Public API ----------------

def execute(program: Tree, state: Optional[State]=None) -> StmtResult:
    """Run a parsed program in the base scope of `state` and return its result."""
    if state is None:
        state = State()

    return execute_program(program, state, eval_node)

# ---------------- Core evaluator ----------------

def eval_node(n: Node, state: State) -> StmtResult:
    """Evaluate any node; statements may yield None or BREAK."""
    try:
        return _eval_node_inner(n, state)
    except SlangRuntimeError as e:
        _maybe_attach_location(e, n)
        raise

def eval_value(n: Node, state: State) -> SlValue:
    """Evaluate a node whose result is used as a value."""
    result = eval_node(n, state)

    if result is None or result is BREAK:
        exc = TypeMismatch("Expression produced no value")
        _maybe_attach_location(exc, n)
        raise exc

    return result

def _eval_node_inner(n: Node, state: State) -> StmtResult:
    if is_token(n):
        return _eval_token(n, state)

    handler = _NODE_DISPATCH.get(n.data)
    if handler is not None:
        return handler(n, state)

    raise SlangRuntimeError(f"Unknown node: {n.data}")

# ---------------- Tokens ----------------

def _eval_token(t: Token, state: State) -> SlValue:
    if t.type == 'IDENT':
        return state.get(t.value)

    raise SlangRuntimeError(f"Unhandled token {t.type}:{t.value}")

# ---------------- Statements ----------------

def _eval_print(n: Tree, state: State) -> None:
    value = eval_value(n.children[0], state)
    state.output.write(stringify(value) + "\n")
    return None

def _eval_call(n: Tree, state: State) -> Optional[SlValue]:
    name_node, args_node = n.children
    name = expect_ident_token(name_node, "Callee")
    return call_function(name, list(args_node.children), state)

# ---------------- Dispatch ----------------

_NODE_DISPATCH: dict[str, EvalFunc] = {
    # expressions
    'literal': lambda n, state: n.children[0],
    'array': lambda n, state: eval_array(n, state, eval_value),
    'unary': lambda n, state: eval_unary(n.children[0], n.children[1], state, eval_value),
    'binop': lambda n, state: eval_binop(n, state, eval_value),
    'index': lambda n, state: eval_index(n, state, eval_value),
    'call': _eval_call,
    'fn': eval_fn_literal,
    # statements
    'exprstmt': lambda n, state: eval_node(n.children[0], state),
    'printstmt': _eval_print,
    'declaration': lambda n, state: eval_declaration(n, state, eval_value),
    'ifstmt': lambda n, state: eval_if_stmt(n, state, eval_node),
    'whilestmt': lambda n, state: eval_while_stmt(n, state, eval_node),
    'block': lambda n, state: execute_block(n, state, eval_node),
    'breakstmt': lambda _, __: BREAK,
}
