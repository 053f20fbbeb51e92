from __future__ import annotations

from typing import List, Optional

from lark import Token, Tree

from .tree import Node
from .types import (
    SlInt, SlFn, SlValue, StmtResult, State,
    ArityError, UnknownFunction,
    Builtins, BuiltinFn, BuiltinFunction,
    is_break,
)
from .eval.common import array_binding

def register_builtin(name: str, *, arity: int):
    def dec(fn: BuiltinFn):
        Builtins.functions[name] = BuiltinFunction(fn=fn, arity=arity)
        return fn

    return dec

# Built-ins receive their argument nodes unevaluated: the first argument of
# each names the array variable to operate on.

@register_builtin("push", arity=2)
def _builtin_push(state: State, args: List[Node]) -> SlValue:
    from .evaluator import eval_value  # local import to avoid cycle

    value = eval_value(args[1], state)
    name, arr = array_binding(state, args[0], "push")
    state.set(name, arr.appended(value))

    return value

@register_builtin("len", arity=1)
def _builtin_len(state: State, args: List[Node]) -> SlValue:
    _, arr = array_binding(state, args[0], "len")

    return SlInt(len(arr.items))

def call_function(name: str, arg_nodes: List[Node], state: State) -> Optional[SlValue]:
    """Dispatch a call: built-ins first, then a function bound to `name`."""
    builtin = Builtins.functions.get(name)
    if builtin is not None:
        if len(arg_nodes) != builtin.arity:
            raise ArityError(f"{name}() expects {builtin.arity} argument(s); got {len(arg_nodes)}")

        return builtin.fn(state, arg_nodes)

    callee = state.lookup(name)
    if not isinstance(callee, SlFn):
        raise UnknownFunction(name)

    if len(arg_nodes) != len(callee.params):
        raise ArityError(f"{name}() expects {len(callee.params)} argument(s); got {len(arg_nodes)}")

    return call_slfn(callee, arg_nodes, state)

def call_slfn(fn: SlFn, arg_nodes: List[Node], state: State) -> Optional[SlValue]:
    """
    Run a function as a transient block on the live scope stack:

        { let p1 = <arg1>; ...; let pN = <argN>; <body statements> }

    Each parameter is bound to its argument expression, unevaluated, so the
    arguments run inside the new scope in order: a later argument can see an
    earlier parameter, and names neither binds resolve through whatever
    scopes are live at the call site.
    """
    from .evaluator import eval_node  # local import to avoid cycle
    from .eval.blocks import execute_block

    bindings: List[Node] = [
        Tree('declaration', [Token('IDENT', param), Token('LET', 'let'), arg])
        for param, arg in zip(fn.params, arg_nodes)
    ]
    transient = Tree('block', bindings + list(fn.body.children))

    result: StmtResult = execute_block(transient, state, eval_node)

    # A break escaping the body ends the call without a value.
    if is_break(result):
        return None

    return result
