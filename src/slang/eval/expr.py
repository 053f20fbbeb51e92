from __future__ import annotations

import math
import operator
from typing import Callable

from lark import Token

from ..types import (
    IndexOutOfBounds,
    SlArray,
    SlBool,
    SlFloat,
    SlInt,
    SlString,
    SlValue,
    SlangRuntimeError,
    State,
    TypeMismatch,
    DivisionByZero,
    type_name,
)
from ..tree import Node, Tree
from ..utils import stringify, values_equal
from .common import require_array, require_bool, whole_index

EvalFunc = Callable[[Node, State], SlValue]

_ORDERING = {
    '<': operator.lt,
    '>': operator.gt,
    '<=': operator.le,
    '>=': operator.ge,
}

_ARITH = {
    '+': operator.add,
    '-': operator.sub,
    '*': operator.mul,
}

def eval_unary(op: Token, rhs_node: Node, state: State, eval_func: EvalFunc) -> SlValue:
    rhs = eval_func(rhs_node, state)

    match op.value:
        case '-':
            match rhs:
                case SlInt(value=i):
                    return SlInt(-i)
                case SlFloat(value=f):
                    return SlFloat(-f)
                case _:
                    raise TypeMismatch(f"Cannot negate {type_name(rhs)}")
        case '!':
            return SlBool(not require_bool(rhs, "'!'"))
        case _:
            raise SlangRuntimeError(f"Unsupported unary op '{op.value}'")

def eval_binop(n: Tree, state: State, eval_func: EvalFunc) -> SlValue:
    op, lhs_node, rhs_node = n.children
    op_value = str(op.value)

    if op_value in ('+=', '-='):
        raise TypeMismatch(f"'{op_value}' is only valid as an assignment statement")

    lhs = eval_func(lhs_node, state)

    if op_value == '.':
        raise TypeMismatch(f"{type_name(lhs)} has no members")

    rhs = eval_func(rhs_node, state)
    return apply_binary_operator(op_value, lhs, rhs)

def apply_binary_operator(op: str, lhs: SlValue, rhs: SlValue) -> SlValue:
    match op:
        case '+':
            if isinstance(lhs, SlString) or isinstance(rhs, SlString):
                return _concat(lhs, rhs)
            return _arith(op, lhs, rhs)
        case '-' | '*':
            return _arith(op, lhs, rhs)
        case '/':
            return _divide(lhs, rhs)
        case '%':
            return _modulo(lhs, rhs)
        case '==':
            return SlBool(values_equal(lhs, rhs))
        case '!=':
            return SlBool(not values_equal(lhs, rhs))
        case '<' | '>' | '<=' | '>=':
            return _order(op, lhs, rhs)
        case '&&':
            return SlBool(require_bool(lhs, "'&&'") and require_bool(rhs, "'&&'"))
        case '||':
            return SlBool(require_bool(lhs, "'||'") or require_bool(rhs, "'||'"))
        case _:
            raise SlangRuntimeError(f"Unknown operator '{op}'")

def _mismatch(op: str, lhs: SlValue, rhs: SlValue) -> TypeMismatch:
    return TypeMismatch(f"Unsupported operand types for {op}: {type_name(lhs)} and {type_name(rhs)}")

def _concat(lhs: SlValue, rhs: SlValue) -> SlString:
    text_like = (SlString, SlInt, SlFloat)

    if not isinstance(lhs, text_like) or not isinstance(rhs, text_like):
        raise _mismatch('+', lhs, rhs)

    return SlString(stringify(lhs) + stringify(rhs))

def _arith(op: str, lhs: SlValue, rhs: SlValue) -> SlValue:
    fn = _ARITH[op]

    match (lhs, rhs):
        case (SlInt(value=a), SlInt(value=b)):
            return SlInt(fn(a, b))
        case (SlInt(value=a) | SlFloat(value=a), SlInt(value=b) | SlFloat(value=b)):
            return SlFloat(float(fn(a, b)))
        case _:
            raise _mismatch(op, lhs, rhs)

def _divide(lhs: SlValue, rhs: SlValue) -> SlValue:
    match (lhs, rhs):
        case (SlInt() | SlFloat(), SlInt(value=0) | SlFloat(value=0.0)):
            raise DivisionByZero("Division by zero")
        case (SlInt(value=a), SlInt(value=b)):
            # Exact quotients stay integral; anything else promotes.
            if a % b == 0:
                return SlInt(a // b)
            return SlFloat(a / b)
        case (SlInt(value=a) | SlFloat(value=a), SlInt(value=b) | SlFloat(value=b)):
            return SlFloat(a / b)
        case _:
            raise _mismatch('/', lhs, rhs)

def _modulo(lhs: SlValue, rhs: SlValue) -> SlValue:
    # Truncated division: the remainder takes the sign of the dividend.
    match (lhs, rhs):
        case (SlInt(), SlInt(value=0)) | (SlFloat(), SlFloat(value=0.0)):
            raise DivisionByZero("Modulo by zero")
        case (SlInt(value=a), SlInt(value=b)):
            rem = abs(a) % abs(b)
            return SlInt(-rem if a < 0 else rem)
        case (SlFloat(value=a), SlFloat(value=b)):
            return SlFloat(math.fmod(a, b))
        case _:
            raise _mismatch('%', lhs, rhs)

def _order(op: str, lhs: SlValue, rhs: SlValue) -> SlBool:
    match (lhs, rhs):
        case (SlInt(value=a) | SlFloat(value=a), SlInt(value=b) | SlFloat(value=b)):
            return SlBool(_ORDERING[op](a, b))
        case _:
            raise _mismatch(op, lhs, rhs)

def eval_index(n: Tree, state: State, eval_func: EvalFunc) -> SlValue:
    coll_node, index_node = n.children
    coll = require_array(eval_func(coll_node, state), "Indexing")
    index = whole_index(eval_func(index_node, state))

    if index >= len(coll.items):
        raise IndexOutOfBounds(index, len(coll.items))

    return coll.items[index]

def eval_array(n: Tree, state: State, eval_func: EvalFunc) -> SlArray:
    return SlArray(tuple(eval_func(child, state) for child in n.children))
