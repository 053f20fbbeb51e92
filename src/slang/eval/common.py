from __future__ import annotations

from typing import Any, Optional

from lark import Token

from ..types import SlArray, SlBool, SlFloat, SlInt, SlValue, State, TypeMismatch, SlangRuntimeError, type_name
from ..tree import is_token

def token_kind(node: Any) -> Optional[str]:
    if not is_token(node):
        return None
    tok: Token = node
    return str(tok.type)

def expect_ident_token(node: Any, context: str) -> str:
    if is_token(node) and token_kind(node) == 'IDENT':
        return str(node.value)

    raise SlangRuntimeError(f"{context} must be an identifier")

def ident_token_value(node: Any) -> Optional[str]:
    if is_token(node) and token_kind(node) == 'IDENT':
        return str(node.value)

    return None

def require_bool(value: SlValue, context: str) -> bool:
    if not isinstance(value, SlBool):
        raise TypeMismatch(f"{context} expects a Boolean, got {type_name(value)}")

    return value.value

def require_array(value: SlValue, context: str) -> SlArray:
    if not isinstance(value, SlArray):
        raise TypeMismatch(f"{context} expects an Array, got {type_name(value)}")

    return value

def array_binding(state: State, arg_node: Any, context: str) -> tuple[str, SlArray]:
    """Resolve an argument that must name a variable currently holding an array."""
    name = ident_token_value(arg_node)
    if name is None:
        raise TypeMismatch(f"{context} expects an array variable as its first argument")

    return name, require_array(state.get(name), context)

def whole_index(value: SlValue) -> int:
    """Index operand as a non-negative int; integral floats are accepted."""
    match value:
        case SlInt(value=i):
            index = i
        case SlFloat(value=f) if f.is_integer():
            index = int(f)
        case SlFloat():
            raise TypeMismatch(f"Array index must be a whole number, got {value!r}")
        case _:
            raise TypeMismatch(f"Array index must be a number, got {type_name(value)}")

    if index < 0:
        raise TypeMismatch(f"Array index must be non-negative, got {index}")

    return index
