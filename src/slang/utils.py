from __future__ import annotations

import os
from typing import Optional

from .types import (
    SlValue,
    SlString,
    SlInt,
    SlFloat,
    SlBool,
    SlArray,
    SlFn,
)

DEBUG_PY_TRACE_ENV = "SLANG_DEBUG_PY_TRACE"


def debug_py_trace_enabled() -> bool:
    """True when failures should also print the Python traceback."""
    return os.environ.get(DEBUG_PY_TRACE_ENV, "").lower() in ("1", "true", "yes", "on")


def values_equal(lhs: SlValue, rhs: SlValue) -> bool:
    match (lhs, rhs):
        case (SlInt(value=a), SlInt(value=b)):
            return a == b
        case (SlFloat(value=a), SlFloat(value=b)):
            return a == b
        case (SlString(value=a), SlString(value=b)):
            return a == b
        case (SlBool(value=a), SlBool(value=b)):
            return a == b
        case (SlArray(items=items_a), SlArray(items=items_b)):
            return len(items_a) == len(items_b) and all(
                values_equal(a, b) for a, b in zip(items_a, items_b)
            )
        case (SlFn(), SlFn()):
            return lhs is rhs
        case _:
            # Different variants never compare equal, 1 == 1.0 included.
            return False


def stringify(value: Optional[SlValue]) -> str:
    """Textual form used by print and the driver."""
    if isinstance(value, SlString):
        return value.value

    if isinstance(value, SlFloat):
        v = value.value
        return str(int(v)) if v.is_integer() else repr(v)

    if isinstance(value, SlInt):
        return str(value.value)

    if isinstance(value, SlBool):
        return "true" if value.value else "false"

    if value is None:
        return ""

    # Arrays and functions: nested strings stay quoted
    return repr(value)
