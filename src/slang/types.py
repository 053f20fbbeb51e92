from __future__ import annotations

import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, TextIO, Tuple
from typing_extensions import TypeAlias
from .tree import Node

# ---------- Value Model ----------
#
# Values are immutable: binding a value never shares mutable state with the
# source of the value, and arrays are rebuilt rather than mutated.

@dataclass(frozen=True)
class SlString:
    value: str
    def __repr__(self) -> str:
        return f'"{self.value}"'

@dataclass(frozen=True)
class SlInt:
    value: int
    def __repr__(self) -> str:
        return str(self.value)

@dataclass(frozen=True)
class SlFloat:
    value: float
    def __repr__(self) -> str:
        v = self.value
        return str(int(v)) if v.is_integer() else repr(v)

@dataclass(frozen=True)
class SlBool:
    value: bool
    def __repr__(self) -> str:
        return "true" if self.value else "false"

@dataclass(frozen=True)
class SlArray:
    items: Tuple['SlValue', ...]
    def __repr__(self) -> str:
        return "[" + ", ".join(repr(x) for x in self.items) + "]"

    def appended(self, item: 'SlValue') -> 'SlArray':
        return SlArray(self.items + (item,))

@dataclass(frozen=True)
class SlFn:
    params: Tuple[str, ...]
    body: Node                    # Tree('block', ...)
    def __repr__(self) -> str:
        return f"<fn params={', '.join(self.params)}>"

class SlBreak:
    """Out-of-band signal produced by `break`; only BREAK exists."""
    _instance: Optional['SlBreak'] = None

    def __new__(cls) -> 'SlBreak':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<break>"

BREAK = SlBreak()

SlValue: TypeAlias = (
    SlString
    | SlInt
    | SlFloat
    | SlBool
    | SlArray
    | SlFn
)

# What a statement yields: a value, nothing, or the break sentinel.
StmtResult: TypeAlias = Optional[SlValue | SlBreak]

def is_break(value: object) -> bool:
    return value is BREAK

def type_name(value: object) -> str:
    if value is None:
        return "no value"

    names = {
        SlString: "String",
        SlInt: "Integer",
        SlFloat: "Float",
        SlBool: "Boolean",
        SlArray: "Array",
        SlFn: "Function",
    }
    return names.get(type(value), type(value).__name__)

# ---------- Runtime State ----------

Scope: TypeAlias = Dict[str, SlValue]

class State:
    """Scope stack plus output stream, threaded through every execution call.

    scopes[0] is the base scope a program's top level runs in; the last entry
    is the innermost scope.
    """

    def __init__(self, output: Optional[TextIO]=None, source: Optional[str]=None):
        self.scopes: List[Scope] = [{}]
        self._output = output
        self.source = source

    @property
    def output(self) -> TextIO:
        return self._output if self._output is not None else sys.stdout

    @output.setter
    def output(self, stream: Optional[TextIO]) -> None:
        self._output = stream

    @property
    def depth(self) -> int:
        return len(self.scopes)

    def push_scope(self) -> None:
        self.scopes.append({})

    def pop_scope(self) -> Scope:
        if len(self.scopes) <= 1:
            raise SlangRuntimeError("Cannot pop the base scope")

        return self.scopes.pop()

    @contextmanager
    def scope(self) -> Iterator[Scope]:
        self.push_scope()
        try:
            yield self.scopes[-1]
        finally:
            self.pop_scope()

    def define(self, name: str, val: SlValue) -> None:
        self.scopes[-1][name] = val

    def find_scope(self, name: str) -> Optional[Scope]:
        for scope in reversed(self.scopes):
            if name in scope:
                return scope

        return None

    def lookup(self, name: str) -> Optional[SlValue]:
        scope = self.find_scope(name)
        if scope is None:
            return None

        return scope[name]

    def get(self, name: str) -> SlValue:
        scope = self.find_scope(name)
        if scope is None:
            raise UndefinedVariable(name)

        return scope[name]

    def set(self, name: str, val: SlValue) -> None:
        scope = self.find_scope(name)
        if scope is None:
            raise UndefinedVariable(name)

        scope[name] = val

# ---------- Exceptions ----------

class SlangRuntimeError(Exception):
    sl_meta: Optional[object]

    def __init__(self, message: str):
        super().__init__(message)
        self.sl_meta = None

    @property
    def line(self) -> Optional[int]:
        return getattr(self.sl_meta, "line", None)

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        msg = super().__str__()

        line = self.line
        if line is None:
            return msg

        return f"{msg} (line {line})"

class UndefinedVariable(SlangRuntimeError):
    def __init__(self, name: str):
        super().__init__(f"Name '{name}' not found")
        self.name = name

class TypeMismatch(SlangRuntimeError):
    pass

class IndexOutOfBounds(SlangRuntimeError):
    def __init__(self, index: int, length: int):
        super().__init__(f"Index {index} out of bounds for array of length {length}")
        self.index = index
        self.length = length

class UnknownFunction(SlangRuntimeError):
    def __init__(self, name: str):
        super().__init__(f"Function '{name}' is undefined")
        self.name = name

class ArityError(SlangRuntimeError):
    pass

class DivisionByZero(SlangRuntimeError):
    pass

# ---------- Builtins registry ----------

BuiltinFn = Callable[['State', List[Node]], 'SlValue']

@dataclass(frozen=True)
class BuiltinFunction:
    fn: BuiltinFn
    arity: int

class Builtins:
    functions: Dict[str, BuiltinFunction] = {}
