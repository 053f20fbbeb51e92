"""
Token Types for the slang parser

Shared between lexer and parser to avoid circular dependencies.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types produced by the lexer"""

    # Literals
    NUMBER = auto()
    STRING = auto()
    IDENT = auto()

    # Keywords
    LET = auto()
    IF = auto()
    ELIF = auto()
    ELSE = auto()
    WHILE = auto()
    FOR = auto()
    FN = auto()
    STRUCT = auto()
    BREAK = auto()
    PRINT = auto()
    TRUE = auto()
    FALSE = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    MOD = auto()

    # Comparison
    EQ = auto()
    NEQ = auto()
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()

    # Logical
    AND = auto()
    OR = auto()
    NEG = auto()  # !

    # Assignment
    ASSIGN = auto()  # =
    PLUSEQ = auto()
    MINUSEQ = auto()

    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LSQB = auto()
    RSQB = auto()
    LBRACE = auto()
    RBRACE = auto()
    DOT = auto()
    COMMA = auto()
    SEMI = auto()

    # Special
    NEWLINE = auto()
    EOF = auto()
    COMMENT = auto()


@dataclass
class Tok:
    """Token with position info.

    NUMBER tokens carry a resolved int/float and STRING tokens the unescaped
    text; every other token carries its lexeme. ``text`` is always the raw
    source slice the token was scanned from.
    """

    type: TT
    value: Any
    line: int = 0
    column: int = 0
    text: str = ""

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"
