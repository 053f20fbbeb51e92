"""
Tree printers built on lark's Transformer.

- SexprPrinter: prefix S-expression form, e.g. `(+ 1 (* 2 3))`; used for
  diagnostics (`slang --sexpr`) and precedence tests.
- SourcePrinter: fully parenthesized slang source. Parsing its output yields
  a tree equal to the one printed.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List

from lark import Transformer

from .tree import Node, is_tree, tree_children, tree_label
from .types import SlBool, SlFloat, SlInt, SlString

_SOURCE_ESCAPES = [
    ('\\', '\\\\'),
    ('"', '\\"'),
    ('\n', '\\n'),
    ('\t', '\\t'),
    ('\r', '\\r'),
    ('\0', '\\0'),
]


def _string_source(text: str) -> str:
    for raw, escaped in _SOURCE_ESCAPES:
        text = text.replace(raw, escaped)
    return f'"{text}"'


def _float_source(value: float) -> str:
    # Positional notation only: the lexer has no exponent syntax.
    text = format(Decimal(repr(value)), 'f')
    if '.' not in text:
        text += '.0'
    return text


class SexprPrinter(Transformer):
    def literal(self, c):
        return repr(c[0])

    def binop(self, c):
        op, lhs, rhs = c
        return f"({op} {lhs} {rhs})"

    def unary(self, c):
        op, operand = c
        return f"({op} {operand})"

    def index(self, c):
        coll, idx = c
        return f"([] {coll} {idx})"

    def args(self, c):
        return list(c)

    def params(self, c):
        return [str(p) for p in c]

    def call(self, c):
        name, args = c
        return "(" + " ".join([str(name), *args]) + ")"

    def array(self, c):
        return "[" + " ".join(c) + "]"

    def fn(self, c):
        params, body = c
        return f"(fn ({' '.join(params)}) {body})"

    def block(self, c):
        return "(" + " ".join(["block", *c]) + ")"

    def exprstmt(self, c):
        return c[0]

    def printstmt(self, c):
        return f"(print {c[0]})"

    def declaration(self, c):
        name, kind, rhs = c
        return f"({kind} {name} {rhs})"

    def ifstmt(self, c):
        cond, then_block, else_block = c
        return f"(if {cond} {then_block} {else_block})"

    def whilestmt(self, c):
        cond, body = c
        return f"(while {cond} {body})"

    def breakstmt(self, _c):
        return "(break)"


class SourcePrinter(Transformer):
    def literal(self, c):
        match c[0]:
            case SlString(value=s):
                return _string_source(s)
            case SlInt(value=i):
                return str(i)
            case SlFloat(value=f):
                return _float_source(f)
            case SlBool(value=b):
                return "true" if b else "false"
            case other:
                return repr(other)

    def binop(self, c):
        op, lhs, rhs = c
        return f"({lhs} {op} {rhs})"

    def unary(self, c):
        op, operand = c
        return f"({op}{operand})"

    def index(self, c):
        coll, idx = c
        return f"{coll}[{idx}]"

    def args(self, c):
        return list(c)

    def params(self, c):
        return [str(p) for p in c]

    def call(self, c):
        name, args = c
        return f"{name}({', '.join(args)})"

    def array(self, c):
        return "[" + ", ".join(c) + "]"

    def fn(self, c):
        params, body = c
        return f"fn({', '.join(params)}) {body}"

    def block(self, c):
        if not c:
            return "{ }"
        return "{ " + "; ".join(c) + " }"

    def exprstmt(self, c):
        return c[0]

    def printstmt(self, c):
        return f"print({c[0]})"

    def declaration(self, c):
        name, kind, rhs = c
        if kind.type == 'LET':
            return f"let {name} = {rhs}"
        return f"{name} {kind} {rhs}"

    def ifstmt(self, c):
        cond, then_block, else_block = c
        return f"if ({cond}) {then_block} else {else_block}"

    def whilestmt(self, c):
        cond, body = c
        return f"while ({cond}) {body}"

    def breakstmt(self, _c):
        return "break"


def to_sexpr(node: Node) -> str:
    if not is_tree(node):
        return str(node)
    return SexprPrinter().transform(node)


def to_source(node: Node) -> str:
    """Render a tree as source; a program block renders one statement per line."""
    if not is_tree(node):
        return str(node)

    printer = SourcePrinter()
    if tree_label(node) == 'block':
        lines: List[str] = [_render(printer, child) for child in tree_children(node)]
        return "\n".join(lines)

    return printer.transform(node)


def _render(printer: SourcePrinter, node: Node) -> str:
    if not is_tree(node):
        return str(node)
    return printer.transform(node)
