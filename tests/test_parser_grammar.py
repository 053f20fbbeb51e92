from __future__ import annotations

from textwrap import dedent

import pytest
from lark import Token, Tree

from tests.support.harness import (
    ParseError,
    SlFloat,
    SlInt,
    SlString,
    expr_sexpr,
    parse_pipeline,
)
from slang.parser_rd import parse_expr_fragment

PARSER_GRAMMAR_CASES = [
    ("let-0", "let x = 1"),
    ("let-1", "let s = \"hi\"; let t = s"),
    ("assign-0", "x = x + 1"),
    ("assign-1", "x += 2\nx -= 1"),
    ("print-0", "print(1 + 2)"),
    ("print-1", "print(x); print(y)"),
    ("print-2", "{ print(x) }"),
    ("block-0", "{ }"),
    ("block-1", "{ let a = 1\n { let b = 2 } }"),
    ("if-0", "if (a) { 1 }"),
    ("if-1", "if (a) { 1 } else { 2 }"),
    ("if-2", "if (a) { 1 } elif (b) { 2 } elif (c) { 3 } else { 4 }"),
    ("while-0", "while (i < 10) { i = i + 1 }"),
    ("for-0", "for (let i = 0; i < 3; i = i + 1) { print(i) }"),
    ("for-1", "for (;;) { break }"),
    ("for-2", "for (i = 0; i < 3;) { i += 1 }"),
    ("fn-0", "fn add(a, b) { a + b }"),
    ("fn-1", "fn noop() { }"),
    ("fn-2", "let f = fn(x) { x * 2 }"),
    ("fn-3", "fn(x) { x }"),
    ("call-0", "f()"),
    ("call-1", "f(1, g(2), [3])"),
    ("array-0", "[]"),
    ("array-1", "[1, \"two\", [3.0]]"),
    ("array-2", "[\n  1,\n  2,\n]"),
    ("index-0", "xs[0][1]"),
    ("member-0", "a.b.c"),
    ("logic-0", "a and b or c"),
    ("unary-0", "!(-x)"),
    ("comment-0", "let x = 1 # trailing\n# whole line\nprint(x)"),
    (
        "program-0",
        dedent(
            """\
            fn fib(n) {
                if (n < 2) {
                    n
                } else {
                    fib(n - 1) + fib(n - 2)
                }
            }
            print(fib(10))
            """
        ),
    ),
]


@pytest.mark.parametrize(
    "code",
    [pytest.param(code, id=name) for name, code in PARSER_GRAMMAR_CASES],
)
def test_parser_grammar(code: str) -> None:
    tree = parse_pipeline(code)
    assert isinstance(tree, Tree)
    assert tree.data == "block"


PRECEDENCE_CASES = [
    ("mul-over-add", "1 + 2 * 3", "(+ 1 (* 2 3))"),
    ("parens", "(1 + 2) * 3", "(* (+ 1 2) 3)"),
    ("left-assoc-sub", "1 - 2 - 3", "(- (- 1 2) 3)"),
    ("left-assoc-div", "8 / 4 / 2", "(/ (/ 8 4) 2)"),
    ("logic-over-compare", "a == b && c", "(== a (&& b c))"),
    ("add-over-mod", "a % b + c", "(% a (+ b c))"),
    ("logic-left-assoc", "x || y and z", "(&& (|| x y) z)"),
    ("compare-left-assoc", "a < b < c", "(< (< a b) c)"),
    ("prefix-minus-binds-tight", "-a * b", "(* (- a) b)"),
    ("prefix-neg", "!a && b", "(&& (! a) b)"),
    ("index-over-prefix", "-xs[0]", "(- ([] xs 0))"),
    ("double-negation", "--x", "(- (- x))"),
    ("member-chain", "a.b.c", "(. (. a b) c)"),
    ("member-over-mul", "a * b.c", "(* a (. b c))"),
    ("call-args", "f(1, 2 + 3)", "(f 1 (+ 2 3))"),
    ("array-index", "[1, 2][0]", "([] [1 2] 0)"),
    ("string-literal", '"s" + 1', '(+ "s" 1)'),
    ("float-literal", "1.5 * 2", "(* 1.5 2)"),
    ("fn-literal", "fn(a) { a }", "(fn (a) (block a))"),
    ("compound-in-expr", "a += 1", "(+= a 1)"),
]


@pytest.mark.parametrize(
    "code, expected",
    [pytest.param(code, expected, id=name) for name, code, expected in PRECEDENCE_CASES],
)
def test_precedence(code: str, expected: str) -> None:
    assert expr_sexpr(code) == expected


def test_let_declaration_shape() -> None:
    tree = parse_pipeline("let x = 1")

    assert tree == Tree(
        "block",
        [
            Tree(
                "declaration",
                [Token("IDENT", "x"), Token("LET", "let"), Tree("literal", [SlInt(1)])],
            )
        ],
    )


def test_compound_assignment_shape() -> None:
    decl = parse_pipeline("x -= 2.5").children[0]

    assert decl.data == "declaration"
    name, kind, rhs = decl.children
    assert name == Token("IDENT", "x")
    assert kind.type == "MINUSEQ"
    assert rhs == Tree("literal", [SlFloat(2.5)])


def test_print_statement_shape() -> None:
    stmt = parse_pipeline('print("hi")').children[0]
    assert stmt == Tree("printstmt", [Tree("literal", [SlString("hi")])])


def test_if_without_else_gets_empty_block() -> None:
    stmt = parse_pipeline("if (a) { 1 }").children[0]

    assert stmt.data == "ifstmt"
    assert stmt.children[2] == Tree("block", [])


@pytest.mark.parametrize(
    "sugared, desugared",
    [
        pytest.param(
            "for (let i = 0; i < 3; i = i + 1) { print(i) }",
            "{ let i = 0\nwhile (i < 3) { print(i)\ni = i + 1 } }",
            id="for-full",
        ),
        pytest.param(
            "for (;;) { break }",
            "{ while (true) { break } }",
            id="for-empty-clauses",
        ),
        pytest.param(
            "if (a) { 1 } elif (b) { 2 } else { 3 }",
            "if (a) { 1 } else { if (b) { 2 } else { 3 } }",
            id="elif-chain",
        ),
        pytest.param(
            "fn add(a, b) { a + b }",
            "let add = fn(a, b) { a + b }",
            id="fn-declaration",
        ),
        pytest.param(
            "if (a)\n{\n  1\n}\nelse\n{\n  2\n}",
            "if (a) { 1 } else { 2 }",
            id="newlines-before-braces",
        ),
        pytest.param(
            "[1,\n 2,\n]",
            "[1, 2]",
            id="array-newlines-trailing-comma",
        ),
    ],
)
def test_desugaring(sugared: str, desugared: str) -> None:
    assert parse_pipeline(sugared) == parse_pipeline(desugared)


def test_word_operators_match_symbols() -> None:
    assert parse_expr_fragment("a and b or c") == parse_expr_fragment("a && b || c")


def test_statement_lines_are_recorded() -> None:
    tree = parse_pipeline("let a = 1\n\nprint(a)\n{\n  a = 2\n}")
    lines = [stmt.meta.line for stmt in tree.children]

    assert lines == [1, 3, 4]
    inner = tree.children[2].children[0]
    assert inner.meta.line == 5


PARSE_ERROR_CASES = [
    ("unbalanced-paren", "(1 + 2", "Unbalanced '('"),
    ("dangling-operator", "1 +", "Unexpected end of input"),
    ("missing-let-name", "let = 3", "Expected identifier after let"),
    ("missing-let-assign", "let x 3", "Expected '=' in let declaration"),
    ("print-without-parens", "print 1", "Expected '(' after print"),
    ("print-without-terminator", "print(1) 2", "Expected end of statement"),
    ("if-without-parens", "if x { }", "Expected '(' after if"),
    ("if-without-braces", "if (x) 1", "Expected '{'"),
    ("struct-reserved", "struct Point { }", "'struct' declarations are not supported"),
    ("stray-rbrace", "let a = 1 }", "Unmatched '}'"),
    ("unclosed-block", "{ let x = 1", "Expected '}'"),
    ("no-infix-rule", "1 2", "Unexpected token after expression: NUMBER"),
    ("dangling-else", "else { }", "'else' without a preceding if"),
    ("empty-argument", "f(1,, 2)", "Unexpected token in expression: COMMA"),
    ("unclosed-index", "xs[1", "Expected ']' after index"),
    ("unclosed-array", "[1, 2", "Expected ']' to close array literal"),
    ("bad-param", "fn f(1) { }", "Expected parameter name"),
]


@pytest.mark.parametrize(
    "code, message",
    [pytest.param(code, message, id=name) for name, code, message in PARSE_ERROR_CASES],
)
def test_parse_errors(code: str, message: str) -> None:
    with pytest.raises(ParseError) as exc_info:
        parse_pipeline(code)

    assert message in str(exc_info.value)


def test_parse_error_position() -> None:
    with pytest.raises(ParseError) as exc_info:
        parse_pipeline("let x = 1\nlet = 2")

    err = exc_info.value
    assert err.line == 2
    assert err.column == 5


def test_expression_fragment_rejects_trailing_tokens() -> None:
    with pytest.raises(ParseError):
        parse_expr_fragment("1 + 2; 3")
