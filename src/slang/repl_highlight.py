"""prompt_toolkit lexer for live slang syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import Lexer as SlLexer, LexError
from .token_types import TT, Tok

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "boolean": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "identifier": "",
    "function": "bold ansiyellow",
    "operator": "",
    "punctuation": "",
    "comment": "italic ansigray",
    "error": "bold ansired",
}

# Token type → highlight group.
_TT_GROUP = {
    TT.LET: "keyword",
    TT.IF: "keyword",
    TT.ELIF: "keyword",
    TT.ELSE: "keyword",
    TT.WHILE: "keyword",
    TT.FOR: "keyword",
    TT.FN: "keyword",
    TT.STRUCT: "keyword",
    TT.BREAK: "keyword",
    TT.PRINT: "keyword",
    TT.TRUE: "boolean",
    TT.FALSE: "boolean",
    TT.NUMBER: "number",
    TT.STRING: "string",
    TT.IDENT: "identifier",
    TT.PLUS: "operator",
    TT.MINUS: "operator",
    TT.STAR: "operator",
    TT.SLASH: "operator",
    TT.MOD: "operator",
    TT.EQ: "operator",
    TT.NEQ: "operator",
    TT.LT: "operator",
    TT.LTE: "operator",
    TT.GT: "operator",
    TT.GTE: "operator",
    TT.AND: "operator",
    TT.OR: "operator",
    TT.NEG: "operator",
    TT.ASSIGN: "operator",
    TT.PLUSEQ: "operator",
    TT.MINUSEQ: "operator",
    TT.LPAR: "punctuation",
    TT.RPAR: "punctuation",
    TT.LSQB: "punctuation",
    TT.RSQB: "punctuation",
    TT.LBRACE: "punctuation",
    TT.RBRACE: "punctuation",
    TT.DOT: "punctuation",
    TT.COMMA: "punctuation",
    TT.SEMI: "punctuation",
    TT.COMMENT: "comment",
}

_LAYOUT = {TT.NEWLINE, TT.EOF}


def _is_call_head(tokens: list[Tok], idx: int) -> bool:
    nxt = idx + 1
    return nxt < len(tokens) and tokens[nxt].type == TT.LPAR


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    try:
        tokens = SlLexer(text, emit_comments=True).tokenize()
    except LexError:
        # Half-typed input (an open string, a stray character) shows as error.
        return [(GROUP_STYLE["error"], text)]

    result: StyleAndTextTuples = []
    pos = 0

    for i, tok in enumerate(tokens):
        if tok.type in _LAYOUT or not tok.text:
            continue

        # Columns are 1-based; the raw slice is exactly what was typed.
        idx = tok.column - 1
        if idx < pos:
            continue

        # Unstyled gap before token.
        if idx > pos:
            result.append(("", text[pos:idx]))

        group = _TT_GROUP.get(tok.type, "")
        if tok.type == TT.IDENT and _is_call_head(tokens, i):
            group = "function"
        result.append((GROUP_STYLE.get(group, ""), tok.text))
        pos = idx + len(tok.text)

    # Trailing unstyled text.
    if pos < len(text):
        result.append(("", text[pos:]))

    return result if result else [("", text)]


class SlangLexer(Lexer):
    """prompt_toolkit Lexer that highlights slang source using the RD lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
