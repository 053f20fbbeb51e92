"""
Lexer for slang

Tokenizes slang source code into a stream of tokens.

Features:
- Single-pass tokenization of the whole buffer before any parsing
- Newlines are kept as NEWLINE tokens (statement separators)
- Position tracking (line, column)
- Number literals resolved to int/float, string escapes decoded
"""

from typing import List

from .token_types import TT, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    slang lexer.

    Any character that does not start a token aborts with LexError, so a
    buffer either tokenizes completely or not at all.
    """

    # Keyword mapping
    KEYWORDS = {
        'let': TT.LET,
        'if': TT.IF,
        'elif': TT.ELIF,
        'else': TT.ELSE,
        'while': TT.WHILE,
        'for': TT.FOR,
        'fn': TT.FN,
        'struct': TT.STRUCT,
        'break': TT.BREAK,
        'print': TT.PRINT,
        'true': TT.TRUE,
        'false': TT.FALSE,
        'and': TT.AND,
        'or': TT.OR,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Two-character operators
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),
        ('&&', TT.AND),
        ('||', TT.OR),
        ('+=', TT.PLUSEQ),
        ('-=', TT.MINUSEQ),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('%', TT.MOD),
        ('<', TT.LT),
        ('>', TT.GT),
        ('!', TT.NEG),
        ('=', TT.ASSIGN),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        ('.', TT.DOT),
        (',', TT.COMMA),
        (';', TT.SEMI),
    ]

    ESCAPES = {
        'n': '\n',
        't': '\t',
        'r': '\r',
        '"': '"',
        '\\': '\\',
        '0': '\0',
    }

    def __init__(self, source: str, emit_comments: bool = False):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Tok] = []
        self.emit_comments = emit_comments

        # Start of the token being scanned
        self.start = 0
        self.start_line = 1
        self.start_column = 1

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while self.pos < len(self.source):
            self.scan_token()

        self.mark_start()
        self.emit(TT.EOF, None)
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        # Skip whitespace (not newlines)
        if self.skip_whitespace():
            return

        self.mark_start()

        # Comments
        if self.peek() == '#':
            self.skip_comment()
            return

        # Newlines
        if self.peek() in ('\n', '\r'):
            self.scan_newline()
            return

        # String literals
        if self.peek() == '"':
            self.scan_string()
            return

        # Numbers
        if _is_digit(self.peek()):
            self.scan_number()
            return

        # Identifiers and keywords
        if _is_ident_start(self.peek()):
            self.scan_identifier()
            return

        # Operators and punctuation
        self.scan_operator()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_newline(self):
        """Scan newline character"""
        if self.peek() == '\r' and self.peek(1) == '\n':
            self.advance(2)  # consume CRLF
        else:
            self.advance()

        self.emit(TT.NEWLINE, '\n')
        self.line += 1
        self.column = 1

    def scan_string(self):
        """Scan string literal: "..." with backslash escapes"""
        self.advance()  # Opening quote
        value = ''

        while self.pos < len(self.source) and self.peek() != '"':
            ch = self.advance()

            if ch == '\\':
                if self.pos >= len(self.source):
                    break
                esc = self.advance()
                if esc not in self.ESCAPES:
                    raise LexError(
                        f"Unknown escape '\\{esc}' at line {self.line}, col {self.column - 2}"
                    )
                value += self.ESCAPES[esc]
                continue

            if ch == '\n':
                self.line += 1
                self.column = 1
            value += ch

        if self.pos >= len(self.source):
            raise LexError(f"Unterminated string at line {self.start_line}")

        self.advance()  # Closing quote
        self.emit(TT.STRING, value)

    def scan_number(self):
        """Scan number literal; digits and dots, resolved to int or float"""
        text = ''

        while _is_digit(self.peek()) or self.peek() == '.':
            # A dot not followed by a digit ends the number, so `1.` is not
            # swallowed in front of member access.
            if self.peek() == '.' and not _is_digit(self.peek(1)):
                break
            text += self.advance()

        if text.count('.') == 0:
            self.emit(TT.NUMBER, int(text))
            return

        if text.count('.') > 1:
            raise LexError(
                f"Malformed number '{text}' at line {self.start_line}, col {self.start_column}"
            )

        self.emit(TT.NUMBER, float(text))

    def scan_identifier(self):
        """Scan identifier or keyword"""
        value = ''

        while _is_ident_start(self.peek()) or _is_digit(self.peek()):
            value += self.advance()

        # Check if keyword
        token_type = self.KEYWORDS.get(value, TT.IDENT)
        self.emit(token_type, value)

    def scan_operator(self):
        """Scan operators and punctuation"""
        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                self.emit(op_type, op_str)
                return

        ch = self.peek()
        raise LexError(f"Unexpected character '{ch}' at line {self.line}, col {self.column}")

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        result = ''
        for _ in range(n):
            ch = self.source[self.pos] if self.pos < len(self.source) else '\0'
            result += ch
            self.pos += 1
            self.column += 1
        return result

    def skip_whitespace(self) -> bool:
        """Skip whitespace (not newlines), return True if any skipped"""
        skipped = False
        while self.peek() in (' ', '\t'):
            self.advance()
            skipped = True
        return skipped

    def skip_comment(self):
        """Skip comment until end of line"""
        while self.peek() not in ('\n', '\r', '\0'):
            self.advance()

        if self.emit_comments:
            self.emit(TT.COMMENT, self.source[self.start:self.pos])

    def mark_start(self):
        self.start = self.pos
        self.start_line = self.line
        self.start_column = self.column

    def emit(self, token_type: TT, value):
        """Emit a token positioned at the start of its lexeme"""
        tok = Tok(
            type=token_type,
            value=value,
            line=self.start_line,
            column=self.start_column,
            text=self.source[self.start:self.pos],
        )
        self.tokens.append(tok)

# Numbers and names are ASCII only; int() rejects Unicode digits such as superscripts.
def _is_digit(ch: str) -> bool:
    return ch.isascii() and ch.isdigit()

def _is_ident_start(ch: str) -> bool:
    return ch == '_' or (ch.isascii() and ch.isalpha())

class LexError(Exception):
    """Lexical analysis error"""
    pass

def tokenize(source: str, emit_comments: bool = False) -> List[Tok]:
    """Convenience function to tokenize source"""
    lexer = Lexer(source, emit_comments=emit_comments)
    return lexer.tokenize()
