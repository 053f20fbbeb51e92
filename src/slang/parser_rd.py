"""
Recursive Descent Parser for slang

Structure:
- Lexer: Token stream from source (whole buffer, see lexer_rd)
- Parser: Recursive descent for statements, Pratt parsing for expressions
- AST: lark Tree nodes labelled by node kind
"""

from typing import Dict, List, Optional, Tuple

from lark import Tree, Token

from .token_types import TT, Tok
from .tree import Node, set_line
from .types import SlBool, SlFloat, SlInt, SlString

# ============================================================================
# Binding powers
# ============================================================================

# (left, right) binding power of each infix operator. Every pair has
# right = left + 1, which makes all of them left-associative.
INFIX_BP: Dict[TT, Tuple[int, int]] = {
    TT.EQ: (1, 2),
    TT.NEQ: (1, 2),
    TT.LT: (1, 2),
    TT.GT: (1, 2),
    TT.LTE: (1, 2),
    TT.GTE: (1, 2),
    TT.AND: (3, 4),
    TT.OR: (3, 4),
    TT.MOD: (5, 6),
    TT.PLUS: (7, 8),
    TT.MINUS: (7, 8),
    TT.PLUSEQ: (7, 8),
    TT.MINUSEQ: (7, 8),
    TT.STAR: (9, 10),
    TT.SLASH: (9, 10),
    TT.DOT: (11, 12),
}

PREFIX_BP: Dict[TT, int] = {
    TT.MINUS: 13,
    TT.NEG: 15,
}

POSTFIX_BP: Dict[TT, int] = {
    TT.LSQB: 17,
}

# Tokens that end an expression without being consumed by it
TERMINATORS = {
    TT.EOF,
    TT.NEWLINE,
    TT.SEMI,
    TT.COMMA,
    TT.RPAR,
    TT.RSQB,
    TT.RBRACE,
}

# `and` / `or` keywords spell the same operators as && / ||
_OP_SPELLING = {
    TT.AND: '&&',
    TT.OR: '||',
}

# ============================================================================
# Parser
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None):
        self.message = message
        self.token = token
        self.line = token.line if token else None
        self.column = token.column if token else None
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )

class Parser:
    """
    Recursive descent parser for slang.

    Expression precedence (lowest to highest):
    1. compare (==, !=, <, >, <=, >=)
    2. logical (&&, ||)
    3. modulo (%)
    4. add (+, -, +=, -=)
    5. mul (*, /)
    6. member access (.)
    7. prefix -
    8. prefix !
    9. postfix index ([...])
    """

    def __init__(self, tokens: List[Tok]):
        self.tokens = tokens
        self.pos = 0
        self.current = tokens[0] if tokens else Tok(TT.EOF, None, 0, 0)
        self.in_for_header = False

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token"""
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self._eof()

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        self.pos += 1
        if self.pos < len(self.tokens):
            self.current = self.tokens[self.pos]
        else:
            self.current = self._eof()
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: Optional[str] = None) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            msg = message or f"Expected {token_type.name}, got {self.current.type.name}"
            raise ParseError(msg, self.current)
        return self.advance()

    def skip_newlines(self) -> None:
        while self.match(TT.NEWLINE):
            pass

    def _eof(self) -> Tok:
        last = self.tokens[-1] if self.tokens else None
        return Tok(TT.EOF, None, last.line if last else 0, last.column if last else 0)

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Tree:
        """Parse entire program into a single block"""
        program = self.parse_block()

        if not self.check(TT.EOF):
            raise ParseError("Unmatched '}'", self.current)

        return program

    def parse_block(self) -> Tree:
        """Parse statements until end of input or a closing brace (not consumed)"""
        stmts = []

        while True:
            stmt = self.parse_statement()
            if stmt is None:
                break
            stmts.append(stmt)

        return Tree('block', stmts)

    def parse_braced_block(self) -> Tree:
        """Parse `{ ... }`"""
        self.skip_newlines()
        self.expect(TT.LBRACE, f"Expected '{{', got {self.current.type.name}")
        block = self.parse_block()
        self.expect(TT.RBRACE, f"Expected '}}', got {self.current.type.name}")
        return block

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_statement(self) -> Optional[Tree]:
        """
        Parse a single statement, or return None at end of input or at a
        closing brace.

        Statements include:
        - Blocks
        - print(expr)
        - Declarations (let, fn) and reassignments (=, +=, -=)
        - Control flow (if, while, for, break)
        - Expressions
        """
        # Separators
        while self.match(TT.NEWLINE, TT.SEMI):
            pass

        if self.check(TT.EOF, TT.RBRACE):
            return None

        tok = self.current

        match tok.type:
            case TT.LBRACE:
                stmt = self.parse_braced_block()
            case TT.PRINT:
                stmt = self.parse_print_stmt()
            case TT.LET:
                stmt = self.parse_let_stmt()
            case TT.IDENT if self.peek(1).type in (TT.ASSIGN, TT.PLUSEQ, TT.MINUSEQ):
                stmt = self.parse_assign_stmt()
            case TT.IF:
                stmt = self.parse_if_stmt()
            case TT.ELIF | TT.ELSE:
                raise ParseError(f"'{tok.value}' without a preceding if", tok)
            case TT.WHILE:
                stmt = self.parse_while_stmt()
            case TT.FOR:
                stmt = self.parse_for_stmt()
            case TT.BREAK:
                self.advance()
                stmt = Tree('breakstmt', [])
            case TT.FN if self.peek(1).type == TT.IDENT:
                stmt = self.parse_fn_stmt()
            case TT.STRUCT:
                raise ParseError("'struct' declarations are not supported", tok)
            case _:
                stmt = Tree('exprstmt', [self.parse_expr()])

        return set_line(stmt, tok.line)

    def parse_print_stmt(self) -> Tree:
        """Parse print statement: print(expr) followed by a terminator"""
        self.expect(TT.PRINT)
        self.expect(TT.LPAR, "Expected '(' after print")
        expr = self.parse_expr()
        self.expect(TT.RPAR, "Expected ')' to close print")

        # Inside a for header the increment clause is closed by `)`.
        ends = (TT.NEWLINE, TT.SEMI, TT.EOF, TT.RBRACE)
        if self.in_for_header:
            ends += (TT.RPAR,)

        if not self.check(*ends):
            raise ParseError("Expected end of statement after print(...)", self.current)

        return Tree('printstmt', [expr])

    def parse_let_stmt(self) -> Tree:
        """Parse new binding: let name = expr"""
        let_tok = self.expect(TT.LET)
        name = self.expect(TT.IDENT, "Expected identifier after let")
        self.expect(TT.ASSIGN, "Expected '=' in let declaration")
        rhs = self.parse_expr()

        return Tree('declaration', [
            _ident(name),
            Token('LET', let_tok.value),
            rhs,
        ])

    def parse_assign_stmt(self) -> Tree:
        """Parse reassignment: name = expr | name += expr | name -= expr"""
        name = self.expect(TT.IDENT)
        op = self.advance()
        rhs = self.parse_expr()

        return Tree('declaration', [
            _ident(name),
            Token(op.type.name, op.value),
            rhs,
        ])

    def parse_if_stmt(self) -> Tree:
        """
        Parse if statement:
        if (expr) {body} [elif (expr) {body}]* [else {body}]
        """
        if_tok = self.advance()  # IF, or ELIF for a chained branch
        cond = self.parse_paren_expr(if_tok.value)
        then_block = self.parse_braced_block()

        self.skip_newlines()
        if self.check(TT.ELIF):
            nested = self.parse_if_stmt()
            else_block = Tree('block', [nested])
        elif self.match(TT.ELSE):
            else_block = self.parse_braced_block()
        else:
            else_block = Tree('block', [])

        return set_line(Tree('ifstmt', [cond, then_block, else_block]), if_tok.line)

    def parse_while_stmt(self) -> Tree:
        """Parse while loop: while (expr) {body}"""
        self.expect(TT.WHILE)
        cond = self.parse_paren_expr("while")
        body = self.parse_braced_block()
        return Tree('whilestmt', [cond, body])

    def parse_for_stmt(self) -> Tree:
        """
        Parse for loop and desugar it:

            for (init; cond; incr) {body}
        =>
            { init; while (cond) { body; incr } }

        The outer block scopes the loop variable to the loop; incr runs as the
        last statement of each iteration's scope. A missing cond is `true`.
        """
        for_tok = self.expect(TT.FOR)
        self.expect(TT.LPAR, "Expected '(' after for")

        init = None
        if not self.check(TT.SEMI):
            init = self._parse_for_clause()
        self.expect(TT.SEMI, "Expected ';' after for initializer")

        cond: Node = Tree('literal', [SlBool(True)])
        if not self.check(TT.SEMI):
            cond = self.parse_expr()
        self.expect(TT.SEMI, "Expected ';' after for condition")

        incr = None
        if not self.check(TT.RPAR):
            incr = self._parse_for_clause()
        self.expect(TT.RPAR, "Expected ')' to close for header")

        body = self.parse_braced_block()
        if incr is not None:
            body = Tree('block', body.children + [incr])

        loop = set_line(Tree('whilestmt', [cond, body]), for_tok.line)
        stmts = [init, loop] if init is not None else [loop]
        return Tree('block', stmts)

    def _parse_for_clause(self) -> Optional[Tree]:
        saved = self.in_for_header
        self.in_for_header = True
        try:
            return self.parse_statement()
        finally:
            self.in_for_header = saved

    def parse_fn_stmt(self) -> Tree:
        """Parse named function: fn name(params) {body} => let name = fn(...)"""
        fn_tok = self.expect(TT.FN)
        name = self.expect(TT.IDENT)
        params = self.parse_param_list()
        body = self.parse_braced_block()

        fn_value = set_line(Tree('fn', [params, body]), fn_tok.line)
        return Tree('declaration', [
            _ident(name),
            Token('LET', 'let'),
            fn_value,
        ])

    def parse_paren_expr(self, context: str) -> Node:
        self.expect(TT.LPAR, f"Expected '(' after {context}")
        expr = self.parse_expr()
        self.expect(TT.RPAR, f"Expected ')' after {context} condition")
        return expr

    # ========================================================================
    # Expressions (Pratt)
    # ========================================================================

    def parse_expr(self) -> Node:
        return self.parse_expr_bp(0)

    def parse_expr_bp(self, min_bp: int) -> Node:
        """
        Precedence climbing: parse an operand, then keep folding operators
        into it while their left binding power is at least min_bp.
        """
        lhs = self.parse_operand()

        while True:
            tok = self.current

            if tok.type in TERMINATORS:
                break

            postfix_bp = POSTFIX_BP.get(tok.type)
            if postfix_bp is not None:
                if postfix_bp < min_bp:
                    break

                self.advance()
                index = self.parse_expr()
                self.expect(TT.RSQB, "Expected ']' after index")
                lhs = set_line(Tree('index', [lhs, index]), tok.line)
                continue

            infix_bp = INFIX_BP.get(tok.type)
            if infix_bp is None:
                raise ParseError(f"Unexpected token after expression: {tok.type.name}", tok)

            left_bp, right_bp = infix_bp
            if left_bp < min_bp:
                break

            self.advance()
            rhs = self.parse_expr_bp(right_bp)
            lhs = set_line(Tree('binop', [_op_token(tok), lhs, rhs]), tok.line)

        return lhs

    def parse_operand(self) -> Node:
        """Parse whatever may stand in operand position"""
        tok = self.current

        match tok.type:
            case TT.NUMBER:
                self.advance()
                if isinstance(tok.value, int):
                    return Tree('literal', [SlInt(tok.value)])
                return Tree('literal', [SlFloat(tok.value)])
            case TT.STRING:
                self.advance()
                return Tree('literal', [SlString(tok.value)])
            case TT.TRUE | TT.FALSE:
                self.advance()
                return Tree('literal', [SlBool(tok.type == TT.TRUE)])
            case TT.IDENT:
                self.advance()
                if self.check(TT.LPAR):
                    args = self.parse_arg_list()
                    return set_line(Tree('call', [_ident(tok), args]), tok.line)
                return _ident(tok)
            case TT.LPAR:
                self.advance()
                inner = self.parse_expr()
                if not self.check(TT.RPAR):
                    raise ParseError("Unbalanced '('", tok)
                self.advance()
                return inner
            case TT.LSQB:
                return self.parse_array_literal()
            case TT.FN:
                return self.parse_anonymous_fn()
            case TT.MINUS | TT.NEG:
                self.advance()
                operand = self.parse_expr_bp(PREFIX_BP[tok.type])
                return set_line(Tree('unary', [_op_token(tok), operand]), tok.line)
            case TT.EOF:
                raise ParseError("Unexpected end of input in expression", tok)
            case _:
                raise ParseError(f"Unexpected token in expression: {tok.type.name}", tok)

    # ========================================================================
    # Helper Parsers
    # ========================================================================

    def parse_array_literal(self) -> Tree:
        """Parse `[a, b, ...]`; newlines and a trailing comma are allowed"""
        self.expect(TT.LSQB)
        items = []

        self.skip_newlines()
        while not self.check(TT.RSQB, TT.EOF):
            items.append(self.parse_expr())
            self.skip_newlines()

            if not self.match(TT.COMMA):
                break
            self.skip_newlines()

        self.expect(TT.RSQB, "Expected ']' to close array literal")
        return Tree('array', items)

    def parse_arg_list(self) -> Tree:
        """Parse call arguments `(a, b, ...)`"""
        self.expect(TT.LPAR)
        args = []

        self.skip_newlines()
        while not self.check(TT.RPAR, TT.EOF):
            args.append(self.parse_expr())
            self.skip_newlines()

            if not self.match(TT.COMMA):
                break
            self.skip_newlines()

        self.expect(TT.RPAR, "Expected ')' to close argument list")
        return Tree('args', args)

    def parse_param_list(self) -> Tree:
        """Parse function parameter list `(a, b, ...)`"""
        self.expect(TT.LPAR, "Expected '(' before parameters")
        params = []

        while not self.check(TT.RPAR, TT.EOF):
            param = self.expect(TT.IDENT, "Expected parameter name")
            params.append(_ident(param))

            if not self.match(TT.COMMA):
                break

        self.expect(TT.RPAR, "Expected ')' after parameters")
        return Tree('params', params)

    def parse_anonymous_fn(self) -> Tree:
        """Parse fn literal in expression position: fn (params) {body}"""
        fn_tok = self.expect(TT.FN)
        params = self.parse_param_list()
        body = self.parse_braced_block()
        return set_line(Tree('fn', [params, body]), fn_tok.line)

def _ident(tok: Tok) -> Token:
    return Token('IDENT', tok.value, line=tok.line, column=tok.column)

def _op_token(tok: Tok) -> Token:
    return Token(tok.type.name, _OP_SPELLING.get(tok.type, tok.value))

# ============================================================================
# Entry points
# ============================================================================

def parse_tokens(tokens: List[Tok]) -> Tree:
    return Parser(tokens).parse()

def parse_source(source: str) -> Tree:
    """
    Parse slang source code to AST.

    The whole buffer is tokenized before parsing starts, so a lexical error
    anywhere aborts before any tree is built.
    """
    from .lexer_rd import tokenize

    tokens = tokenize(source)
    return parse_tokens(tokens)

def parse_expr_fragment(source: str) -> Node:
    """
    Parse a standalone expression fragment.
    """
    from .lexer_rd import tokenize

    tokens = tokenize(source)
    parser = Parser(tokens)
    expr = parser.parse_expr()

    # Ensure we've consumed the entire fragment
    parser.skip_newlines()
    if not parser.check(TT.EOF):
        raise ParseError("Unexpected tokens after expression fragment", parser.current)
    return expr
