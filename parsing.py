"""
Lox Programming Language Parser
Recursive-descent parser from tokens to statements, with error recovery at declaration boundaries
"""

from typing import Any, List, NamedTuple, Optional, Tuple

from error_handling import LoxParseError, LoxStaticError, as_static_sink
from scanning import Token, TokenType, scan
from syntax_tree import (
    Assign, Binary, Block, Break, Continue, Expr, Expression, Grouping, If,
    Literal, Logical, LoopBody, Print, Stmt, Unary, Var, Variable, While
)


# Keywords that start a new statement; synchronization stops in front of them
STATEMENT_KEYWORDS = {
    TokenType.CLASS,
    TokenType.FUN,
    TokenType.VAR,
    TokenType.FOR,
    TokenType.IF,
    TokenType.WHILE,
    TokenType.PRINT,
    TokenType.RETURN,
}


class ParseOutcome(NamedTuple):
    """Result of one declaration: either a statement or an error marker"""
    statement: Optional[Stmt] = None
    error: Optional[LoxParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RecursiveDescentParser:
    """Grammar rules, lowest to highest precedence:
    assignment -> or -> and -> equality -> comparison -> term -> factor -> unary -> primary
    """

    def __init__(self, tokens: List[Token], error_sink: Any = None, debug: bool = False):
        self.tokens = tokens
        self.current = 0
        self.debug = debug
        self.errors: List[LoxParseError] = []
        self._report = as_static_sink(error_sink)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def parse(self) -> List[Stmt]:
        """program -> declaration* EOF"""
        return self._declarations(until=TokenType.EOF)

    def parse_expression(self) -> Optional[Expr]:
        """A single expression; no recovery, any error fails the whole parse"""
        try:
            expr = self._expression()
            if not self._is_at_end():
                raise self._error(self._peek(), "Expect end of expression.")
            return expr
        except LoxParseError:
            return None

    # ------------------------------------------------------------------
    # Declarations and statements
    # ------------------------------------------------------------------

    def _declarations(self, until: TokenType) -> List[Stmt]:
        statements = []
        while not self._check(until) and not self._is_at_end():
            outcome = self._declaration()
            if outcome.ok:
                statements.append(outcome.statement)
            else:
                self._synchronize()
        return statements

    def _declaration(self) -> ParseOutcome:
        try:
            if self._match(TokenType.VAR):
                statement = self._var_declaration()
            else:
                statement = self._statement()
        except LoxParseError as e:
            return ParseOutcome(error=e)

        if self.debug:
            print(f"Parsed {type(statement).__name__} at line {self._previous().line}")
        return ParseOutcome(statement=statement)

    def _var_declaration(self) -> Stmt:
        name = self._consume(TokenType.IDENTIFIER, "Expect variable name.")

        initializer = None
        if self._match(TokenType.EQUAL):
            initializer = self._expression()

        self._consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return Var(name, initializer)

    def _statement(self) -> Stmt:
        if self._match(TokenType.IF):
            return self._if_statement()
        if self._match(TokenType.WHILE):
            return self._while_statement()
        if self._match(TokenType.FOR):
            return self._for_statement()
        if self._match(TokenType.PRINT):
            return self._print_statement()
        if self._match(TokenType.BREAK):
            keyword = self._previous()
            self._consume(TokenType.SEMICOLON, "Expect ';' after 'break'.")
            return Break(keyword)
        if self._match(TokenType.CONTINUE):
            keyword = self._previous()
            self._consume(TokenType.SEMICOLON, "Expect ';' after 'continue'.")
            return Continue(keyword)
        if self._match(TokenType.LEFT_BRACE):
            return Block(self._block())

        return self._expression_statement()

    def _if_statement(self) -> Stmt:
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")

        then_branch = self._statement()
        else_branch = None
        if self._match(TokenType.ELSE):
            else_branch = self._statement()

        return If(condition, then_branch, else_branch)

    def _while_statement(self) -> Stmt:
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        body = self._statement()

        return While(condition, body)

    def _for_statement(self) -> Stmt:
        """Desugared into an optional initializer block around a while loop"""
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        if self._match(TokenType.SEMICOLON):
            initializer = None
        elif self._match(TokenType.VAR):
            initializer = self._var_declaration()
        else:
            initializer = self._expression_statement()

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self._check(TokenType.RIGHT_PAREN):
            increment = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self._statement()

        # The increment runs after the body, including after 'continue'
        if increment is not None:
            body = LoopBody([body, Expression(increment)])

        if condition is None:
            condition = Literal(True)
        body = While(condition, body)

        if initializer is not None:
            body = Block([initializer, body])

        return body

    def _print_statement(self) -> Stmt:
        value = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return Print(value)

    def _expression_statement(self) -> Stmt:
        expr = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return Expression(expr)

    def _block(self) -> List[Stmt]:
        statements = self._declarations(until=TokenType.RIGHT_BRACE)
        self._consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _expression(self) -> Expr:
        return self._assignment()

    def _assignment(self) -> Expr:
        expr = self._or()

        if self._match(TokenType.EQUAL):
            equals = self._previous()
            value = self._assignment()

            if isinstance(expr, Variable):
                return Assign(expr.name, value)

            # Reported, but the parse carries on with the left-hand side
            self._error(equals, "Invalid assignment target.")

        return expr

    def _or(self) -> Expr:
        expr = self._and()

        while self._match(TokenType.OR):
            operator = self._previous()
            right = self._and()
            expr = Logical(expr, operator, right)

        return expr

    def _and(self) -> Expr:
        expr = self._equality()

        while self._match(TokenType.AND):
            operator = self._previous()
            right = self._equality()
            expr = Logical(expr, operator, right)

        return expr

    def _equality(self) -> Expr:
        return self._binary_level(self._comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def _comparison(self) -> Expr:
        return self._binary_level(
            self._term,
            TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL
        )

    def _term(self) -> Expr:
        return self._binary_level(self._factor, TokenType.MINUS, TokenType.PLUS)

    def _factor(self) -> Expr:
        return self._binary_level(self._unary, TokenType.SLASH, TokenType.STAR)

    def _binary_level(self, operand, *operators: TokenType) -> Expr:
        """Left-associative loop shared by every binary precedence level"""
        expr = operand()

        while self._match(*operators):
            operator = self._previous()
            right = operand()
            expr = Binary(expr, operator, right)

        return expr

    def _unary(self) -> Expr:
        if self._match(TokenType.BANG, TokenType.MINUS):
            operator = self._previous()
            right = self._unary()
            return Unary(operator, right)

        return self._primary()

    def _primary(self) -> Expr:
        if self._match(TokenType.FALSE):
            return Literal(False)
        if self._match(TokenType.TRUE):
            return Literal(True)
        if self._match(TokenType.NIL):
            return Literal(None)

        if self._match(TokenType.NUMBER, TokenType.STRING):
            return Literal(self._previous().literal)

        if self._match(TokenType.IDENTIFIER):
            return Variable(self._previous())

        if self._match(TokenType.LEFT_PAREN):
            expr = self._expression()
            self._consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)

        raise self._error(self._peek(), "Expect expression.")

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def _match(self, *types: TokenType) -> bool:
        for token_type in types:
            if self._check(token_type):
                self._advance()
                return True
        return False

    def _consume(self, token_type: TokenType, message: str) -> Token:
        if self._check(token_type):
            return self._advance()

        raise self._error(self._peek(), message)

    def _check(self, token_type: TokenType) -> bool:
        if self._is_at_end():
            return token_type == TokenType.EOF
        return self._peek().type == token_type

    def _advance(self) -> Token:
        if not self._is_at_end():
            self.current += 1
        return self._previous()

    def _is_at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _previous(self) -> Token:
        return self.tokens[self.current - 1]

    def _error(self, token: Token, message: str) -> LoxParseError:
        error = LoxParseError(message, token)
        self.errors.append(error)
        self._report(error)
        return error

    def _synchronize(self):
        """Discard tokens until a statement boundary"""
        self._advance()

        while not self._is_at_end():
            if self._previous().type == TokenType.SEMICOLON:
                return
            if self._peek().type in STATEMENT_KEYWORDS:
                return
            self._advance()


# ============================================================================
# FUNCTIONAL ENTRY POINTS
# ============================================================================

def parse(tokens: List[Token], error_sink: Any = None,
          debug: bool = False) -> Tuple[Optional[List[Stmt]], List[LoxParseError]]:
    """Parse a token sequence; statements are None when any syntax error was reported"""
    parser = RecursiveDescentParser(tokens, error_sink, debug)
    statements = parser.parse()

    if debug:
        print(f"Parsed {len(statements)} statements, {len(parser.errors)} errors")

    if parser.errors:
        return None, parser.errors
    return statements, []


def parse_expression(tokens: List[Token], error_sink: Any = None,
                     debug: bool = False) -> Tuple[Optional[Expr], List[LoxParseError]]:
    """Parse a lone expression; no partial result on failure"""
    parser = RecursiveDescentParser(tokens, error_sink, debug)
    expr = parser.parse_expression()

    if parser.errors:
        return None, parser.errors
    return expr, []


# ============================================================================
# FRONT END
# ============================================================================

class LoxParser:
    """Scan and parse source text in one step"""

    def __init__(self, error_sink: Any = None, debug: bool = False):
        self.error_sink = error_sink
        self.debug = debug
        self.errors: List[LoxStaticError] = []

    def tokenize(self, text: str) -> List[Token]:
        tokens, lexical_errors = scan(text, self.error_sink, self.debug)
        self.errors = list(lexical_errors)
        return tokens

    def parse_string(self, text: str) -> Optional[List[Stmt]]:
        """Statements of text, or None when scanning or parsing reported errors"""
        tokens = self.tokenize(text)
        statements, syntax_errors = parse(tokens, self.error_sink, self.debug)
        self.errors.extend(syntax_errors)

        if self.errors:
            return None
        return statements

    def parse_file(self, filepath: str) -> Optional[List[Stmt]]:
        with open(filepath, 'r', encoding='utf-8') as f:
            return self.parse_string(f.read())

    def parse_expression(self, text: str) -> Optional[Expr]:
        tokens = self.tokenize(text)
        if self.errors:
            return None
        expr, syntax_errors = parse_expression(tokens, self.error_sink, self.debug)
        self.errors.extend(syntax_errors)
        return expr

    @property
    def had_error(self) -> bool:
        return bool(self.errors)


def create_parser(error_sink: Any = None, debug: bool = False) -> LoxParser:
    """Create a Lox parser"""
    return LoxParser(error_sink, debug=debug)


def create_debug_parser(error_sink: Any = None) -> LoxParser:
    """Create a Lox parser with debug enabled"""
    return LoxParser(error_sink, debug=True)
