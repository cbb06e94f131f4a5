"""
Lox scanner
Single left-to-right pass turning source text into tokens, always ending with EOF
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, List, Optional, Tuple
import re

from error_handling import LoxLexicalError, as_static_sink


class TokenType(Enum):
    # Single-character tokens
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    LEFT_BRACE = auto()
    RIGHT_BRACE = auto()
    COMMA = auto()
    DOT = auto()
    MINUS = auto()
    PLUS = auto()
    SEMICOLON = auto()
    SLASH = auto()
    STAR = auto()

    # One or two character tokens
    BANG = auto()
    BANG_EQUAL = auto()
    EQUAL = auto()
    EQUAL_EQUAL = auto()
    GREATER = auto()
    GREATER_EQUAL = auto()
    LESS = auto()
    LESS_EQUAL = auto()

    # Literals
    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()

    # Keywords
    AND = auto()
    BREAK = auto()
    CLASS = auto()
    CONTINUE = auto()
    ELSE = auto()
    FALSE = auto()
    FUN = auto()
    FOR = auto()
    IF = auto()
    NIL = auto()
    OR = auto()
    PRINT = auto()
    RETURN = auto()
    SUPER = auto()
    THIS = auto()
    TRUE = auto()
    VAR = auto()
    WHILE = auto()

    EOF = auto()


KEYWORDS = {
    'and': TokenType.AND,
    'break': TokenType.BREAK,
    'class': TokenType.CLASS,
    'continue': TokenType.CONTINUE,
    'else': TokenType.ELSE,
    'false': TokenType.FALSE,
    'for': TokenType.FOR,
    'fun': TokenType.FUN,
    'if': TokenType.IF,
    'nil': TokenType.NIL,
    'or': TokenType.OR,
    'print': TokenType.PRINT,
    'return': TokenType.RETURN,
    'super': TokenType.SUPER,
    'this': TokenType.THIS,
    'true': TokenType.TRUE,
    'var': TokenType.VAR,
    'while': TokenType.WHILE,
}

SINGLE_CHAR_TOKENS = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '-': TokenType.MINUS,
    '+': TokenType.PLUS,
    ';': TokenType.SEMICOLON,
    '*': TokenType.STAR,
}

# Operators that may be followed by '=' (maximal munch)
EQUALS_PAIRS = {
    '!': (TokenType.BANG, TokenType.BANG_EQUAL),
    '=': (TokenType.EQUAL, TokenType.EQUAL_EQUAL),
    '<': (TokenType.LESS, TokenType.LESS_EQUAL),
    '>': (TokenType.GREATER, TokenType.GREATER_EQUAL),
}


@dataclass(frozen=True)
class Token:
    """Lox token with source information"""
    type: TokenType
    lexeme: str
    literal: Any
    line: int
    offset: Optional[int] = None

    def __str__(self) -> str:
        return f"{self.type.name} {self.lexeme} {self.literal}"


class LoxScanner:
    """Lox scanner; lexical errors are recorded and scanning carries on"""

    def __init__(self, source: str, error_sink: Any = None, debug: bool = False):
        self.source = source
        self.debug = debug
        self.tokens: List[Token] = []
        self.errors: List[LoxLexicalError] = []
        self._report = as_static_sink(error_sink)
        self.start = 0
        self.current = 0
        self.line = 1
        self._setup_token_patterns()

    def _setup_token_patterns(self):
        """Setup the literal patterns"""

        # Unsigned decimal, optional single fraction; no exponent, no leading dot
        self.number_pattern = re.compile(r'[0-9]+(?:\.[0-9]+)?')

        self.identifier_pattern = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')

    def scan_tokens(self) -> List[Token]:
        """Scan the whole source"""
        while not self._is_at_end():
            # We are at the beginning of the next lexeme
            self.start = self.current
            self._scan_token()

        self.tokens.append(Token(TokenType.EOF, "", None, self.line, len(self.source)))

        if self.debug:
            print(f"Scanned {len(self.tokens)} tokens, {len(self.errors)} errors")

        return self.tokens

    def _scan_token(self):
        c = self._advance()

        if c in SINGLE_CHAR_TOKENS:
            self._add_token(SINGLE_CHAR_TOKENS[c])
        elif c in EQUALS_PAIRS:
            single, double = EQUALS_PAIRS[c]
            self._add_token(double if self._match('=') else single)
        elif c == '/':
            if self._match('/'):
                # A comment goes until the end of the line
                while self._peek() != '\n' and not self._is_at_end():
                    self._advance()
            else:
                self._add_token(TokenType.SLASH)
        elif c in ' \r\t':
            pass
        elif c == '\n':
            self.line += 1
        elif c == '"':
            self._string()
        elif '0' <= c <= '9':
            self._number()
        elif self.identifier_pattern.match(c):
            self._identifier()
        else:
            self._error("Unexpected character.")

    def _string(self):
        while self._peek() != '"' and not self._is_at_end():
            if self._peek() == '\n':
                self.line += 1
            self._advance()

        if self._is_at_end():
            self._error("Unterminated string.")
            return

        # The closing quote
        self._advance()

        value = self.source[self.start + 1:self.current - 1]
        self._add_token(TokenType.STRING, value)

    def _number(self):
        number_match = self.number_pattern.match(self.source, self.start)
        self.current = number_match.end()
        self._add_token(TokenType.NUMBER, float(number_match.group(0)))

    def _identifier(self):
        id_match = self.identifier_pattern.match(self.source, self.start)
        self.current = id_match.end()
        text = id_match.group(0)
        self._add_token(KEYWORDS.get(text, TokenType.IDENTIFIER))

    def _error(self, message: str):
        error = LoxLexicalError(message, self.line, "", self.start)
        self.errors.append(error)
        self._report(error)

    def _match(self, expected: str) -> bool:
        if self._is_at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def _peek(self) -> str:
        if self._is_at_end():
            return '\0'
        return self.source[self.current]

    def _is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def _advance(self) -> str:
        c = self.source[self.current]
        self.current += 1
        return c

    def _add_token(self, token_type: TokenType, literal: Any = None):
        text = self.source[self.start:self.current]
        self.tokens.append(Token(token_type, text, literal, self.line, self.start))


def scan(source: str, error_sink: Any = None, debug: bool = False) -> Tuple[List[Token], List[LoxLexicalError]]:
    """Scan source text, returning (tokens, lexical errors)"""
    scanner = LoxScanner(source, error_sink, debug)
    tokens = scanner.scan_tokens()
    return tokens, scanner.errors


def format_tokens(tokens: List[Token]) -> str:
    """One token per line, for debugging"""
    return "\n".join(f"{token.line:4d}  {token}" for token in tokens)
