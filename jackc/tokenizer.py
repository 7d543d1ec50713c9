"""
Lexical analysis for Jack source.

The tokenizer produces one token per call to ``next()``; ``TokenStream`` puts a
fixed two-token lookahead window in front of it for the recursive-descent
parsers.
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import Deque, Iterable, Iterator, List, Optional

from jackc.errors import JackSyntaxError, LexicalError

# =============================================================================
# Token Types
# =============================================================================


class TokenType(Enum):
    KEYWORD = auto()
    SYMBOL = auto()
    INT_CONST = auto()
    STRING_CONST = auto()
    IDENTIFIER = auto()
    EOF = auto()


class Keyword(Enum):
    CLASS = "class"
    CONSTRUCTOR = "constructor"
    FUNCTION = "function"
    METHOD = "method"
    FIELD = "field"
    STATIC = "static"
    VAR = "var"
    INT = "int"
    CHAR = "char"
    BOOLEAN = "boolean"
    VOID = "void"
    TRUE = "true"
    FALSE = "false"
    NULL = "null"
    THIS = "this"
    LET = "let"
    DO = "do"
    IF = "if"
    ELSE = "else"
    WHILE = "while"
    RETURN = "return"


class Punct(Enum):
    LBRACE = "{"
    RBRACE = "}"
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    DOT = "."
    COMMA = ","
    SEMICOLON = ";"
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    AMP = "&"
    PIPE = "|"
    LT = "<"
    GT = ">"
    EQ = "="
    TILDE = "~"


KEYWORDS = {kw.value: kw for kw in Keyword}
SYMBOLS = {p.value: p for p in Punct}

MAX_INT_DIGITS = 5


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    line: int = 0
    column: int = 0
    keyword: Optional[Keyword] = None
    punct: Optional[Punct] = None

    def is_keyword(self, *keywords: Keyword) -> bool:
        return self.keyword is not None and self.keyword in keywords

    def is_symbol(self, *puncts: Punct) -> bool:
        return self.punct is not None and self.punct in puncts

    def describe(self) -> str:
        if self.type == TokenType.EOF:
            return "end of input"
        return f"'{self.value}'"


# =============================================================================
# Tokenizer
# =============================================================================


class JackTokenizer:
    """Lexical analyzer for Jack language."""

    def __init__(self, source: str, filename: str = ""):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next()
            if token.type == TokenType.EOF:
                return
            yield token

    def tokenize(self) -> List[Token]:
        return list(self)

    def next(self) -> Token:
        """Return the next token, or the EOF sentinel when the source is exhausted."""
        self._skip_whitespace_and_comments()
        if self.pos >= len(self.source):
            return Token(TokenType.EOF, "", self.line, self.column)
        return self._next_token()

    def _consume(self, count: int) -> str:
        text = self.source[self.pos : self.pos + count]
        for ch in text:
            if ch == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        self.pos += count
        return text

    def _skip_whitespace_and_comments(self):
        while self.pos < len(self.source):
            if self.source[self.pos].isspace():
                self._consume(1)
            elif self.source.startswith("//", self.pos):
                end = self.source.find("\n", self.pos)
                self._consume((len(self.source) if end == -1 else end) - self.pos)
            elif self.source.startswith("/*", self.pos):
                end = self.source.find("*/", self.pos + 2)
                if end == -1:
                    raise LexicalError(
                        "unterminated comment", self.filename, self.line, self.column
                    )
                self._consume(end + 2 - self.pos)
            else:
                break

    def _scan(self, accept) -> int:
        end = self.pos
        while end < len(self.source) and accept(self.source[end]):
            end += 1
        return end - self.pos

    def _next_token(self) -> Token:
        ch = self.source[self.pos]
        line, column = self.line, self.column

        # Identifier-shaped runs are read whole so "field2" never splits on "field"
        if ch.isascii() and (ch.isalpha() or ch == "_"):
            length = self._scan(lambda c: c.isascii() and (c.isalnum() or c == "_"))
            value = self._consume(length)
            if value in KEYWORDS:
                return Token(
                    TokenType.KEYWORD, value, line, column, keyword=KEYWORDS[value]
                )
            return Token(TokenType.IDENTIFIER, value, line, column)

        if ch in SYMBOLS:
            self._consume(1)
            return Token(TokenType.SYMBOL, ch, line, column, punct=SYMBOLS[ch])

        if "0" <= ch <= "9":
            length = min(self._scan(lambda c: "0" <= c <= "9"), MAX_INT_DIGITS)
            return Token(TokenType.INT_CONST, self._consume(length), line, column)

        if ch == '"':
            end = self.pos + 1
            while end < len(self.source) and self.source[end] not in '"\n':
                end += 1
            if end >= len(self.source) or self.source[end] != '"':
                raise LexicalError("unterminated string constant", self.filename, line, column)
            value = self._consume(end + 1 - self.pos)[1:-1]
            return Token(TokenType.STRING_CONST, value, line, column)

        raise LexicalError(f"unexpected character {ch!r}", self.filename, line, column)


# =============================================================================
# Lookahead stream
# =============================================================================


class TokenStream:
    """Fixed-depth lookahead over a token source.

    ``peek(0)`` is the current token and ``peek(1)`` the one after it. Once the
    source runs dry every further peek returns the EOF sentinel.
    """

    DEPTH = 2

    def __init__(self, tokens: Iterable[Token], filename: str = ""):
        self._source = iter(tokens)
        self._buffer: Deque[Token] = deque()
        self._last = Token(TokenType.EOF, "", 1, 1)
        self.filename = filename

    @classmethod
    def from_source(cls, source: str, filename: str = "") -> "TokenStream":
        return cls(JackTokenizer(source, filename), filename)

    def _fill(self, size: int):
        while len(self._buffer) < size:
            token = next(self._source, None)
            if token is None:
                token = Token(TokenType.EOF, "", self._last.line, self._last.column)
            self._last = token
            self._buffer.append(token)

    def peek(self, depth: int = 0) -> Token:
        if not 0 <= depth < self.DEPTH:
            raise ValueError(f"lookahead depth must be below {self.DEPTH}")
        self._fill(depth + 1)
        return self._buffer[depth]

    def at_end(self) -> bool:
        return self.peek().type == TokenType.EOF

    def advance(self) -> Token:
        token = self.peek()
        if token.type == TokenType.EOF:
            raise self.error("unexpected end of input", token)
        return self._buffer.popleft()

    def error(self, message: str, token: Optional[Token] = None) -> JackSyntaxError:
        token = token or self.peek()
        return JackSyntaxError(message, self.filename, token.line, token.column)

    def expect_keyword(self, *keywords: Keyword) -> Token:
        token = self.peek()
        if not token.is_keyword(*keywords):
            expected = " or ".join(f"'{kw.value}'" for kw in keywords)
            raise self.error(f"expected {expected}, got {token.describe()}", token)
        return self.advance()

    def expect_symbol(self, punct: Punct) -> Token:
        token = self.peek()
        if not token.is_symbol(punct):
            raise self.error(
                f"expected '{punct.value}', got {token.describe()}", token
            )
        return self.advance()

    def expect_identifier(self) -> Token:
        token = self.peek()
        if token.type != TokenType.IDENTIFIER:
            raise self.error(f"expected identifier, got {token.describe()}", token)
        return self.advance()

    def expect_type(self, allow_void: bool = False) -> Token:
        """Consume a type name: a primitive keyword or a class identifier."""
        token = self.peek()
        allowed = [Keyword.INT, Keyword.CHAR, Keyword.BOOLEAN]
        if allow_void:
            allowed.append(Keyword.VOID)
        if token.type == TokenType.IDENTIFIER or token.is_keyword(*allowed):
            return self.advance()
        raise self.error(f"expected type, got {token.describe()}", token)
