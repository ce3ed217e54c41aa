"""Tokenization for single-line formula expressions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Final


class TokenType(str, Enum):
    # Literals
    NUMBER = "NUMBER"
    STRING = "STRING"
    BOOLEAN = "BOOLEAN"
    NULL = "NULL"

    IDENTIFIER = "IDENTIFIER"

    # Arithmetic
    PLUS = "PLUS"
    MINUS = "MINUS"
    MULTIPLY = "MULTIPLY"
    DIVIDE = "DIVIDE"
    MODULO = "MODULO"
    POWER = "POWER"

    # Comparison
    EQ = "EQ"
    NEQ = "NEQ"
    STRICT_EQ = "STRICT_EQ"
    STRICT_NEQ = "STRICT_NEQ"
    LT = "LT"
    GT = "GT"
    LTE = "LTE"
    GTE = "GTE"

    # Logical
    AND = "AND"
    OR = "OR"
    NOT = "NOT"

    CONCAT = "CONCAT"

    # Punctuation
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    LBRACKET = "LBRACKET"
    RBRACKET = "RBRACKET"
    LBRACE = "LBRACE"
    RBRACE = "RBRACE"
    COMMA = "COMMA"
    DOT = "DOT"
    COLON = "COLON"
    QUESTION = "QUESTION"

    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    start: int
    end: int
    line: int
    column: int


@dataclass(frozen=True)
class LexError:
    message: str
    position: int
    line: int
    column: int


@dataclass(frozen=True)
class TokenizeResult:
    tokens: tuple[Token, ...]
    errors: tuple[LexError, ...]


_DIGITS: Final = frozenset("0123456789")
_IDENT_START: Final = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_$")
_IDENT_PART: Final = _IDENT_START | _DIGITS

_KEYWORDS: Final[dict[str, TokenType]] = {
    "true": TokenType.BOOLEAN,
    "false": TokenType.BOOLEAN,
    "null": TokenType.NULL,
    "and": TokenType.AND,
    "or": TokenType.OR,
    "not": TokenType.NOT,
}

_ESCAPES: Final[dict[str, str]] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
    "'": "'",
}

# Probed longest first so `===` is never split into `==` and `=`.
_THREE_CHAR_OPS: Final[dict[str, TokenType]] = {
    "===": TokenType.STRICT_EQ,
    "!==": TokenType.STRICT_NEQ,
}
_TWO_CHAR_OPS: Final[dict[str, TokenType]] = {
    "==": TokenType.EQ,
    "!=": TokenType.NEQ,
    "<=": TokenType.LTE,
    ">=": TokenType.GTE,
    "&&": TokenType.AND,
    "||": TokenType.OR,
    "**": TokenType.POWER,
}
_SINGLE_CHAR_OPS: Final[dict[str, TokenType]] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MULTIPLY,
    "/": TokenType.DIVIDE,
    "%": TokenType.MODULO,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "!": TokenType.NOT,
    "&": TokenType.CONCAT,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    ":": TokenType.COLON,
    "?": TokenType.QUESTION,
}


@dataclass
class _Scanner:
    source: str
    pos: int = 0
    line: int = 1
    column: int = 1
    tokens: list[Token] = field(default_factory=list)
    errors: list[LexError] = field(default_factory=list)

    def run(self) -> TokenizeResult:
        while self.pos < len(self.source):
            ch = self._current()

            if ch.isspace():
                self._advance()
                continue

            if ch in _DIGITS or (ch == "." and self._peek() in _DIGITS):
                self._scan_number()
                continue

            if ch in {'"', "'"}:
                self._scan_string(ch)
                continue

            if ch in _IDENT_START:
                self._scan_identifier()
                continue

            if self._scan_operator():
                continue

            self._error(f"Unexpected character: {ch}")
            self._advance()

        self.tokens.append(Token(TokenType.EOF, "", self.pos, self.pos, self.line, self.column))
        return TokenizeResult(tokens=tuple(self.tokens), errors=tuple(self.errors))

    def _current(self) -> str:
        if self.pos < len(self.source):
            return self.source[self.pos]
        return ""

    def _peek(self, offset: int = 1) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return ""

    def _advance(self) -> str:
        ch = self._current()
        if not ch:
            return ch
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _emit(self, kind: TokenType, value: str, start: int, line: int, column: int) -> None:
        self.tokens.append(Token(kind, value, start, self.pos, line, column))

    def _error(self, message: str) -> None:
        self.errors.append(LexError(message, self.pos, self.line, self.column))

    def _scan_digits(self) -> None:
        while self._current() in _DIGITS:
            self._advance()

    def _scan_number(self) -> None:
        start, line, column = self.pos, self.line, self.column

        self._scan_digits()

        if self._current() == "." and self._peek() in _DIGITS:
            self._advance()
            self._scan_digits()

        if self._current() in {"e", "E"}:
            self._advance()
            if self._current() in {"+", "-"}:
                self._advance()
            if self._current() not in _DIGITS:
                self._error("Invalid number: expected digit after exponent")
                return
            self._scan_digits()

        self._emit(TokenType.NUMBER, self.source[start : self.pos], start, line, column)

    def _scan_string(self, quote: str) -> None:
        start, line, column = self.pos, self.line, self.column
        out: list[str] = []

        self._advance()
        while self.pos < len(self.source) and self._current() != quote:
            ch = self._current()
            if ch == "\\":
                self._advance()
                escaped = self._advance()
                out.append(_ESCAPES.get(escaped, escaped))
            elif ch == "\n":
                self._error("Unterminated string: unexpected newline")
                return
            else:
                out.append(self._advance())

        if self._current() != quote:
            self._error("Unterminated string")
            return

        self._advance()
        self._emit(TokenType.STRING, "".join(out), start, line, column)

    def _scan_identifier(self) -> None:
        start, line, column = self.pos, self.line, self.column
        while self._current() in _IDENT_PART:
            self._advance()
        text = self.source[start : self.pos]
        self._emit(_KEYWORDS.get(text.lower(), TokenType.IDENTIFIER), text, start, line, column)

    def _scan_operator(self) -> bool:
        start, line, column = self.pos, self.line, self.column
        for width, table in ((3, _THREE_CHAR_OPS), (2, _TWO_CHAR_OPS), (1, _SINGLE_CHAR_OPS)):
            text = self.source[start : start + width]
            kind = table.get(text)
            if kind is None:
                continue
            for _ in range(width):
                self._advance()
            self._emit(kind, text, start, line, column)
            return True
        return False


def tokenize(source: str) -> TokenizeResult:
    """Scan `source` into tokens, collecting lexical errors instead of stopping.

    The returned token tuple always ends with exactly one EOF token.
    """
    return _Scanner(source).run()
