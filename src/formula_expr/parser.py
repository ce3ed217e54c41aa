"""Recursive-descent parser for formula expressions."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Final, NoReturn, Union

from .ast import (
    ArrayExpression,
    BinaryExpression,
    CallExpression,
    ConditionalExpression,
    Expr,
    Identifier,
    Literal,
    MemberExpression,
    ObjectExpression,
    Property,
    UnaryExpression,
    to_dict,
)
from .config import DEFAULT_LIMITS, ParserLimits
from .errors import FormulaSyntaxError
from .lexer import Token, TokenType, tokenize

logger = logging.getLogger(__name__)

SNIPPET_RADIUS: Final = 20
SNIPPET_MARKER: Final = "→"

_OR_OPS: Final = {TokenType.OR: "||"}
_AND_OPS: Final = {TokenType.AND: "&&"}
_EQUALITY_OPS: Final = {
    TokenType.EQ: "==",
    TokenType.NEQ: "!=",
    TokenType.STRICT_EQ: "===",
    TokenType.STRICT_NEQ: "!==",
}
_COMPARISON_OPS: Final = {
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LTE: "<=",
    TokenType.GTE: ">=",
}
_CONCAT_OPS: Final = {TokenType.CONCAT: "&"}
_ADDITIVE_OPS: Final = {TokenType.PLUS: "+", TokenType.MINUS: "-"}
_MULTIPLICATIVE_OPS: Final = {
    TokenType.MULTIPLY: "*",
    TokenType.DIVIDE: "/",
    TokenType.MODULO: "%",
}
# Loosest first; a higher index binds tighter.
_BINARY_LEVELS: Final = (
    _OR_OPS,
    _AND_OPS,
    _EQUALITY_OPS,
    _COMPARISON_OPS,
    _CONCAT_OPS,
    _ADDITIVE_OPS,
    _MULTIPLICATIVE_OPS,
)
_BINARY_PRECEDENCE: Final[dict[TokenType, tuple[int, str]]] = {
    kind: (level, op) for level, table in enumerate(_BINARY_LEVELS) for kind, op in table.items()
}
_UNARY_TOKENS: Final = (TokenType.MINUS, TokenType.NOT, TokenType.PLUS)
# Only these spellings are normalized; `Not` keeps its text as the operator.
_UNARY_OPS: Final = {"-": "-", "!": "!", "+": "+", "not": "!", "NOT": "!"}


@dataclass(frozen=True)
class ParseError:
    message: str
    position: int
    line: int
    column: int
    snippet: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ParseSuccess:
    ast: Expr
    success: ClassVar[bool] = True

    def unwrap(self) -> Expr:
        return self.ast

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "ast": to_dict(self.ast)}


@dataclass(frozen=True)
class ParseFailure:
    error: ParseError
    success: ClassVar[bool] = False

    def unwrap(self) -> Expr:
        raise FormulaSyntaxError.from_parse_error(self.error)

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.error.to_dict()}


ParseResult = Union[ParseSuccess, ParseFailure]


class _SyntaxFault(SyntaxError):
    def __init__(self, message: str, position: int, line: int, column: int) -> None:
        super().__init__(message)
        self.message = message
        self.position = position
        self.line = line
        self.column = column

    def __str__(self) -> str:
        return f"{self.message} at index {self.position} (line {self.line}, column {self.column})"


def make_snippet(source: str, position: int, radius: int = SNIPPET_RADIUS) -> str:
    """Return the text around `position` with a marker inserted at the fault."""
    start = max(0, position - radius)
    end = min(len(source), position + radius)
    prefix = "..." if start > 0 else ""
    suffix = "..." if end < len(source) else ""
    return f"{prefix}{source[start:position]}{SNIPPET_MARKER}{source[position:end]}{suffix}"


def _reduce(operands: list[Expr], pending: list[tuple[int, str]]) -> None:
    _, op = pending.pop()
    right = operands.pop()
    left = operands.pop()
    operands.append(BinaryExpression(operator=op, left=left, right=right, start=left.start, end=right.end))


def _line_column(source: str, position: int) -> tuple[int, int]:
    head = source[:position]
    line = head.count("\n") + 1
    column = position - (head.rfind("\n") + 1) + 1
    return line, column


@dataclass
class _Parser:
    tokens: tuple[Token, ...]
    limits: ParserLimits = DEFAULT_LIMITS
    index: int = 0
    depth: int = 0

    def parse_expression_only(self) -> Expr:
        expr = self._parse_expression()
        if not self._at_end():
            tok = self._peek()
            raise _SyntaxFault(f"Unexpected token: {tok.value}", tok.start, tok.line, tok.column)
        return expr

    # Token helpers

    def _peek(self) -> Token:
        return self.tokens[self.index]

    def _previous(self) -> Token:
        return self.tokens[self.index - 1]

    def _at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _check(self, kind: TokenType) -> bool:
        return not self._at_end() and self._peek().type == kind

    def _advance(self) -> Token:
        if not self._at_end():
            self.index += 1
        return self._previous()

    def _match(self, *kinds: TokenType) -> bool:
        for kind in kinds:
            if self._check(kind):
                self._advance()
                return True
        return False

    def _expect(self, kind: TokenType, message: str) -> Token:
        if self._check(kind):
            return self._advance()
        self._error(message)

    def _error(self, message: str, tok: Token | None = None) -> NoReturn:
        token = tok if tok is not None else self._peek()
        raise _SyntaxFault(message, token.start, token.line, token.column)

    def _enter(self) -> None:
        self.depth += 1
        if self.depth > self.limits.max_depth:
            self._error("Expression is nested too deeply")

    # Productions, loosest binding first

    def _parse_expression(self) -> Expr:
        self._enter()
        try:
            return self._parse_ternary()
        finally:
            self.depth -= 1

    def _parse_ternary(self) -> Expr:
        test = self._parse_binary()
        if not self._match(TokenType.QUESTION):
            return test
        consequent = self._parse_expression()
        self._expect(TokenType.COLON, "Expected ':' in ternary expression")
        alternate = self._parse_expression()
        return ConditionalExpression(
            test=test,
            consequent=consequent,
            alternate=alternate,
            start=test.start,
            end=alternate.end,
        )

    def _parse_binary(self) -> Expr:
        # Operands and operators wait on stacks until a looser or equal level
        # arrives; every level is left-associative.
        operands: list[Expr] = [self._parse_power()]
        pending: list[tuple[int, str]] = []
        while self._peek().type in _BINARY_PRECEDENCE:
            level, op = _BINARY_PRECEDENCE[self._advance().type]
            while pending and pending[-1][0] >= level:
                _reduce(operands, pending)
            pending.append((level, op))
            operands.append(self._parse_power())
        while pending:
            _reduce(operands, pending)
        return operands[0]

    def _parse_power(self) -> Expr:
        left = self._parse_unary()
        if not self._match(TokenType.POWER):
            return left
        # Right-associative: the right operand is another power expression.
        self._enter()
        try:
            right = self._parse_power()
        finally:
            self.depth -= 1
        return BinaryExpression(operator="**", left=left, right=right, start=left.start, end=right.end)

    def _parse_unary(self) -> Expr:
        if not self._match(*_UNARY_TOKENS):
            return self._parse_call()
        op_tok = self._previous()
        self._enter()
        try:
            argument = self._parse_unary()
        finally:
            self.depth -= 1
        return UnaryExpression(
            operator=_UNARY_OPS.get(op_tok.value, op_tok.value),
            argument=argument,
            start=op_tok.start,
            end=argument.end,
        )

    def _parse_call(self) -> Expr:
        expr = self._parse_primary()
        while True:
            if self._match(TokenType.LPAREN):
                expr = self._finish_call(expr)
            elif self._match(TokenType.DOT):
                name = self._expect(TokenType.IDENTIFIER, "Expected property name after '.'")
                prop = Identifier(name=name.value, start=name.start, end=name.end)
                expr = MemberExpression(object=expr, property=prop, computed=False, start=expr.start, end=name.end)
            elif self._match(TokenType.LBRACKET):
                prop_expr = self._parse_expression()
                bracket = self._expect(TokenType.RBRACKET, "Expected ']' after index")
                expr = MemberExpression(object=expr, property=prop_expr, computed=True, start=expr.start, end=bracket.end)
            else:
                return expr

    def _finish_call(self, callee: Expr) -> CallExpression:
        args: list[Expr] = []
        if not self._check(TokenType.RPAREN):
            args.append(self._parse_expression())
            while self._match(TokenType.COMMA):
                args.append(self._parse_expression())
        paren = self._expect(TokenType.RPAREN, "Expected ')' after arguments")
        return CallExpression(callee=callee, arguments=tuple(args), start=callee.start, end=paren.end)

    def _parse_primary(self) -> Expr:
        tok = self._peek()

        if self._match(TokenType.BOOLEAN):
            return Literal(value=tok.value.lower() == "true", raw=tok.value, start=tok.start, end=tok.end)

        if self._match(TokenType.NULL):
            return Literal(value=None, raw=tok.value, start=tok.start, end=tok.end)

        if self._match(TokenType.NUMBER):
            return Literal(value=float(tok.value), raw=tok.value, start=tok.start, end=tok.end)

        if self._match(TokenType.STRING):
            return self._string_literal(tok)

        if self._match(TokenType.IDENTIFIER):
            return Identifier(name=tok.value, start=tok.start, end=tok.end)

        if self._match(TokenType.LBRACKET):
            return self._parse_array(tok)

        if self._match(TokenType.LBRACE):
            return self._parse_object(tok)

        if self._match(TokenType.LPAREN):
            expr = self._parse_expression()
            self._expect(TokenType.RPAREN, "Expected ')' after expression")
            return expr

        self._error(f"Unexpected token: {tok.value or tok.type.value}", tok)

    def _string_literal(self, tok: Token) -> Literal:
        return Literal(value=tok.value, raw=f'"{tok.value}"', start=tok.start, end=tok.end)

    def _parse_array(self, open_tok: Token) -> ArrayExpression:
        elements: list[Expr] = []
        if not self._check(TokenType.RBRACKET):
            elements.append(self._parse_expression())
            while self._match(TokenType.COMMA):
                elements.append(self._parse_expression())
        close = self._expect(TokenType.RBRACKET, "Expected ']' after array elements")
        return ArrayExpression(elements=tuple(elements), start=open_tok.start, end=close.end)

    def _parse_object(self, open_tok: Token) -> ObjectExpression:
        properties: list[Property] = []
        if not self._check(TokenType.RBRACE):
            properties.append(self._parse_property())
            while self._match(TokenType.COMMA):
                properties.append(self._parse_property())
        close = self._expect(TokenType.RBRACE, "Expected '}' after object properties")
        return ObjectExpression(properties=tuple(properties), start=open_tok.start, end=close.end)

    def _parse_property(self) -> Property:
        tok = self._peek()
        key: Identifier | Literal
        if self._match(TokenType.IDENTIFIER):
            key = Identifier(name=tok.value, start=tok.start, end=tok.end)
        elif self._match(TokenType.STRING):
            key = self._string_literal(tok)
        else:
            self._error("Expected property name", tok)
        self._expect(TokenType.COLON, "Expected ':' after property name")
        return Property(key=key, value=self._parse_expression())


def _failure(source: str, message: str, position: int, line: int, column: int) -> ParseFailure:
    logger.debug("formula rejected: %s at index %d", message, position)
    return ParseFailure(
        error=ParseError(
            message=message,
            position=position,
            line=line,
            column=column,
            snippet=make_snippet(source, position),
        )
    )


def parse(source: str, *, limits: ParserLimits | None = None) -> ParseResult:
    """Parse one formula expression into an AST or a positioned error.

    Lexical errors abort before parsing; only the first one is reported.
    """
    limits = limits if limits is not None else DEFAULT_LIMITS

    if limits.max_length is not None and len(source) > limits.max_length:
        line, column = _line_column(source, limits.max_length)
        return _failure(
            source,
            f"Expression exceeds maximum length of {limits.max_length} characters",
            limits.max_length,
            line,
            column,
        )

    scanned = tokenize(source)
    if scanned.errors:
        first = scanned.errors[0]
        return _failure(source, first.message, first.position, first.line, first.column)

    parser = _Parser(tokens=scanned.tokens, limits=limits)
    try:
        ast = parser.parse_expression_only()
    except _SyntaxFault as err:
        return _failure(source, err.message, err.position, err.line, err.column)

    logger.debug("formula parsed: %d tokens", len(scanned.tokens))
    return ParseSuccess(ast=ast)
