"""Parse-only helpers for formula editors: references, validation, highlighting, completion."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Final, Iterable, Literal as TypingLiteral

from .ast import CallExpression, Expr, Identifier, MemberExpression, ObjectExpression, walk
from .lexer import TokenType, tokenize
from .parser import ParseFailure, parse

logger = logging.getLogger(__name__)

IssueKind = TypingLiteral["syntax", "reference", "function"]
HighlightCategory = TypingLiteral["field", "literal", "operator", "punctuation"]
SuggestionKind = TypingLiteral["function", "field", "variable"]

BUILTIN_NAMES: Final = frozenset({"true", "false", "null", "undefined", "now", "today", "user", "system"})
SYSTEM_VARIABLES: Final = ("NOW", "TODAY", "user", "system")

_PARTIAL_NAME: Final = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*\Z")

_LITERAL_TOKENS: Final = frozenset({TokenType.NUMBER, TokenType.STRING, TokenType.BOOLEAN, TokenType.NULL})
_PUNCTUATION_TOKENS: Final = frozenset(
    {
        TokenType.LPAREN,
        TokenType.RPAREN,
        TokenType.LBRACKET,
        TokenType.RBRACKET,
        TokenType.LBRACE,
        TokenType.RBRACE,
        TokenType.COMMA,
        TokenType.DOT,
        TokenType.COLON,
        TokenType.QUESTION,
    }
)


@dataclass(frozen=True)
class ValidationIssue:
    kind: IssueKind
    message: str
    start: int
    end: int


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: tuple[ValidationIssue, ...] = ()
    referenced_fields: tuple[str, ...] = ()
    referenced_functions: tuple[str, ...] = ()


@dataclass(frozen=True)
class HighlightToken:
    category: HighlightCategory
    value: str
    start: int
    end: int


@dataclass(frozen=True)
class Suggestion:
    kind: SuggestionKind
    label: str
    insert_text: str
    cursor_offset: int = 0
    description: str = ""


@dataclass
class _References:
    fields: dict[str, Identifier] = field(default_factory=dict)
    functions: dict[str, Identifier] = field(default_factory=dict)


def _collect(root: Expr) -> _References:
    # Callee names, `.prop` names and object keys are not field references.
    excluded: set[int] = set()
    refs = _References()
    for node in walk(root):
        if isinstance(node, CallExpression) and isinstance(node.callee, Identifier):
            excluded.add(id(node.callee))
            refs.functions.setdefault(node.callee.name.upper(), node.callee)
        elif isinstance(node, MemberExpression) and not node.computed:
            excluded.add(id(node.property))
        elif isinstance(node, ObjectExpression):
            excluded.update(id(prop.key) for prop in node.properties)
        elif isinstance(node, Identifier) and id(node) not in excluded:
            refs.fields.setdefault(node.name, node)
    return refs


def referenced_fields(root: Expr) -> tuple[str, ...]:
    """Identifier names read as values, in first-use order."""
    return tuple(_collect(root).fields)


def referenced_functions(root: Expr) -> tuple[str, ...]:
    """Upper-cased names of directly called functions, in first-use order."""
    return tuple(_collect(root).functions)


def validate(
    formula: str,
    *,
    available_fields: Iterable[str] | None = None,
    known_functions: Iterable[str] | None = None,
) -> ValidationResult:
    """Check a formula without evaluating it.

    Field checks run only when `available_fields` is given and function
    checks only when `known_functions` is given.
    """
    result = parse(formula)
    if isinstance(result, ParseFailure):
        err = result.error
        issue = ValidationIssue("syntax", err.message, err.position, err.position + 1)
        return ValidationResult(valid=False, errors=(issue,))

    refs = _collect(result.ast)
    errors: list[ValidationIssue] = []

    known = {name.upper() for name in known_functions} if known_functions is not None else set()

    if available_fields is not None:
        allowed = set(available_fields)
        for name, node in refs.fields.items():
            if name in allowed or name.lower() in BUILTIN_NAMES or name.upper() in known:
                continue
            errors.append(ValidationIssue("reference", f"Unknown field: {name}", node.start, node.end))

    if known_functions is not None:
        for name, node in refs.functions.items():
            if name not in known:
                errors.append(ValidationIssue("function", f"Unknown function: {node.name}", node.start, node.end))

    if errors:
        logger.debug("formula failed validation with %d issue(s)", len(errors))
    errors.sort(key=lambda issue: issue.start)
    return ValidationResult(
        valid=not errors,
        errors=tuple(errors),
        referenced_fields=tuple(refs.fields),
        referenced_functions=tuple(refs.functions),
    )


def _category(kind: TokenType) -> HighlightCategory:
    if kind == TokenType.IDENTIFIER:
        return "field"
    if kind in _LITERAL_TOKENS:
        return "literal"
    if kind in _PUNCTUATION_TOKENS:
        return "punctuation"
    return "operator"


def highlight(formula: str) -> list[HighlightToken]:
    """Classify every token for syntax colouring; lexical errors are skipped."""
    return [
        HighlightToken(_category(tok.type), tok.value, tok.start, tok.end)
        for tok in tokenize(formula).tokens
        if tok.type != TokenType.EOF
    ]


def suggest(
    formula: str,
    position: int,
    *,
    available_fields: Iterable[str] = (),
    known_functions: Iterable[str] = (),
) -> list[Suggestion]:
    """Completions for the name being typed just before `position`.

    Functions, fields and system variables whose names start with the
    partial name (case-insensitively) are returned sorted by label. With
    no partial name every candidate matches.
    """
    match = _PARTIAL_NAME.search(formula[: max(0, position)])
    partial = match.group(0).lower() if match else ""

    out: list[Suggestion] = []
    for name in known_functions:
        if name.lower().startswith(partial):
            out.append(Suggestion("function", name, f"{name}(", cursor_offset=1))
    for name in available_fields:
        if name.lower().startswith(partial):
            out.append(Suggestion("field", name, name))
    for name in SYSTEM_VARIABLES:
        if name.lower().startswith(partial):
            out.append(Suggestion("variable", name, name, description=f"System variable: {name}"))

    out.sort(key=lambda s: s.label.casefold())
    return out
