"""formula-expr public API."""

from .analysis import (
    HighlightToken,
    Suggestion,
    ValidationIssue,
    ValidationResult,
    highlight,
    referenced_fields,
    referenced_functions,
    suggest,
    validate,
)
from .ast import walk
from .config import DEFAULT_LIMITS, ParserLimits
from .errors import FormulaError, FormulaSyntaxError
from .lexer import LexError, Token, TokenizeResult, TokenType, tokenize
from .parser import ParseError, ParseFailure, ParseResult, ParseSuccess, make_snippet, parse

__all__ = [
    "parse",
    "tokenize",
    "walk",
    "make_snippet",
    "ParseResult",
    "ParseSuccess",
    "ParseFailure",
    "ParseError",
    "ParserLimits",
    "DEFAULT_LIMITS",
    "Token",
    "TokenType",
    "TokenizeResult",
    "LexError",
    "FormulaError",
    "FormulaSyntaxError",
    "validate",
    "highlight",
    "suggest",
    "referenced_fields",
    "referenced_functions",
    "ValidationResult",
    "ValidationIssue",
    "HighlightToken",
    "Suggestion",
]
