"""Structured error types for raise-style callers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .parser import ParseError


class FormulaError(Exception):
    """Base class for structured formula-expr errors."""


@dataclass(frozen=True)
class FormulaSyntaxError(FormulaError):
    """Wraps a lexical or syntax failure reported by `parse`."""

    message: str
    position: int
    line: int
    column: int
    snippet: str = ""

    @classmethod
    def from_parse_error(cls, err: "ParseError") -> "FormulaSyntaxError":
        return cls(
            message=err.message,
            position=err.position,
            line=err.line,
            column=err.column,
            snippet=err.snippet,
        )

    def __str__(self) -> str:
        text = f"{self.message} at line {self.line}, column {self.column}"
        if self.snippet:
            text = f"{text}: {self.snippet}"
        return text
