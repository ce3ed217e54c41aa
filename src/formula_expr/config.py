"""Explicit parser limits."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class ParserLimits:
    """Resource bounds applied to a single `parse` call.

    - `max_depth`: how many sub-expressions, unary operators or `**` operands
      may nest inside each other before parsing fails.
    - `max_length`: longest accepted source text; `None` disables the check.
    """

    max_depth: int = 48
    max_length: int | None = None

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {self.max_depth}")
        if self.max_length is not None and self.max_length < 0:
            raise ValueError(f"max_length must be >= 0 or None, got {self.max_length}")


DEFAULT_LIMITS: Final[ParserLimits] = ParserLimits()
