"""Parse results: the Success / Failure outcome of running a parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, Union

from kompeg._types import T

if TYPE_CHECKING:
    from kompeg._core import Parser


class ParseError(ValueError):
    """
    Raised by get_or_fail() when the result is a Failure.

    This signals a caller error (the caller asserted success), not a parse
    error: parsing itself reports failures as values.

    Attributes:
        failure: The Failure that was asserted to be a success
    """

    def __init__(self, failure: Failure):
        super().__init__(f"Parse error: {failure}")
        self.failure = failure


@dataclass(frozen=True)
class Success(Generic[T]):
    """
    A successful parse.

    Attributes:
        value: The value produced (None for unit parsers)
        index: The index *after* the consumed span
        cut: Whether backtracking past this point is forbidden
    """

    value: T
    index: int
    cut: bool = field(default=False, compare=False)

    @property
    def is_success(self) -> bool:
        return True

    @property
    def is_failure(self) -> bool:
        return False

    def __bool__(self) -> bool:
        return True

    def get_or_fail(self) -> Success[T]:
        return self


@dataclass(frozen=True)
class Failure:
    """
    A failed parse.

    Attributes:
        index: The index where matching failed
        cause: The parser that reported the failure
        input: The input being parsed, kept for rendering
        cut: Whether enclosing alternations must stop trying branches
    """

    index: int
    cause: Parser[Any] = field(compare=False)
    input: str = field(repr=False, compare=False)
    cut: bool = field(default=False, compare=False)

    @property
    def is_success(self) -> bool:
        return False

    @property
    def is_failure(self) -> bool:
        return True

    def __bool__(self) -> bool:
        return False

    def get_or_fail(self) -> Success[Any]:
        """Assert success. Always raises ParseError for a Failure."""
        raise ParseError(self)

    @property
    def line(self) -> int:
        """1-based line number of the failing index."""
        return self.input.count("\n", 0, self.index) + 1

    @property
    def column(self) -> int:
        """1-based column of the failing index within its line."""
        return self.index - (self.input.rfind("\n", 0, self.index) + 1) + 1

    def __str__(self) -> str:
        line_start = self.input.rfind("\n", 0, self.index) + 1
        line_end = self.input.find("\n", self.index)
        if line_end == -1:
            line_end = len(self.input)
        text = self.input[line_start:line_end]
        caret = "^".rjust(self.index - line_start + 1)
        where = f":{self.index}"
        if "\n" in self.input:
            where += f" (line {self.line}, column {self.column})"
        return f"Failure at {where}, expected: {self.cause!r}\n{text}\n{caret}"


ParseResult = Union[Success[T], Failure]
"""Outcome of a parse: either a Success or a Failure."""
