"""Terminal parsers: matchers that consume input directly."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from kompeg._context import ParseContext
from kompeg._core import Parser
from kompeg._result import ParseResult, Success


# =============================================================================
# Position Terminals
# =============================================================================


class Start(Parser[None]):
    """Succeeds without consuming iff at the start of the input."""

    unit = True

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[None]:
        if index == 0:
            return Success(None, index)
        return self._fail(ctx, index)

    def __repr__(self) -> str:
        return "Start()"


class End(Parser[None]):
    """Succeeds without consuming iff at the end of the input."""

    unit = True

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[None]:
        if index == len(ctx.input):
            return Success(None, index)
        return self._fail(ctx, index)

    def __repr__(self) -> str:
        return "End()"


class Pass(Parser[None]):
    """A parser that always succeeds without consuming."""

    unit = True

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[None]:
        return Success(None, index)

    def __repr__(self) -> str:
        return "Pass()"


class Fail(Parser[None]):
    """A parser that always fails."""

    unit = True

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[None]:
        return self._fail(ctx, index)

    def __repr__(self) -> str:
        return "Fail()"


# =============================================================================
# Literals
# =============================================================================


@dataclass(frozen=True, repr=False)
class Literal(Parser[None]):
    """
    Matches an exact string.

    Example:
        Literal("null").parse("null")  # Success(None, 4)
    """

    text: str
    unit = True

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[None]:
        if ctx.input.startswith(self.text, index):
            return Success(None, index + len(self.text))
        return self._fail(ctx, index)

    def __repr__(self) -> str:
        return f"P({self.text!r})"


@dataclass(frozen=True, repr=False)
class Char(Parser[None]):
    """Matches a single character."""

    char: str
    unit = True

    def __post_init__(self) -> None:
        if len(self.char) != 1:
            raise ValueError(f"Char expects a single character, got {self.char!r}")

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[None]:
        if index < len(ctx.input) and ctx.input[index] == self.char:
            return Success(None, index + 1)
        return self._fail(ctx, index)

    def __repr__(self) -> str:
        return f"P({self.char!r})"


def literal(text: str) -> Parser[None]:
    """
    Create a parser for an exact string.

    Single characters get the cheaper Char parser.
    """
    if len(text) == 1:
        return Char(text)
    return Literal(text)


P = literal


# =============================================================================
# Character Classes
# =============================================================================


class CharIn(Parser[None]):
    """
    Matches one character from a set.

    Example:
        sign = CharIn("+-")
    """

    unit = True

    def __init__(self, chars: Iterable[str]):
        self.chars = "".join(chars)
        self._members = frozenset(self.chars)

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[None]:
        if index < len(ctx.input) and ctx.input[index] in self._members:
            return Success(None, index + 1)
        return self._fail(ctx, index)

    def __repr__(self) -> str:
        return f"CharIn({self.chars!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CharIn):
            return NotImplemented
        return self._members == other._members

    def __hash__(self) -> int:
        return hash(self._members)


class CharPred(Parser[None]):
    """
    Matches one character satisfying a predicate.

    Example:
        digit = CharPred(str.isdigit)
    """

    unit = True

    def __init__(self, pred: Callable[[str], bool], name: str | None = None):
        self.pred = pred
        self.name = name or getattr(pred, "__name__", "pred")

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[None]:
        if index < len(ctx.input) and self.pred(ctx.input[index]):
            return Success(None, index + 1)
        return self._fail(ctx, index)

    def __repr__(self) -> str:
        return f"CharPred({self.name})"


class WhileCharIn(Parser[None]):
    """
    Consumes the longest run of characters from a set.

    Succeeds iff the run is at least `min` characters long. The run is
    never shortened when a later parser fails; grammars needing that must
    repeat a single-character parser instead.
    """

    unit = True

    def __init__(self, chars: Iterable[str], min: int = 1):
        if min < 0:
            raise ValueError(f"min must be >= 0, got {min}")
        self.chars = "".join(chars)
        self.min = min
        self._members = frozenset(self.chars)

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[None]:
        text = ctx.input
        end = index
        while end < len(text) and text[end] in self._members:
            end += 1
        if end - index >= self.min:
            return Success(None, end)
        return self._fail(ctx, index)

    def __repr__(self) -> str:
        if self.min == 1:
            return f"WhileCharIn({self.chars!r})"
        return f"WhileCharIn({self.chars!r}, min={self.min})"


class Regex(Parser[None]):
    """
    Matches a regular expression at the current index.

    The match is implicitly anchored at the index; do not use `^`, which
    only matches at the real start of the input.

    Example:
        integral = Regex(r"[+-]?(0|[1-9][0-9]*)")
    """

    unit = True

    def __init__(self, pattern: str | re.Pattern[str], flags: int = 0):
        self.pattern = re.compile(pattern, flags) if isinstance(pattern, str) else pattern

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[None]:
        if index > len(ctx.input):
            return self._fail(ctx, index)
        m = self.pattern.match(ctx.input, index)
        if m is None:
            return self._fail(ctx, index)
        return Success(None, m.end())

    def __repr__(self) -> str:
        return f"Regex({self.pattern.pattern!r})"
