"""Core Parser base class and the operator composition surface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Generic

from kompeg._context import ParseContext
from kompeg._result import Failure, ParseResult
from kompeg._types import T, U, _trace_config, _trace_hook

if TYPE_CHECKING:
    from kompeg._tracing import TraceConfig, TraceHook


# =============================================================================
# Core Parser Base
# =============================================================================


class Parser(ABC, Generic[T]):
    """
    Base class for all parsers.

    A parser takes the input and a start index and returns a ParseResult:
    Success(value, index) with the index after the consumed span, or
    Failure(index, cause) with the index where matching failed.

    Parsers can be composed using operators:
        *  = sequence (run a, then b where a stopped)
        +  = ordered choice (first branch that succeeds wins)
        ~  = not (negative lookahead, consumes nothing)

    Plain strings are accepted as operands and become literals:
        pair = string * ":" * value

    Unit parsers (literals, character classes, lookaheads...) produce None,
    and their values are dropped from sequence tuples:
        P("(") * number * P(")")   # value is the number alone
    """

    unit: bool = False
    """True when the parser's value carries no information (always None)."""

    @abstractmethod
    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[T]:
        """Internal parse step - subclasses implement this."""
        ...

    def parse(
        self,
        input: str,
        index: int = 0,
        *,
        hook: TraceHook | None = None,
        config: TraceConfig | None = None,
    ) -> ParseResult[T]:
        """
        Parse input starting at index.

        Never raises on malformed input: failures are returned as Failure
        values. If tracing is enabled via use_tracing(), logged parsers report
        to that hook unless one is passed explicitly.
        """
        if hook is None:
            hook = _trace_hook.get()
        if config is None:
            config = _trace_config.get()
        return self._parse(ParseContext(input, hook, config), index)

    def __call__(self, input: str, index: int = 0) -> ParseResult[T]:
        """Shorthand for parse()."""
        return self.parse(input, index)

    def _fail(self, ctx: ParseContext, index: int, cut: bool = False) -> Failure:
        return Failure(index, self, ctx.input, cut)

    # -------------------------------------------------
    # Operators
    # -------------------------------------------------

    def __mul__(self, other: Parser[Any] | str) -> Parser[Any]:
        """a * b = match a, then b where a stopped."""
        from kompeg._combinators import Sequence

        return Sequence.chain(self, _coerce(other))

    def __rmul__(self, other: str) -> Parser[Any]:
        from kompeg._combinators import Sequence

        return Sequence.chain(_coerce(other), self)

    def __add__(self, other: Parser[Any] | str) -> Parser[Any]:
        """a + b = try a; if it fails without a cut, try b at the same index."""
        from kompeg._combinators import Either

        return Either.chain(self, _coerce(other))

    def __radd__(self, other: str) -> Parser[Any]:
        from kompeg._combinators import Either

        return Either.chain(_coerce(other), self)

    def __invert__(self) -> Parser[None]:
        """~a = succeed without consuming iff a fails."""
        from kompeg._combinators import Not

        return Not(self)

    # -------------------------------------------------
    # Builders
    # -------------------------------------------------

    def map(self, fn: Callable[[T], U]) -> Parser[U]:
        """Transform the value of a successful parse."""
        from kompeg._combinators import Mapped

        return Mapped(self, fn)

    def starmap(self, fn: Callable[..., U]) -> Parser[U]:
        """
        Transform a tuple value by unpacking it into fn.

        Example:
            pair = (key * ":" * value).starmap(lambda k, v: {k: v})
        """
        from kompeg._combinators import Mapped

        return Mapped(self, lambda values: fn(*values), getattr(fn, "__name__", None))

    def flat_map(self, fn: Callable[[T], Parser[U]]) -> Parser[U]:
        """Choose the next parser from the value of this one."""
        from kompeg._combinators import FlatMapped

        return FlatMapped(self, fn)

    def filter(self, pred: Callable[[T], bool]) -> Parser[T]:
        """Reject successful parses whose value does not satisfy pred."""
        from kompeg._combinators import Filtered

        return Filtered(self, pred)

    def capture(self) -> Parser[str]:
        """Replace the value with the exact text consumed."""
        from kompeg._combinators import Capturing

        return Capturing(self)

    def rep(
        self,
        min: int = 0,
        max: int | None = None,
        sep: Parser[Any] | str | None = None,
    ) -> Parser[list[T]]:
        """
        Match this parser repeatedly, greedily.

        Args:
            min: Minimum number of matches required (default: 0)
            max: Maximum number of matches (default: unbounded)
            sep: Separator required between elements, never consumed
                 after the last one
        """
        from kompeg._combinators import Repeat

        return Repeat(self, min, max, None if sep is None else _coerce(sep))

    def opt(self) -> Parser[T | None]:
        """Match this parser or nothing; absent values are None."""
        from kompeg._combinators import Optional

        return Optional(self)

    def cut(self) -> Parser[T]:
        """Commit: once this matches, enclosing choices stop backtracking."""
        from kompeg._combinators import Cut

        return Cut(self)

    def log(self, name: str | None = None, hook: TraceHook | None = None) -> Parser[T]:
        """
        Report entering and leaving this parser to a trace hook.

        Args:
            name: Label for trace lines (default: the parser's repr)
            hook: Hook to report to (default: the parse call's hook, or a
                  PrintHook writing to stdout)
        """
        from kompeg._combinators import Logged

        return Logged(self, name or repr(self), hook)


def _coerce(value: Parser[Any] | str) -> Parser[Any]:
    """Accept parsers as-is and turn strings into literals."""
    if isinstance(value, Parser):
        return value
    if isinstance(value, str):
        from kompeg._terminals import literal

        return literal(value)
    raise TypeError(
        f"Expected a Parser or str, got {type(value).__name__}: {value!r}"
    )


def seq(*parsers: Parser[Any] | str) -> Parser[Any]:
    """
    Build a sequence from any number of parsers.

    Equivalent to chaining with *, without flattening nested sequences.
    """
    from kompeg._combinators import Sequence

    return Sequence([_coerce(p) for p in parsers])


def either(*parsers: Parser[Any] | str) -> Parser[Any]:
    """Build an ordered choice from any number of parsers."""
    from kompeg._combinators import Either

    return Either([_coerce(p) for p in parsers])


def not_(parser: Parser[Any] | str) -> Parser[None]:
    """Negative lookahead; same as ~parser."""
    from kompeg._combinators import Not

    return Not(_coerce(parser))
