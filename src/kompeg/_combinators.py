"""
Combinators: parsers built from other parsers.

Cut propagation rules shared by every combinator here:
    - a Success carries `cut` out of sequences, repetitions and transforms
    - a later Failure in the same sequence inherits any cut seen before it
    - Either clears cut on success and stops trying branches on a cut Failure
    - Optional and Not absorb cut
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from kompeg._context import ParseContext
from kompeg._core import Parser
from kompeg._result import Failure, ParseResult, Success
from kompeg._terminals import Pass
from kompeg._types import T

if TYPE_CHECKING:
    from kompeg._tracing import TraceHook


def _pack(values: list[Any]) -> Any:
    """Collapse sequence values: none -> None, one -> bare value, else tuple."""
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return tuple(values)


def _with_cut(result: ParseResult[Any]) -> ParseResult[Any]:
    return result if result.cut else replace(result, cut=True)


def _callable_name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__name__", repr(fn))


@dataclass
class _UnitFrame:
    """A rule being resolved and the lowest stack position its answer relied on."""

    rule: Rule
    low: int


# Rules currently resolving Rule.unit, outermost first; guarded by _unit_lock
_unit_stack: list[_UnitFrame] = []
_unit_lock = threading.RLock()


# =============================================================================
# Sequence & Choice
# =============================================================================


@dataclass(repr=False)
class Sequence(Parser[Any]):
    """
    Runs parsers one after another, each starting where the previous stopped.

    The value is a tuple of the non-unit values; a single non-unit value is
    returned bare, and an all-unit sequence is itself a unit parser.
    Sequences never backtrack: if a part fails, the sequence fails at that
    part's index.
    """

    parts: list[Parser[Any]]
    _units: tuple[bool, ...] | None = field(
        default=None, init=False, compare=False
    )

    @classmethod
    def chain(cls, left: Parser[Any], right: Parser[Any]) -> Sequence:
        """Append right to left, flattening a left-hand sequence."""
        if isinstance(left, Sequence):
            return cls([*left.parts, right])
        return cls([left, right])

    @property
    def unit(self) -> bool:  # type: ignore[override]
        return all(self._part_units())

    def _part_units(self) -> tuple[bool, ...]:
        # Resolved on first parse so rules referenced here stay lazy
        if self._units is not None:
            return self._units
        units = tuple(p.unit for p in self.parts)
        if not _unit_stack:
            # Inside a rule resolution a back-reference may still be a guess
            self._units = units
        return units

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[Any]:
        units = self._part_units()
        values: list[Any] = []
        cut = False
        current = index
        for part, is_unit in zip(self.parts, units):
            result = part._parse(ctx, current)
            if isinstance(result, Failure):
                return _with_cut(result) if cut else result
            if not is_unit:
                values.append(result.value)
            cut = cut or result.cut
            current = result.index
        return Success(_pack(values), current, cut)

    def __repr__(self) -> str:
        return " * ".join(
            f"({p!r})" if isinstance(p, Either) else repr(p) for p in self.parts
        )


@dataclass(repr=False)
class Either(Parser[Any]):
    """
    Ordered choice: tries each parser at the same index, first success wins.

    A branch that fails with a cut stops the search: the remaining branches
    are not tried and the whole choice fails with the cut still set.
    """

    parsers: list[Parser[Any]]

    @classmethod
    def chain(cls, left: Parser[Any], right: Parser[Any]) -> Either:
        """Append right to left, flattening a left-hand choice."""
        if isinstance(left, Either):
            return cls([*left.parsers, right])
        return cls([left, right])

    @property
    def unit(self) -> bool:  # type: ignore[override]
        return all(p.unit for p in self.parsers)

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[Any]:
        for parser in self.parsers:
            result = parser._parse(ctx, index)
            if isinstance(result, Success):
                return replace(result, cut=False) if result.cut else result
            if result.cut:
                return self._fail(ctx, index, cut=True)
        return self._fail(ctx, index)

    def __repr__(self) -> str:
        return " + ".join(repr(p) for p in self.parsers)


# =============================================================================
# Repetition, Optional, Lookahead
# =============================================================================


class Repeat(Parser[Any]):
    """
    Greedy bounded repetition with an optional separator.

    The value is always the list of element values, even for unit elements;
    a repetition of a unit parser still drops out of sequence tuples.

    The separator is only consumed between two elements. Any failure of an
    element or separator ends the loop; a cut seen along the way, in a
    success or in that final failure, is carried by the result. Falling
    short of `min` fails at the start index, so with `min=0` the
    repetition never fails.
    """

    def __init__(
        self,
        parser: Parser[T],
        min: int = 0,
        max: int | None = None,
        sep: Parser[Any] | None = None,
    ):
        if min < 0:
            raise ValueError(f"min must be >= 0, got {min}")
        if max is not None and max < min:
            raise ValueError(f"max ({max}) must be >= min ({min})")
        self.parser = parser
        self.min = min
        self.max = max
        self.sep = sep if sep is not None else Pass()

    @property
    def unit(self) -> bool:  # type: ignore[override]
        return self.parser.unit

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[Any]:
        values: list[Any] = []
        count = 0
        cut = False
        end = index
        while self.max is None or count < self.max:
            start = end
            sep_cut = False
            if count > 0:
                sep_result = self.sep._parse(ctx, end)
                if isinstance(sep_result, Failure):
                    cut = cut or sep_result.cut
                    break
                start = sep_result.index
                sep_cut = sep_result.cut
            result = self.parser._parse(ctx, start)
            if isinstance(result, Failure):
                cut = cut or sep_cut or result.cut
                break
            values.append(result.value)
            count += 1
            cut = cut or sep_cut or result.cut
            if result.index == end and count >= self.min:
                # No progress: further rounds would match the same empty span
                break
            end = result.index
        if count < self.min:
            return self._fail(ctx, index, cut)
        return Success(values, end, cut)

    def __repr__(self) -> str:
        args = []
        if self.min:
            args.append(f"min={self.min}")
        if self.max is not None:
            args.append(f"max={self.max}")
        if not isinstance(self.sep, Pass):
            args.append(f"sep={self.sep!r}")
        return f"{_operand(self.parser)}.rep({', '.join(args)})"


@dataclass(repr=False)
class Optional(Parser[Any]):
    """
    Matches the parser or nothing.

    On failure, succeeds with None at the start index, however far the
    parser got and whether or not it reported a cut.
    """

    parser: Parser[Any]

    @property
    def unit(self) -> bool:  # type: ignore[override]
        return self.parser.unit

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[Any]:
        result = self.parser._parse(ctx, index)
        if isinstance(result, Success):
            return result
        return Success(None, index)

    def __repr__(self) -> str:
        return f"{_operand(self.parser)}.opt()"


@dataclass(repr=False)
class Not(Parser[None]):
    """
    Negative lookahead: succeeds iff the parser fails.

    Consumes nothing either way.
    """

    parser: Parser[Any]
    unit = True

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[None]:
        result = self.parser._parse(ctx, index)
        if isinstance(result, Success):
            return self._fail(ctx, index)
        return Success(None, index)

    def __repr__(self) -> str:
        return f"~{_operand(self.parser)}"


@dataclass(repr=False)
class Cut(Parser[Any]):
    """
    Commits to the current branch once the parser succeeds.

    After a cut, a failure anywhere later in the enclosing sequence stops
    the nearest enclosing Either from trying its remaining branches.
    """

    parser: Parser[Any]

    @property
    def unit(self) -> bool:  # type: ignore[override]
        return self.parser.unit

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[Any]:
        result = self.parser._parse(ctx, index)
        if isinstance(result, Success):
            return _with_cut(result)
        return result

    def __repr__(self) -> str:
        return f"{_operand(self.parser)}.cut()"


# =============================================================================
# Value Transforms
# =============================================================================


class Mapped(Parser[Any]):
    """Applies a function to the value of a successful parse."""

    def __init__(
        self, parser: Parser[Any], fn: Callable[[Any], Any], name: str | None = None
    ):
        self.parser = parser
        self.fn = fn
        self.name = name or _callable_name(fn)

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[Any]:
        result = self.parser._parse(ctx, index)
        if isinstance(result, Failure):
            return result
        return Success(self.fn(result.value), result.index, result.cut)

    def __repr__(self) -> str:
        return repr(self.parser)


class FlatMapped(Parser[Any]):
    """Runs the parser returned by fn(value) where the first parser stopped."""

    def __init__(self, parser: Parser[Any], fn: Callable[[Any], Parser[Any]]):
        self.parser = parser
        self.fn = fn
        self.name = _callable_name(fn)

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[Any]:
        result = self.parser._parse(ctx, index)
        if isinstance(result, Failure):
            return result
        following = self.fn(result.value)._parse(ctx, result.index)
        return _with_cut(following) if result.cut else following

    def __repr__(self) -> str:
        return repr(self.parser)


class Filtered(Parser[Any]):
    """Turns a success into a failure at the start index if pred rejects it."""

    def __init__(self, parser: Parser[Any], pred: Callable[[Any], bool]):
        self.parser = parser
        self.pred = pred
        self.name = _callable_name(pred)

    @property
    def unit(self) -> bool:  # type: ignore[override]
        return self.parser.unit

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[Any]:
        result = self.parser._parse(ctx, index)
        if isinstance(result, Success) and not self.pred(result.value):
            return self._fail(ctx, index, result.cut)
        return result

    def __repr__(self) -> str:
        return f"{_operand(self.parser)}.filter({self.name})"


@dataclass(repr=False)
class Capturing(Parser[str]):
    """Replaces the value with the text consumed by the parser."""

    parser: Parser[Any]

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[str]:
        result = self.parser._parse(ctx, index)
        if isinstance(result, Failure):
            return result
        return Success(ctx.input[index : result.index], result.index, result.cut)

    def __repr__(self) -> str:
        return repr(self.parser)


# =============================================================================
# Rules & Logging
# =============================================================================


class Rule(Parser[Any]):
    """
    A named parser whose body is built on first use.

    Deferring construction lets rules refer to themselves and to rules
    defined later in the module, which recursive grammars need:

        parens = Rule("parens", lambda: P("(") * expr * P(")"))
        expr = Rule("expr", lambda: number + parens)

    The body is built once, even when several threads first use the rule
    at the same time.
    """

    def __init__(self, name: str, supplier: Callable[[], Parser[Any]]):
        self.name = name
        self.supplier = supplier
        self._parser: Parser[Any] | None = None
        self._unit: bool | None = None
        self._lock = threading.RLock()

    @property
    def parser(self) -> Parser[Any]:
        """The rule body, built on first access."""
        parser = self._parser
        if parser is None:
            with self._lock:
                if self._parser is None:
                    self._parser = self.supplier()
                parser = self._parser
        return parser

    @property
    def unit(self) -> bool:  # type: ignore[override]
        """
        Whether the rule's value carries no information.

        A reference back to a rule still being resolved is assumed unit. An
        answer that relied on such a guess for an enclosing rule is returned
        but not cached; it is recomputed once that rule is settled.
        """
        if self._unit is not None:
            return self._unit
        with _unit_lock:
            if self._unit is not None:
                return self._unit
            for position, frame in enumerate(_unit_stack):
                if frame.rule is self:
                    top = _unit_stack[-1]
                    top.low = min(top.low, position)
                    return True

            position = len(_unit_stack)
            frame = _UnitFrame(self, position)
            _unit_stack.append(frame)
            try:
                unit = self.parser.unit
            finally:
                _unit_stack.pop()

            if frame.low < position:
                outer = _unit_stack[-1]
                outer.low = min(outer.low, frame.low)
                return unit
            self._unit = unit
            return unit

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[Any]:
        if ctx.trace_rules:
            from kompeg._tracing import _traced_parse

            assert ctx.hook is not None
            return _traced_parse(self.parser, self.name, ctx, index, ctx.hook)
        return self.parser._parse(ctx, index)

    def __repr__(self) -> str:
        return self.name


def rule(fn: Callable[[], Parser[T]]) -> Rule:
    """
    Decorator to create a rule from a function returning its body.

    Example:
        @rule
        def parens():
            return P("(") * add_sub * P(")")

    The function runs once, the first time the rule is used, so it may refer
    to rules defined further down the module.
    """
    return Rule(fn.__name__, fn)


class Logged(Parser[Any]):
    """
    Reports entering and leaving the parser to a trace hook.

    Purely observational: the wrapped parser's result is returned unchanged.
    """

    def __init__(
        self, parser: Parser[Any], name: str, hook: TraceHook | None = None
    ):
        self.parser = parser
        self.name = name
        self.hook = hook

    @property
    def unit(self) -> bool:  # type: ignore[override]
        return self.parser.unit

    def _parse(self, ctx: ParseContext, index: int) -> ParseResult[Any]:
        from kompeg import _tracing

        hook = self.hook or ctx.hook or _tracing._default_hook
        return _tracing._traced_parse(self.parser, self.name, ctx, index, hook)

    def __repr__(self) -> str:
        return repr(self.parser)


def _operand(parser: Parser[Any]) -> str:
    """repr of a parser used as the receiver of a method call."""
    if isinstance(parser, (Sequence, Either)) or (
        isinstance(parser, (Mapped, FlatMapped, Capturing, Logged))
        and isinstance(parser.parser, (Sequence, Either))
    ):
        return f"({parser!r})"
    return repr(parser)
