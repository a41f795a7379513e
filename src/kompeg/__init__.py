"""
Kompeg - Composable PEG Parser Combinators

A Python library for building scannerless recursive-descent parsers from
small matchers, composed with operators. Ordered choice, greedy repetition
and explicit cuts give predictable PEG semantics.

Operators:
    *  = sequence (unit values such as literals drop out of the result)
    +  = ordered choice (first success wins)
    ~  = not (negative lookahead)

Example:
    from kompeg import P, End, WhileCharIn, rule

    number = WhileCharIn("0123456789").capture().map(int)

    @rule
    def value():
        return number + parens

    @rule
    def parens():
        return P("(") * value * P(")")

    expr = value * End()

    expr.parse("((42))").get_or_fail().value  # 42
"""

from __future__ import annotations

__version__ = "0.1.0"
__all__ = [
    # Core
    "Parser",
    "ParseContext",
    "seq",
    "either",
    "not_",
    # Results
    "Success",
    "Failure",
    "ParseResult",
    "ParseError",
    # Terminals
    "Start",
    "End",
    "Pass",
    "Fail",
    "Literal",
    "Char",
    "CharIn",
    "CharPred",
    "WhileCharIn",
    "Regex",
    "literal",
    "P",
    # Combinators
    "Sequence",
    "Either",
    "Repeat",
    "Optional",
    "Not",
    "Cut",
    "Mapped",
    "FlatMapped",
    "Filtered",
    "Capturing",
    "Rule",
    "Logged",
    "rule",
    # Tracing
    "TraceHook",
    "TraceConfig",
    "use_tracing",
    "PrintHook",
    "LoggingHook",
    "OpenTelemetryHook",
    # Explanation
    "explain",
]

from kompeg._core import Parser, either, not_, seq
from kompeg._context import ParseContext
from kompeg._result import Failure, ParseError, ParseResult, Success
from kompeg._terminals import (
    Char,
    CharIn,
    CharPred,
    End,
    Fail,
    Literal,
    P,
    Pass,
    Regex,
    Start,
    WhileCharIn,
    literal,
)
from kompeg._combinators import (
    Capturing,
    Cut,
    Either,
    Filtered,
    FlatMapped,
    Logged,
    Mapped,
    Not,
    Optional,
    Repeat,
    Rule,
    Sequence,
    rule,
)
from kompeg._tracing import (
    LoggingHook,
    OpenTelemetryHook,
    PrintHook,
    TraceConfig,
    TraceHook,
    use_tracing,
)
from kompeg._explain import explain
