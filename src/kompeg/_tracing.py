"""Tracing hooks for logged parsers and rules."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from kompeg._context import ParseContext
from kompeg._result import ParseResult, Success
from kompeg._types import _trace_config, _trace_hook

if TYPE_CHECKING:
    from kompeg._core import Parser

# Optional OpenTelemetry imports - only needed if using OpenTelemetryHook
try:
    from opentelemetry.trace import (
        Status as _Status,
    )
    from opentelemetry.trace import (
        StatusCode as _StatusCode,
    )
    from opentelemetry.trace import (
        set_span_in_context as _set_span_in_context,
    )

    _HAS_OPENTELEMETRY = True
except ImportError:
    _HAS_OPENTELEMETRY = False
    _Status = None
    _StatusCode = None
    _set_span_in_context = None


# =============================================================================
# Hook Protocol & Configuration
# =============================================================================


@runtime_checkable
class TraceHook(Protocol):
    """
    Protocol for trace hooks.

    Implement this to send parser traces to logging, OpenTelemetry, or
    anything else.

    Example:
        class MyHook:
            def on_enter(self, name, ctx, index, depth):
                print(f"{'  ' * depth}-> {name} @ {index}")
                return None  # span token

            def on_exit(self, span, name, ctx, index, result, duration_ms, depth):
                status = "✔" if result else "✗"
                print(f"{'  ' * depth}<- {name} {status} @ {result.index}")

            def on_error(self, span, name, error, duration_ms, depth):
                print(f"{'  ' * depth}<- {name} ERROR: {error}")
    """

    def on_enter(self, name: str, ctx: ParseContext, index: int, depth: int) -> Any:
        """
        Called before running a traced parser.

        Args:
            name: Name of the logged parser or rule
            ctx: Context of the running parse (ctx.input is the text)
            index: Index the parser starts at
            depth: Nesting depth of traced parsers (0 = outermost)

        Returns:
            Span token to pass to on_exit (can be None)
        """
        ...

    def on_exit(
        self,
        span: Any,
        name: str,
        ctx: ParseContext,
        index: int,
        result: ParseResult[Any],
        duration_ms: float,
        depth: int,
    ) -> None:
        """
        Called after a traced parser returns.

        Args:
            span: Token returned from on_enter
            name: Name of the logged parser or rule
            ctx: Context of the running parse
            index: Index the parser started at
            result: The Success or Failure it returned
            duration_ms: Execution time in milliseconds
            depth: Nesting depth
        """
        ...

    def on_error(
        self, span: Any, name: str, error: Exception, duration_ms: float, depth: int
    ) -> None:
        """
        Called if a callback under a traced parser raises.

        The exception is re-raised after this returns.
        """
        ...


@dataclass
class TraceConfig:
    """
    Configuration for tracing behavior.

    Attributes:
        rules: If True, every Rule invocation is traced as if logged
        max_depth: Maximum depth to trace (None = unlimited)
    """

    rules: bool = False
    max_depth: int | None = None


@contextmanager
def use_tracing(hook: TraceHook, config: TraceConfig | None = None):
    """
    Context manager to trace all parse() calls in scope.

    Args:
        hook: TraceHook implementation to receive trace events
        config: Optional TraceConfig to customize tracing behavior

    Example:
        with use_tracing(LoggingHook(logger)):
            grammar.log("expr").parse(text)

        # Trace every rule, not just logged parsers
        with use_tracing(PrintHook(), TraceConfig(rules=True, max_depth=3)):
            grammar.parse(text)
    """
    hook_token = _trace_hook.set(hook)
    config_token = _trace_config.set(config or TraceConfig())
    try:
        yield
    finally:
        _trace_hook.reset(hook_token)
        _trace_config.reset(config_token)


def _traced_parse(
    parser: Parser[Any],
    name: str,
    ctx: ParseContext,
    index: int,
    hook: TraceHook,
) -> ParseResult[Any]:
    """Run a parser one level deeper, reporting enter/exit to the hook."""
    depth = ctx.depth
    config = ctx.config
    if config is not None and config.max_depth is not None and depth > config.max_depth:
        return parser._parse(ctx, index)

    span = hook.on_enter(name, ctx, index, depth)
    start = time.perf_counter()
    ctx.depth = depth + 1
    try:
        result = parser._parse(ctx, index)
    except Exception as e:
        duration_ms = (time.perf_counter() - start) * 1000
        hook.on_error(span, name, e, duration_ms, depth)
        raise
    finally:
        ctx.depth = depth

    duration_ms = (time.perf_counter() - start) * 1000
    hook.on_exit(span, name, ctx, index, result, duration_ms, depth)
    return result


# =============================================================================
# Built-in Trace Hooks
# =============================================================================


def _describe(ctx: ParseContext, index: int, result: ParseResult[Any]) -> str:
    if isinstance(result, Success):
        return f"Success(:{result.index},'{ctx.input[index:result.index]}')"
    return "Failure"


class PrintHook:
    """
    Trace hook that writes one line per event, indented by depth.

    Example:
        digit = CharIn("0123456789").log("digit")
        with use_tracing(PrintHook()):
            (digit * "+" * digit).log("sum").parse("1+2")

        # Output:
        # +sum:0
        #   +digit:0
        #   -digit:0 Success(:1,'1')
        #   +digit:2
        #   -digit:2 Success(:3,'2')
        # -sum:0 Success(:3,'1+2')
    """

    def __init__(
        self,
        indent: str = "  ",
        output: Callable[[str], Any] = print,
        show_timing: bool = False,
    ):
        self.indent = indent
        self.output = output
        self.show_timing = show_timing

    def on_enter(self, name: str, ctx: ParseContext, index: int, depth: int) -> None:
        self.output(f"{self.indent * depth}+{name}:{index}")

    def on_exit(
        self,
        span: None,
        name: str,
        ctx: ParseContext,
        index: int,
        result: ParseResult[Any],
        duration_ms: float,
        depth: int,
    ) -> None:
        line = f"{self.indent * depth}-{name}:{index} {_describe(ctx, index, result)}"
        if self.show_timing:
            line += f" ({duration_ms:.2f}ms)"
        self.output(line)

    def on_error(
        self, span: None, name: str, error: Exception, duration_ms: float, depth: int
    ) -> None:
        self.output(f"{self.indent * depth}-{name} ERROR: {error}")


# Used by logged parsers when neither the parser nor the parse call has a hook
_default_hook = PrintHook()


class LoggingHook:
    """
    Trace hook that logs to a Python logger.

    Example:
        import logging
        logger = logging.getLogger("kompeg")

        with use_tracing(LoggingHook(logger)):
            grammar.parse(text)
    """

    def __init__(self, logger: logging.Logger, level: int = logging.DEBUG):
        self.logger = logger
        self.level = level

    def on_enter(self, name: str, ctx: ParseContext, index: int, depth: int) -> None:
        self.logger.log(self.level, f"[ENTER] {name}:{index} (depth={depth})")

    def on_exit(
        self,
        span: None,
        name: str,
        ctx: ParseContext,
        index: int,
        result: ParseResult[Any],
        duration_ms: float,
        depth: int,
    ) -> None:
        self.logger.log(
            self.level,
            f"[EXIT] {name}:{index} -> {_describe(ctx, index, result)} "
            f"({duration_ms:.2f}ms)",
        )

    def on_error(
        self, span: None, name: str, error: Exception, duration_ms: float, depth: int
    ) -> None:
        self.logger.error(f"[ERROR] {name} -> {error} ({duration_ms:.2f}ms)")


class OpenTelemetryHook:
    """
    OpenTelemetry trace hook: one span per traced parser.

    - Parent/child spans follow the nesting of logged parsers and rules
    - Attributes: kompeg.name, kompeg.index, kompeg.depth, kompeg.success,
      kompeg.end_index, kompeg.duration_ms
    - A parse Failure is recorded as kompeg.success=False, not as a span
      error: failing branches are routine in ordered choice
    - Exceptions from callbacks set the span status to ERROR

    Requires: pip install opentelemetry-api
    """

    def __init__(self, tracer, *, max_span_depth: int | None = None):
        if not _HAS_OPENTELEMETRY:
            raise ImportError(
                "OpenTelemetry is not installed. "
                "Install it with: pip install opentelemetry-api"
            )
        self.tracer = tracer
        self.max_span_depth = max_span_depth
        self._span_stack: list[Any] = []

    def on_enter(self, name: str, ctx: ParseContext, index: int, depth: int) -> Any:
        # Guaranteed non-None because __init__ checks _HAS_OPENTELEMETRY
        assert _set_span_in_context is not None

        if self.max_span_depth is not None and depth > self.max_span_depth:
            return None

        parent = self._span_stack[-1] if self._span_stack else None
        parent_ctx = _set_span_in_context(parent) if parent else None

        span = self.tracer.start_span(name, context=parent_ctx)
        span.set_attribute("kompeg.name", name)
        span.set_attribute("kompeg.index", index)
        span.set_attribute("kompeg.depth", depth)

        self._span_stack.append(span)
        return span

    def on_exit(
        self,
        span: Any,
        name: str,
        ctx: ParseContext,
        index: int,
        result: ParseResult[Any],
        duration_ms: float,
        depth: int,
    ) -> None:
        if span is None:
            return

        span.set_attribute("kompeg.success", result.is_success)
        span.set_attribute("kompeg.end_index", result.index)
        span.set_attribute("kompeg.duration_ms", duration_ms)
        span.end()
        self._span_stack.pop()

    def on_error(
        self,
        span: Any,
        name: str,
        error: Exception,
        duration_ms: float,
        depth: int,
    ) -> None:
        if span is None:
            return

        # Guaranteed non-None because __init__ checks _HAS_OPENTELEMETRY
        assert _Status is not None
        assert _StatusCode is not None

        span.set_attribute("kompeg.success", False)
        span.set_attribute("kompeg.duration_ms", duration_ms)
        span.record_exception(error)
        span.set_status(_Status(_StatusCode.ERROR, str(error)))
        span.end()
        self._span_stack.pop()
