"""Per-call parse state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kompeg._tracing import TraceConfig, TraceHook


@dataclass
class ParseContext:
    """
    State threaded through one top-level parse() call.

    A context is created per call and discarded when the call returns, so
    it must never be shared between two parses running at the same time.
    The grammar itself holds no per-call state.

    Attributes:
        input: The text being parsed; constant for the whole call
        hook: Trace hook used by logged parsers (None = default PrintHook)
        config: Trace configuration, or None for defaults
        depth: Nesting depth of traced parsers currently active
    """

    input: str
    hook: TraceHook | None = None
    config: TraceConfig | None = None
    depth: int = 0

    @property
    def trace_rules(self) -> bool:
        return self.hook is not None and self.config is not None and self.config.rules
