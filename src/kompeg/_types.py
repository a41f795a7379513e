"""Shared type variables and context variables."""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from kompeg._tracing import TraceConfig, TraceHook

T = TypeVar("T")
U = TypeVar("U")

# Context variables for scoped tracing (see use_tracing)
_trace_hook: ContextVar[TraceHook | None] = ContextVar("trace_hook", default=None)
_trace_config: ContextVar[TraceConfig | None] = ContextVar(
    "trace_config", default=None
)
