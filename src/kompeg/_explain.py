"""Plain-text outlines of grammars."""

from __future__ import annotations

from typing import Any

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
)
from kompeg._core import Parser
from kompeg._terminals import (
    Char,
    CharIn,
    CharPred,
    End,
    Fail,
    Literal,
    Pass,
    Regex,
    Start,
    WhileCharIn,
)


def explain(parser: Parser[Any], expand_rules: bool = False) -> str:
    """
    Generate a plain-text outline of what a parser matches.

    Rules are shown by name, so self-referential grammars print finitely.

    Args:
        parser: The grammar to explain
        expand_rules: If True, append the body of every rule reached,
                      each exactly once

    Example:
        number = CharIn("+-").opt() * WhileCharIn("0123456789")
        print(explain(number))

        # Output:
        # Match ALL in sequence:
        #   • OPTIONAL:
        #     • one of '+-'
        #   • run of '0123456789' (at least 1)
    """
    lines = _outline(parser)
    if not expand_rules:
        return "\n".join(lines)

    seen: set[int] = set()
    pending = _rules_in(parser)
    while pending:
        current = pending.pop(0)
        if id(current) in seen:
            continue
        seen.add(id(current))
        lines.append("")
        lines.append(f"{current.name} :=")
        lines.extend(_outline(current.parser, base_depth=1))
        pending.extend(_rules_in(current.parser))
    return "\n".join(lines)


def _outline(root: Parser[Any], base_depth: int = 0) -> list[str]:
    """Iterative outline of one parser tree, stopping at rules."""
    output_lines: list[str] = []
    stack: list[tuple[Parser[Any], int]] = [(root, base_depth)]

    while stack:
        p, depth = stack.pop()
        indent = "  " * depth
        bullet = "• " if depth > 0 else ""
        prefix = f"{indent}{bullet}"
        children: list[Parser[Any]] = []

        if isinstance(p, Sequence):
            header = "Match ALL in sequence:" if depth == 0 else "ALL in sequence:"
            output_lines.append(f"{prefix}{header}")
            children = p.parts
        elif isinstance(p, Either):
            header = "Match FIRST of:" if depth == 0 else "FIRST of:"
            output_lines.append(f"{prefix}{header}")
            children = p.parsers
        elif isinstance(p, Repeat):
            bounds = f"at least {p.min} times" if p.min else "any number of times"
            if p.max is not None:
                bounds = f"{p.min} to {p.max} times"
            sep = "" if isinstance(p.sep, Pass) else f", separated by {p.sep!r}"
            output_lines.append(f"{prefix}REPEAT ({bounds}{sep}):")
            children = [p.parser]
        elif isinstance(p, Optional):
            output_lines.append(f"{prefix}OPTIONAL:")
            children = [p.parser]
        elif isinstance(p, Not):
            output_lines.append(f"{prefix}NOT: {p.parser!r}")
        elif isinstance(p, Cut):
            output_lines.append(f"{prefix}COMMIT after:")
            children = [p.parser]
        elif isinstance(p, Mapped):
            output_lines.append(f"{prefix}MAP with {p.name}:")
            children = [p.parser]
        elif isinstance(p, FlatMapped):
            output_lines.append(f"{prefix}THEN parser chosen by {p.name}:")
            children = [p.parser]
        elif isinstance(p, Filtered):
            output_lines.append(f"{prefix}FILTER by {p.name}:")
            children = [p.parser]
        elif isinstance(p, Capturing):
            output_lines.append(f"{prefix}CAPTURE text of:")
            children = [p.parser]
        elif isinstance(p, Logged):
            output_lines.append(f"{prefix}LOG as {p.name!r}:")
            children = [p.parser]
        elif isinstance(p, Rule):
            output_lines.append(f"{prefix}rule {p.name}")
        else:
            output_lines.append(f"{prefix}{_describe_terminal(p)}")

        # Push in reverse so children come out in order
        for child in reversed(children):
            stack.append((child, depth + 1))

    return output_lines


def _describe_terminal(p: Parser[Any]) -> str:
    if isinstance(p, Literal):
        return f"literal {p.text!r}"
    if isinstance(p, Char):
        return f"literal {p.char!r}"
    if isinstance(p, CharIn):
        return f"one of {p.chars!r}"
    if isinstance(p, CharPred):
        return f"one char matching {p.name}"
    if isinstance(p, WhileCharIn):
        return f"run of {p.chars!r} (at least {p.min})"
    if isinstance(p, Regex):
        return f"regex {p.pattern.pattern!r}"
    if isinstance(p, Start):
        return "start of input"
    if isinstance(p, End):
        return "end of input"
    if isinstance(p, Pass):
        return "always pass"
    if isinstance(p, Fail):
        return "always fail"
    return repr(p)


def _rules_in(root: Parser[Any]) -> list[Rule]:
    """Rules reachable from root (root included) without entering a rule body."""
    found: list[Rule] = []
    stack: list[Parser[Any]] = [root]
    while stack:
        p = stack.pop()
        if isinstance(p, Rule):
            found.append(p)
            continue
        if isinstance(p, Sequence):
            stack.extend(reversed(p.parts))
        elif isinstance(p, Either):
            stack.extend(reversed(p.parsers))
        elif isinstance(p, Repeat):
            stack.append(p.sep)
            stack.append(p.parser)
        elif isinstance(
            p,
            (Optional, Not, Cut, Mapped, FlatMapped, Filtered, Capturing, Logged),
        ):
            stack.append(p.parser)
    return found
