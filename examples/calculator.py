"""
Example: An arithmetic calculator with Kompeg

Parses and evaluates integer expressions with + - * / and parentheses,
computing the value while parsing. Shows recursive rules, value-carrying
sequences, repetition, and tracing.
"""

from kompeg import (
    CharIn,
    End,
    P,
    PrintHook,
    TraceConfig,
    WhileCharIn,
    explain,
    rule,
    use_tracing,
)

# =============================================================================
# Evaluation
# =============================================================================


def evaluate(first: int, rest: list[tuple[str, int]]) -> int:
    """Fold (operator, operand) pairs left to right onto the first operand."""
    total = first
    for op, value in rest:
        if op == "+":
            total += value
        elif op == "-":
            total -= value
        elif op == "*":
            total *= value
        else:
            total //= value
    return total


# =============================================================================
# Grammar
# =============================================================================

number = (CharIn("+-").opt() * WhileCharIn("0123456789")).capture().map(int)


@rule
def parens():
    return P("(") * add_sub * P(")")


factor = number + parens


@rule
def div_mul():
    return (factor * (CharIn("*/").capture() * factor).rep()).starmap(evaluate)


@rule
def add_sub():
    return (div_mul * (CharIn("+-").capture() * div_mul).rep()).starmap(evaluate)


expr = add_sub * End()


# =============================================================================
# Run examples
# =============================================================================

if __name__ == "__main__":
    print("=== Evaluate ===\n")
    for text in ["1+1", "2*(3+1)", "((1+1*2)+(3*4*5))/3", "2*(3+1"]:
        result = expr.parse(text)
        if result:
            print(f"  {text:24s} -> {result.value}")
        else:
            print(f"  {text:24s} -> FAILED")
            print("    " + str(result).replace("\n", "\n    "))

    print("\n=== Trace rules ===\n")
    with use_tracing(PrintHook(), TraceConfig(rules=True, max_depth=2)):
        expr.parse("(1+2)*3")

    print("\n=== Grammar ===\n")
    print(explain(expr, expand_rules=True))
