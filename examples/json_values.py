"""
Example: Parsing JSON with Kompeg

Builds Python values (dict, list, str, float, bool, None) straight from
the grammar. Shows cuts after unambiguous opening brackets, separated
repetition, and decoding escapes with alternation instead of post-processing.
"""

import sys

from kompeg import CharIn, End, P, Regex, WhileCharIn, rule

# =============================================================================
# Lexical pieces
# =============================================================================

space = WhileCharIn(" \r\n\t", min=0)
digits = WhileCharIn("0123456789")
hex_digit = CharIn("0123456789abcdefABCDEF")

ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

# =============================================================================
# Values
# =============================================================================

integral = P("0") + CharIn("123456789") * WhileCharIn("0123456789", min=0)
fractional = P(".") * digits
exponent = CharIn("eE") * CharIn("+-").opt() * digits
number = (P("-").opt() * integral * fractional.opt() * exponent.opt()).capture().map(float)

plain_chars = Regex(r'[^"\\]+').capture()
unicode_escape = P("\\u") * hex_digit.rep(min=4, max=4).capture().map(lambda h: chr(int(h, 16)))
simple_escape = P("\\") * CharIn(ESCAPES).capture().map(ESCAPES.__getitem__)
string = space * P('"') * (plain_chars + unicode_escape + simple_escape).rep().map("".join) * P('"')

true = P("true").map(lambda _: True)
false = P("false").map(lambda _: False)
null = P("null").map(lambda _: None)


@rule
def json_value():
    return space * (obj + array + string + true + false + null + number) * space


array = (P("[").cut() * json_value.rep(sep=",") * space * P("]")).map(list)
pair = string * space * P(":") * json_value
obj = (P("{").cut() * pair.rep(sep=",") * space * P("}")).map(dict)

document = json_value * End()


# =============================================================================
# Run examples
# =============================================================================

if __name__ == "__main__":
    samples = sys.argv[1:] or [
        '{"a": "b", "c": 5}',
        '[1, 2.5e3, "tab\\there", true, null, {"nested": []}]',
        '{"unterminated": [1, 2}',
    ]
    for text in samples:
        result = document.parse(text)
        if result:
            print(f"{text}\n  -> {result.value!r}\n")
        else:
            print(f"{result}\n")
