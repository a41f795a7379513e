"""
End-to-end tests: the calculator and JSON grammars from examples/.

Run with: pytest tests/test_grammars.py -v
"""

import importlib.util
from pathlib import Path

import pytest

from kompeg import Failure, ParseError, Success

EXAMPLES = Path(__file__).resolve().parent.parent / "examples"


def _load(name):
    spec = importlib.util.spec_from_file_location(name, EXAMPLES / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


calculator = _load("calculator")
json_values = _load("json_values")


# =============================================================================
# Calculator Tests
# =============================================================================


class TestCalculator:
    """Test the arithmetic evaluator."""

    def test_number(self):
        number = calculator.number
        assert number.parse("123") == Success(123, 3)
        assert number.parse("+42") == Success(42, 3)
        assert number.parse("-42") == Success(-42, 3)
        assert number.parse("x").is_failure

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("1", 1),
            ("1+1", 2),
            ("3-1", 2),
            ("2*3", 6),
            ("6/2", 3),
            ("7/2", 3),
            ("(2)", 2),
            ("2*(3+1)", 8),
            ("1+1*2", 3),
            ("(1+1*2)+3", 6),
            ("((1+1*2)+(3*4*5))", 63),
            ("((1+1*2)+(3*4*5))/3", 21),
            ("2*(3+1)/2*(1+1)", 8),
            ("2*(2*(1+1)+4)", 16),
        ],
    )
    def test_evaluates(self, text, expected):
        assert calculator.expr.parse(text).get_or_fail().value == expected

    @pytest.mark.parametrize("text", ["", "(", "2*(3+1", "1+", "1)", "()"])
    def test_rejects(self, text):
        result = calculator.expr.parse(text)
        assert isinstance(result, Failure)
        with pytest.raises(ParseError):
            result.get_or_fail()

    def test_failure_points_past_valid_prefix(self):
        result = calculator.expr.parse("1+2)")
        assert result.index == 3
        assert "End()" in str(result)


# =============================================================================
# JSON Tests
# =============================================================================


def parse_json(text):
    return json_values.document.parse(text).get_or_fail().value


class TestJsonScalars:
    """Test numbers, strings and literals."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("0", 0.0),
            ("1230", 1230.0),
            ("-12", -12.0),
            ("1.5", 1.5),
            ("-1.5e3", -1500.0),
            ("2E-2", 0.02),
        ],
    )
    def test_number(self, text, expected):
        assert parse_json(text) == expected

    @pytest.mark.parametrize("text", ["-", "01", "1.", ".5", "1e"])
    def test_bad_number(self, text):
        assert json_values.document.parse(text).is_failure

    def test_literals(self):
        assert parse_json("true") is True
        assert parse_json("false") is False
        assert parse_json("null") is None

    @pytest.mark.parametrize(
        "text,expected",
        [
            ('""', ""),
            ('"abc"', "abc"),
            ('"a\\tb"', "a\tb"),
            ('"say \\"hi\\""', 'say "hi"'),
            ('"a\\\\b"', "a\\b"),
            ('"\\u2665"', "♥"),
            ('"x\\u0041y"', "xAy"),
        ],
    )
    def test_string(self, text, expected):
        assert parse_json(text) == expected

    @pytest.mark.parametrize("text", ['"\\x"', '"\\uxxxx"', '"\\uab"', '"open'])
    def test_bad_string(self, text):
        assert json_values.document.parse(text).is_failure


class TestJsonContainers:
    """Test arrays and objects."""

    def test_object_with_two_entries(self):
        value = parse_json('{"a": "b", "c": 5}')
        assert value == {"a": "b", "c": 5.0}
        assert list(value) == ["a", "c"]

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("[]", []),
            ("[ ]", []),
            ("[1]", [1.0]),
            ("[1, 2]", [1.0, 2.0]),
            ("[[]]", [[]]),
            ("[{}, {}]", [{}, {}]),
            ("{}", {}),
            ("{ }", {}),
            ('{ "a" : 1 }', {"a": 1.0}),
            (
                '{"a": [1, {"b": null}], "c": true}',
                {"a": [1.0, {"b": None}], "c": True},
            ),
        ],
    )
    def test_container(self, text, expected):
        assert parse_json(text) == expected

    def test_surrounding_whitespace(self):
        assert parse_json('\n  {"a": [true]}\t ') == {"a": [True]}

    def test_long_array(self):
        text = "[" + ", ".join(str(i) for i in range(1000)) + "]"
        assert parse_json(text) == [float(i) for i in range(1000)]

    @pytest.mark.parametrize(
        "text",
        ["", "{", "[1,", "[1,]", "[[1,]", '{"a" 1}', '{"a": 1,}', "nul", "[1 2]"],
    )
    def test_malformed_input_is_a_failure(self, text):
        result = json_values.document.parse(text)
        assert result.is_failure

    def test_cut_after_bracket_reports_inner_failure(self):
        result = json_values.array.parse("[1, }")
        assert result.is_failure
        assert result.cut is True
