"""Tests for cut (commit) propagation through the combinators."""

import pytest

from kompeg import CharIn, End, P, Success, either


# =============================================================================
# Cut in Alternation
# =============================================================================


class TestCutInEither:
    """Test that a cut stops an enclosing choice from backtracking."""

    def test_without_cut_falls_through(self):
        p = (P("(") * P("a")) + P("(b")
        assert p.parse("(b") == Success(None, 2)

    def test_with_cut_blocks_sibling(self):
        p = (P("(").cut() * P("a")) + P("(b")
        result = p.parse("(b")
        assert result.is_failure
        assert result.cut is True
        assert result.index == 0
        assert result.cause is p

    def test_with_cut_still_matches_own_branch(self):
        p = (P("(").cut() * P("a")) + P("(b")
        assert p.parse("(a") == Success(None, 2)

    def test_failure_before_cut_falls_through(self):
        p = (P("x") * P("(").cut() * P("a")) + P("y")
        assert p.parse("y") == Success(None, 1)

    def test_earlier_branches_still_tried(self):
        p = P("(b") + (P("(").cut() * P("a"))
        assert p.parse("(b") == Success(None, 2)

    def test_nested_choice_reasserts_cut(self):
        inner = either(P("(").cut() * P("a"), P("z"))
        outer = either(inner, P("(b"))
        result = outer.parse("(b")
        assert result.is_failure
        assert result.cut is True

    def test_success_clears_cut(self):
        p = P("a").cut() + P("b")
        result = p.parse("a")
        assert result == Success(None, 1)
        assert result.cut is False


# =============================================================================
# Cut Wrapper & Sequence
# =============================================================================


class TestCutPropagation:
    """Test how the cut flag travels up through non-choice combinators."""

    def test_cut_marks_success(self):
        assert P("a").cut().parse("a").cut is True

    def test_cut_does_not_mark_failure(self):
        result = P("a").cut().parse("b")
        assert result.is_failure
        assert result.cut is False

    def test_sequence_carries_cut_on_success(self):
        assert (P("a").cut() * P("b")).parse("ab").cut is True

    def test_sequence_failure_after_cut_is_cut(self):
        result = (P("a").cut() * P("b")).parse("ac")
        assert result.is_failure
        assert result.cut is True
        assert result.index == 1

    def test_sequence_failure_before_cut_is_not_cut(self):
        result = (P("a") * P("b").cut()).parse("ac")
        assert result.cut is False

    @pytest.mark.parametrize(
        "build",
        [
            lambda p: p.map(lambda _: 1),
            lambda p: p.capture(),
            lambda p: p.log("p", hook=_SilentHook()),
        ],
        ids=["map", "capture", "log"],
    )
    def test_transforms_keep_cut(self, build):
        assert build(P("a").cut()).parse("a").cut is True

    def test_filter_rejection_keeps_cut(self):
        p = P("a").cut().capture().filter(lambda s: False)
        result = p.parse("a")
        assert result.is_failure
        assert result.cut is True
        assert result.index == 0

    def test_flat_map_failure_after_cut_is_cut(self):
        p = P("a").cut().flat_map(lambda _: P("b"))
        result = p.parse("ac")
        assert result.is_failure
        assert result.cut is True


# =============================================================================
# Cut & Absorbing Combinators
# =============================================================================


class TestCutAbsorbed:
    """Test that Optional and Not do not leak a failed branch's cut."""

    def test_optional_absorbs_failed_cut(self):
        p = (P("(").cut() * P("a")).opt() * P("(b")
        assert p.parse("(b") == Success(None, 2)

    def test_optional_keeps_successful_cut(self):
        assert (P("(").cut() * P("a")).opt().parse("(a").cut is True

    def test_optional_inside_choice_lets_siblings_run(self):
        p = either((P("(").cut() * P("a")).opt() * P("!"), P("(b"))
        assert p.parse("(b") == Success(None, 2)

    def test_not_absorbs_cut(self):
        result = (~(P("(").cut() * P("a"))).parse("(b")
        assert result == Success(None, 0)
        assert result.cut is False

    def test_not_failure_is_not_cut(self):
        result = (~P("a").cut()).parse("a")
        assert result.is_failure
        assert result.cut is False


# =============================================================================
# Cut & Repetition
# =============================================================================


class TestCutInRepeat:
    """Test cut handling inside repeated elements and separators."""

    ELEMENT = P("[").cut() * CharIn("x") * P("]")

    def test_without_cut_stops_quietly(self):
        p = (P("[") * CharIn("x") * P("]")).rep(sep=",")
        assert p.parse("[x],[y]") == Success([None], 3)

    def test_cut_failure_ends_repetition(self):
        result = self.ELEMENT.rep(sep=",").parse("[x],[y]")
        assert result == Success([None], 3)
        assert result.cut is True

    def test_ended_repetition_still_blocks_sibling(self):
        p = either(self.ELEMENT.rep(sep=",") * End(), P("[x],[y]"))
        result = p.parse("[x],[y]")
        assert result.is_failure
        assert result.cut is True

    def test_cut_successes_are_carried(self):
        result = self.ELEMENT.rep(sep=",").parse("[x],[x]")
        assert result == Success([None, None], 7)
        assert result.cut is True

    def test_cut_separator_is_not_consumed(self):
        p = CharIn("x").rep(sep=P(",").cut())
        result = p.parse("x,y")
        assert result == Success([None], 1)
        assert result.cut is True

    @pytest.mark.parametrize(
        "text,expected_index",
        [("", 0), ("ac", 0), ("ab", 2), ("abac", 2), ("ababa", 4)],
    )
    def test_min_zero_never_fails_under_cut(self, text, expected_index):
        result = (P("a").cut() * P("b")).rep().parse(text)
        assert result.is_success
        assert result.index == expected_index

    def test_short_of_min_after_cut_fails_at_start(self):
        result = (P("a").cut() * P("b")).rep(min=1).parse("ac")
        assert result.is_failure
        assert result.index == 0
        assert result.cut is True

    def test_short_of_min_keeps_observed_cut(self):
        result = P("a").cut().rep(min=3).parse("aa")
        assert result.is_failure
        assert result.index == 0
        assert result.cut is True

    def test_short_of_min_cut_blocks_sibling(self):
        p = either(P("a").cut().rep(min=3), P("aa"))
        assert p.parse("aa").is_failure

    def test_short_of_min_without_cut_falls_through(self):
        p = either(P("a").rep(min=3), P("aa"))
        assert p.parse("aa") == Success(None, 2)


class _SilentHook:
    def on_enter(self, name, ctx, index, depth):
        return None

    def on_exit(self, span, name, ctx, index, result, duration_ms, depth):
        pass

    def on_error(self, span, name, error, duration_ms, depth):
        pass
