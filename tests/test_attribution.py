"""Tests for span containment and innermost-declaration attribution."""

from pursgraph.attribution import Candidate, Point, Span, innermost_enclosing, usage_span


def span(sr, sc, er, ec) -> Span:
    return Span(Point(sr, sc), Point(er, ec))


class TestSpanContains:
    """Row nesting plus column checks on shared boundary rows."""

    def test_usage_on_middle_row(self):
        assert span(2, 0, 6, 5).contains(span(4, 40, 4, 50))

    def test_usage_before_start_column_on_first_row(self):
        assert not span(2, 10, 6, 5).contains(span(2, 3, 2, 8))

    def test_usage_past_end_column_on_last_row(self):
        assert not span(2, 0, 6, 5).contains(span(6, 2, 6, 9))

    def test_usage_on_boundaries_is_contained(self):
        outer = span(2, 4, 6, 9)
        assert outer.contains(span(2, 4, 6, 9))

    def test_rows_outside(self):
        assert not span(2, 0, 6, 5).contains(span(1, 0, 1, 3))
        assert not span(2, 0, 6, 5).contains(span(7, 0, 7, 3))


class TestSpanSize:
    def test_single_row_measures_columns(self):
        assert span(3, 4, 3, 20).size() == (0, 16)

    def test_multi_row_uses_end_column(self):
        assert span(3, 4, 5, 20).size() == (2, 20)


class TestUsageSpan:
    def test_converts_one_based_to_zero_based(self):
        assert usage_span([9, 11], [9, 17]) == span(8, 10, 8, 16)


class TestInnermostEnclosing:
    """Attribution picks the smallest enclosing declaration."""

    def test_nested_declaration_wins(self):
        outer = Candidate("twice", span(8, 0, 10, 21))
        inner = Candidate("bump", span(10, 4, 10, 21))
        winner = innermost_enclosing([outer, inner], usage_span([11, 14], [11, 20]))
        assert winner is inner

    def test_order_of_candidates_does_not_matter_for_nesting(self):
        outer = Candidate("twice", span(8, 0, 10, 21))
        inner = Candidate("bump", span(10, 4, 10, 21))
        winner = innermost_enclosing([inner, outer], usage_span([11, 14], [11, 20]))
        assert winner is inner

    def test_no_enclosing_declaration(self):
        decl = Candidate("main", span(6, 0, 8, 10))
        assert innermost_enclosing([decl], usage_span([4, 15], [4, 21])) is None

    def test_tie_goes_to_first_candidate(self):
        first = Candidate("a", span(1, 0, 3, 5))
        second = Candidate("b", span(1, 0, 3, 5))
        assert innermost_enclosing([first, second], span(2, 0, 2, 1)) is first

    def test_empty_candidates(self):
        assert innermost_enclosing([], span(0, 0, 0, 1)) is None
