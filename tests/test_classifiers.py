"""
Tests for the stock classifier builders.
"""

import pytest
from multifwf.classifiers import prefix_classifier, slice_classifier
from multifwf.layouts import LayoutRegistry


REGISTRY = LayoutRegistry()


class TestPrefixClassifier:

    def test_matches_prefix(self):
        classify = prefix_classifier({"1": "sp1", "2": "sp2"})
        assert classify("123456", REGISTRY) == "sp1"
        assert classify("287654", REGISTRY) == "sp2"

    def test_no_match_is_none(self):
        classify = prefix_classifier({"1": "sp1"})
        assert classify("9", REGISTRY) is None
        assert classify("", REGISTRY) is None

    def test_longest_prefix_wins(self):
        """'AB' beats 'A' regardless of declaration order."""
        classify = prefix_classifier({"A": "short", "AB": "long"})
        assert classify("ABC", REGISTRY) == "long"
        assert classify("AXC", REGISTRY) == "short"

    def test_empty_prefix_rejected(self):
        with pytest.raises(ValueError):
            prefix_classifier({"": "all"})


class TestSliceClassifier:

    def test_matches_column_range(self):
        classify = slice_classifier(3, 5, {"TR": "trade", "QT": "quote"})
        assert classify("001TR...", REGISTRY) == "trade"
        assert classify("001QT...", REGISTRY) == "quote"
        assert classify("001XX...", REGISTRY) is None

    def test_short_line_is_none(self):
        classify = slice_classifier(3, 5, {"TR": "trade"})
        assert classify("00", REGISTRY) is None

    def test_strip(self):
        classify = slice_classifier(0, 3, {"H": "header"}, strip=True)
        assert classify(" H rest", REGISTRY) == "header"

    @pytest.mark.parametrize("start,stop", [(-1, 2), (3, 3), (4, 2)])
    def test_invalid_range(self, start, stop):
        with pytest.raises(ValueError):
            slice_classifier(start, stop, {})
