"""
Tests for the default fixed-width decoder.

The decoder turns a group of lines that share one layout into a
DataFrame. It must fail with the position of the offending line.
"""

import math

import pandas as pd
import pytest
from multifwf.decoder import DecodeError, decode_fixed_width, split_line


class TestSplitLine:
    def test_consecutive_fields(self):
        assert split_line("123456", [1, 2, 3]) == ["1", "23", "456"]

    def test_ignores_trailing_content(self):
        assert split_line("1234567890", [1, 2]) == ["1", "23"]


class TestDecodeStrings:
    """Default decoding keeps every field as a string."""

    def test_basic_table(self):
        df = decode_fixed_width(["1AB", "1CD"], [1, 2], ["t", "v"])
        assert list(df.columns) == ["t", "v"]
        assert df.to_dict("records") == [
            {"t": "1", "v": "AB"},
            {"t": "1", "v": "CD"},
        ]

    def test_strips_by_default(self):
        df = decode_fixed_width(["1 A ", "2B  "], [1, 3], ["t", "v"])
        assert list(df["v"]) == ["A", "B"]

    def test_strip_disabled(self):
        df = decode_fixed_width(["1 A "], [1, 3], ["t", "v"], strip=False)
        assert df.loc[0, "v"] == " A "

    def test_na_values(self):
        df = decode_fixed_width(["1NA", "2XY"], [1, 2], ["t", "v"], na_values=["NA"])
        assert df.loc[0, "v"] is None
        assert df.loc[1, "v"] == "XY"

    def test_longer_lines_allowed_unless_strict(self):
        df = decode_fixed_width(["1ABextra"], [1, 2], ["t", "v"])
        assert df.loc[0, "v"] == "AB"
        with pytest.raises(DecodeError) as info:
            decode_fixed_width(["1AB", "1ABextra"], [1, 2], ["t", "v"], strict=True)
        assert info.value.position == 2


class TestDecodeNumbers:
    """Type coercion driven by the dtypes option."""

    def test_int_and_float(self):
        df = decode_fixed_width(
            ["A   12  3.50", "B    7 10.25"],
            [1, 5, 6],
            ["k", "qty", "price"],
            dtypes={"qty": "int", "price": "float"},
        )
        assert str(df["qty"].dtype) == "Int64"
        assert list(df["qty"]) == [12, 7]
        assert df["price"].dtype == "float64"
        assert list(df["price"]) == [3.5, 10.25]

    def test_blank_numeric_is_missing(self):
        df = decode_fixed_width(
            ["A  12", "B    "], [1, 4], ["k", "n"], dtypes={"n": "int"}
        )
        assert df.loc[0, "n"] == 12
        assert pd.isna(df.loc[1, "n"])

    def test_blank_float_is_nan(self):
        df = decode_fixed_width(["A    "], [1, 4], ["k", "x"], dtypes={"x": "float"})
        assert math.isnan(df.loc[0, "x"])

    def test_locale_separators(self):
        df = decode_fixed_width(
            ["1.234,5"], [7], ["amount"],
            dtypes={"amount": "float"}, decimal=",", thousands=".",
        )
        assert df.loc[0, "amount"] == 1234.5

    def test_callable_converter(self):
        df = decode_fixed_width(["abc"], [3], ["s"], dtypes={"s": str.upper})
        assert df.loc[0, "s"] == "ABC"

    def test_dtypes_for_other_layouts_are_ignored(self):
        df = decode_fixed_width(["1AB"], [1, 2], ["t", "v"], dtypes={"price": "float"})
        assert df.loc[0, "v"] == "AB"

    def test_unknown_dtype(self):
        with pytest.raises(ValueError):
            decode_fixed_width(["1AB"], [1, 2], ["t", "v"], dtypes={"v": "decimal128"})


class TestDecodeErrors:
    """Failures carry the 1-based position within the group."""

    def test_short_line(self):
        with pytest.raises(DecodeError) as info:
            decode_fixed_width(["1AB", "1C"], [1, 2], ["t", "v"])
        assert info.value.position == 2
        assert info.value.line == "1C"
        assert "needs 3" in str(info.value)

    def test_non_numeric_value(self):
        with pytest.raises(DecodeError) as info:
            decode_fixed_width(
                ["A  12", "B  1x", "C  13"], [1, 4], ["k", "n"], dtypes={"n": "int"}
            )
        assert info.value.position == 2
        assert "'n'" in str(info.value)

    @pytest.mark.parametrize("kind,value", [
        ("int", "1_000"),
        ("int", "١٢٣"),
        ("int", "1.5"),
        ("float", " nan"),
        ("float", " inf"),
        ("float", "1_0.5"),
    ])
    def test_loose_numeric_literals_rejected(self, kind, value):
        """Only plain ASCII numerals decode into numeric columns."""
        with pytest.raises(DecodeError) as info:
            decode_fixed_width([f"A{value:>5}"], [1, 5], ["k", "n"], dtypes={"n": kind})
        assert info.value.position == 1

    def test_signed_and_exponent_accepted(self):
        df = decode_fixed_width(
            ["  -12 1.5e3", "   +7   .25"], [5, 6], ["i", "f"],
            dtypes={"i": "int", "f": "float"},
        )
        assert list(df["i"]) == [-12, 7]
        assert list(df["f"]) == [1500.0, 0.25]

    def test_tag_adds_context(self):
        error = DecodeError("bad", position=2)
        tagged = error.tag("sp1", line_number=7)
        assert tagged.layout == "sp1"
        assert tagged.position == 2
        assert tagged.line_number == 7
        assert str(tagged) == "layout 'sp1', record 2, input line 7: bad"

    def test_untagged_message(self):
        assert str(DecodeError("bad")) == "bad"
