"""
Fixed-width decoder (default collaborator of the demux driver).

Splits each line into fields by width and builds a pandas DataFrame with
one column per field, in layout order.

Options (forwarded unchanged from ``run(**options)``):
    dtypes     : field name -> "str" | "int" | "float" | callable
                 Fields not listed stay strings. Names that do not belong
                 to the layout being decoded are ignored, so one mapping
                 can serve several layouts.
    strip      : trim surrounding whitespace from every value (default True)
    decimal    : decimal separator for numeric fields (default ".")
    thousands  : thousands separator removed from numeric fields
    na_values  : values (after stripping) read as missing
    strict     : reject lines longer than the record width (default False)

Lines shorter than the record width always fail.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd


class DecodeError(Exception):
    """Raised when a line cannot be decoded under its layout."""

    def __init__(
        self,
        message: str,
        layout: Optional[str] = None,
        position: Optional[int] = None,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.layout = layout
        self.position = position
        self.line_number = line_number
        self.line = line

    def tag(self, layout: str, line_number: Optional[int] = None, line: Optional[str] = None) -> "DecodeError":
        """Return a copy of this error carrying layout/input context."""
        return DecodeError(
            self.message,
            layout=layout,
            position=self.position,
            line_number=line_number if line_number is not None else self.line_number,
            line=line if line is not None else self.line,
        )

    def __str__(self) -> str:
        where = []
        if self.layout is not None:
            where.append(f"layout '{self.layout}'")
        if self.position is not None:
            where.append(f"record {self.position}")
        if self.line_number is not None:
            where.append(f"input line {self.line_number}")
        if not where:
            return self.message
        return f"{', '.join(where)}: {self.message}"


Converter = Union[str, Callable[[str], Any]]

_NUMERIC = ("int", "float")

# ASCII digits only: no "1_000", no "nan"/"inf", no non-Latin numerals
_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def _parse_number(value: str, kind: str, decimal: str, thousands: Optional[str]):
    text = value.strip()
    if thousands:
        text = text.replace(thousands, "")
    if decimal != ".":
        text = text.replace(decimal, ".")
    pattern = _INT_RE if kind == "int" else _FLOAT_RE
    if not pattern.fullmatch(text):
        raise ValueError(f"not a plain {kind} literal")
    if kind == "int":
        return int(text)
    return float(text)


def split_line(line: str, widths: Sequence[int]) -> List[str]:
    """Cut a line into consecutive fields of the given widths."""
    values = []
    start = 0
    for width in widths:
        values.append(line[start:start + width])
        start += width
    return values


def decode_fixed_width(
    lines: Iterable[str],
    widths: Sequence[int],
    field_names: Sequence[str],
    dtypes: Optional[Dict[str, Converter]] = None,
    strip: bool = True,
    decimal: str = ".",
    thousands: Optional[str] = None,
    na_values: Optional[Iterable[str]] = None,
    strict: bool = False,
) -> pd.DataFrame:
    """
    Decode fixed-width lines into a DataFrame.

    Args:
        lines: Raw lines without terminators
        widths: Field widths, in line order
        field_names: Column names, parallel to widths
        dtypes, strip, decimal, thousands, na_values, strict: see module docs

    Returns:
        DataFrame with columns == field_names

    Raises:
        DecodeError: With the 1-based position of the offending line
        ValueError: If dtypes names an unknown type
    """
    record_width = sum(widths)
    missing = set(na_values or ())
    converters: Dict[str, Converter] = {}
    for name, kind in (dtypes or {}).items():
        if name not in field_names:
            continue
        if not callable(kind) and kind not in ("str",) + _NUMERIC:
            raise ValueError(f"Unknown dtype for field '{name}': {kind!r}")
        converters[name] = kind

    columns: Dict[str, List[Any]] = {name: [] for name in field_names}

    for position, line in enumerate(lines, start=1):
        if len(line) < record_width:
            raise DecodeError(
                f"line has {len(line)} characters, layout needs {record_width}",
                position=position,
                line=line,
            )
        if strict and len(line) > record_width:
            raise DecodeError(
                f"line has {len(line)} characters, layout allows {record_width}",
                position=position,
                line=line,
            )

        for name, raw in zip(field_names, split_line(line, widths)):
            value = raw.strip() if strip else raw
            kind = converters.get(name, "str")

            if value in missing or (kind in _NUMERIC and not value.strip()):
                columns[name].append(None)
                continue

            try:
                if kind == "str":
                    columns[name].append(value)
                elif callable(kind):
                    columns[name].append(kind(value))
                else:
                    columns[name].append(_parse_number(value, kind, decimal, thousands))
            except (ValueError, TypeError) as e:
                raise DecodeError(
                    f"field '{name}' value {value!r} is not a valid {getattr(kind, '__name__', kind)}: {e}",
                    position=position,
                    line=line,
                ) from e

    data = {}
    for name in field_names:
        kind = converters.get(name, "str")
        if kind == "int":
            data[name] = pd.Series(columns[name], dtype="Int64")
        elif kind == "float":
            data[name] = pd.Series(columns[name], dtype="float64")
        else:
            data[name] = pd.Series(columns[name], dtype=object)

    return pd.DataFrame(data, columns=list(field_names))


__all__ = ["DecodeError", "decode_fixed_width", "split_line"]
