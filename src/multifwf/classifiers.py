"""
Stock line classifiers.

A classifier is any callable ``(line, registry) -> Optional[str]`` that
names the layout a line belongs to. Returning None (or a name the
registry does not know) drops the line.

The builders here cover the usual record-type conventions: a type code
at the start of the line, or a type code in a fixed column range.
"""

from typing import Callable, Mapping, Optional

from multifwf.layouts import LayoutRegistry

Classifier = Callable[[str, LayoutRegistry], Optional[str]]


def prefix_classifier(prefixes: Mapping[str, str]) -> Classifier:
    """
    Classify lines by their leading characters.

    Args:
        prefixes: line prefix -> layout name. When several prefixes match,
            the longest one wins.

    Example:
        classify = prefix_classifier({"1": "sp1", "2": "sp2"})
        classify("1AB", registry)  # -> "sp1"
    """
    if any(not p for p in prefixes):
        raise ValueError("Empty prefix would match every line")
    ordered = sorted(prefixes.items(), key=lambda item: len(item[0]), reverse=True)

    def classify(line: str, registry: LayoutRegistry) -> Optional[str]:
        for prefix, layout in ordered:
            if line.startswith(prefix):
                return layout
        return None

    return classify


def slice_classifier(start: int, stop: int, values: Mapping[str, str], strip: bool = False) -> Classifier:
    """
    Classify lines by the text found in ``line[start:stop]``.

    Args:
        start, stop: 0-based column range holding the record type code
        values: type code -> layout name
        strip: compare the code with surrounding whitespace removed
    """
    if start < 0 or stop <= start:
        raise ValueError(f"Invalid column range [{start}:{stop}]")
    table = dict(values)

    def classify(line: str, registry: LayoutRegistry) -> Optional[str]:
        key = line[start:stop]
        if strip:
            key = key.strip()
        return table.get(key)

    return classify


__all__ = ["Classifier", "prefix_classifier", "slice_classifier"]
