"""
Multi-layout Fixed-Width File (multifwf) Package

Reads fixed-width text where different lines follow different record
layouts, and returns one table per layout.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Which layout a line belongs to (the caller's classifier decides)
    - Whether layouts overlap or cover every line
    - Any particular file format beyond "lines of fixed-width fields"

Layouts are declared once, in a LayoutRegistry.
Classification is an injected function.
Decoding happens once per layout, after all lines are routed.
"""

from multifwf.classifiers import prefix_classifier, slice_classifier
from multifwf.decoder import DecodeError, decode_fixed_width
from multifwf.demux import ClassifierError, RunResult, read_multi_fwf, run
from multifwf.layouts import Field, InvalidLayout, LayoutRegistry, LayoutSpec

__version__ = "0.1.0"

__all__ = [
    "ClassifierError",
    "DecodeError",
    "Field",
    "InvalidLayout",
    "LayoutRegistry",
    "LayoutSpec",
    "RunResult",
    "decode_fixed_width",
    "prefix_classifier",
    "read_multi_fwf",
    "run",
    "slice_classifier",
]
