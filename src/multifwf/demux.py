"""
Demux driver (Raw Lines -> One Table per Layout).

Reads a line-oriented source, asks a classifier which layout each line
belongs to, accumulates lines per layout and finally decodes every
non-empty group with its layout's widths and field names.

Pipeline:
    source --(skip, batches)--> classify --> BucketSet --> decoder --> RunResult

Failure policy:
    errors="raise"   (default) the first DecodeError aborts the whole call
    errors="collect" failing layouts map to None, their DecodeErrors are
                     kept in RunResult.errors and a UserWarning is issued

Buckets are released when the run ends, on success and on failure.
"""

from __future__ import annotations

import bz2
import gzip
import io
import logging
import lzma
import os
import warnings
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from itertools import islice
from typing import Callable, Dict, Iterator, List, Optional

import pandas as pd

from multifwf.buckets import DEFAULT_SPOOL_SIZE, Bucket, BucketSet
from multifwf.classifiers import Classifier
from multifwf.decoder import DecodeError, decode_fixed_width
from multifwf.layouts import LayoutRegistry

logger = logging.getLogger(__name__)

Decoder = Callable[..., pd.DataFrame]

_COMPRESSED_OPENERS = {
    ".gz": gzip.open,
    ".bz2": bz2.open,
    ".xz": lzma.open,
}

ERROR_POLICIES = ("raise", "collect")


class ClassifierError(Exception):
    """Raised when the line classifier fails."""

    def __init__(self, message: str, line_number: Optional[int] = None, line: Optional[str] = None):
        super().__init__(message)
        self.line_number = line_number
        self.line = line


@dataclass(eq=False)
class RunResult(Mapping):
    """
    Outcome of a demux run.

    Behaves as a read-only mapping of layout name -> DataFrame or None,
    in registry order. A layout maps to None when no line was routed to it
    (or, with errors="collect", when its lines failed to decode).

    Properties:
        tables: layout name -> decoded table or None
        errors: layout name -> DecodeError (errors="collect" only)
        counts: layout name -> number of lines routed to it
        dropped: lines the classifier did not route to any layout
    """

    tables: Dict[str, Optional[pd.DataFrame]]
    errors: Dict[str, DecodeError] = field(default_factory=dict)
    counts: Dict[str, int] = field(default_factory=dict)
    dropped: int = 0

    def __getitem__(self, name: str) -> Optional[pd.DataFrame]:
        return self.tables[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.tables)

    def __len__(self) -> int:
        return len(self.tables)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Optional[pd.DataFrame]]:
        return dict(self.tables)

    def __eq__(self, other) -> bool:
        if not isinstance(other, RunResult):
            return NotImplemented
        if list(self.tables) != list(other.tables):
            return False
        for name, table in self.tables.items():
            theirs = other.tables[name]
            if table is None or theirs is None:
                if table is not theirs:
                    return False
            elif not table.equals(theirs):
                return False
        return (
            self.counts == other.counts
            and self.dropped == other.dropped
            and {k: str(e) for k, e in self.errors.items()}
            == {k: str(e) for k, e in other.errors.items()}
        )

    __hash__ = None


def _is_literal(source) -> bool:
    return isinstance(source, str) and "\n" in source


@contextmanager
def open_lines(source, encoding: str = "utf-8") -> Iterator[Iterator[str]]:
    """
    Yield an iterator over the lines of ``source``.

    Accepts:
        - literal text (a str containing at least one newline)
        - a path (str or os.PathLike); .gz/.bz2/.xz are decompressed
        - an open text stream (left open for the caller)
        - any iterable of line strings

    Raises:
        FileNotFoundError: If a path does not exist
    """
    if _is_literal(source):
        yield iter(io.StringIO(source, newline="\n"))
        return

    if isinstance(source, (str, os.PathLike)):
        path = os.fspath(source)
        opener = _COMPRESSED_OPENERS.get(os.path.splitext(path)[1].lower())
        try:
            if opener is not None:
                fh = opener(path, "rt", encoding=encoding)
            else:
                fh = open(path, "r", encoding=encoding)
        except FileNotFoundError as e:
            raise FileNotFoundError(f"Input file not found: {path}") from e
        with fh:
            yield iter(fh)
        return

    if isinstance(source, (bytes, bytearray)):
        raise TypeError("Binary input is not supported; decode it or pass a path")

    yield iter(source)


def _strip_terminator(line: str) -> str:
    if line.endswith("\n"):
        return line[:-1]
    return line


def _batches(lines: Iterator[str], batch_size: int, limit: Optional[int]) -> Iterator[List[str]]:
    """Pull up to ``limit`` lines, ``batch_size`` at a time."""
    remaining = limit
    while remaining is None or remaining > 0:
        size = batch_size if remaining is None else min(batch_size, remaining)
        batch = list(islice(lines, size))
        if not batch:
            return
        if remaining is not None:
            remaining -= len(batch)
        yield batch


def _check_run_args(skip: int, limit: Optional[int], batch_size: int, errors: str) -> None:
    if not isinstance(skip, int) or skip < 0:
        raise ValueError(f"skip must be a non-negative integer, got {skip!r}")
    if limit is not None and (not isinstance(limit, int) or limit < 0):
        raise ValueError(f"limit must be None or a non-negative integer, got {limit!r}")
    if not isinstance(batch_size, int) or batch_size < 1:
        raise ValueError(f"batch_size must be a positive integer, got {batch_size!r}")
    if errors not in ERROR_POLICIES:
        raise ValueError(f"errors must be one of {ERROR_POLICIES}, got {errors!r}")


def _tag(error: DecodeError, layout: str, bucket: Bucket) -> DecodeError:
    line_number = None
    if error.position is not None:
        line_number = bucket.line_number_at(error.position)
    return error.tag(layout, line_number=line_number)


def assemble(
    buckets: BucketSet,
    registry: LayoutRegistry,
    decoder: Decoder = decode_fixed_width,
    errors: str = "raise",
    **options,
) -> RunResult:
    """
    Decode every non-empty bucket with its layout.

    Layouts are visited in bucket order, which is the registry order
    when the run started. Empty buckets map to None.

    Raises:
        DecodeError: Tagged with the layout name, the failing line's
            position in the bucket and its input line number
            (errors="raise" only)
    """
    tables: Dict[str, Optional[pd.DataFrame]] = {}
    failures: Dict[str, DecodeError] = {}

    for name, bucket in buckets.items():
        spec = registry[name]
        if not len(bucket):
            tables[name] = None
            continue

        logger.debug("Decoding %d line(s) for layout %s", len(bucket), name)
        try:
            table = decoder(list(bucket.lines()), spec.widths, spec.field_names, **options)
        except DecodeError as e:
            tagged = _tag(e, name, bucket)
            if errors == "raise":
                raise tagged from e
            warnings.warn(f"Skipping layout '{name}': {tagged}", UserWarning)
            failures[name] = tagged
            tables[name] = None
            continue

        if spec.index is not None:
            table = table.set_index(spec.index)
        tables[name] = table

    return RunResult(tables=tables, errors=failures, counts=buckets.counts())


def run(
    source,
    registry,
    classify: Classifier,
    skip: int = 0,
    limit: Optional[int] = None,
    batch_size: int = 16,
    decoder: Decoder = decode_fixed_width,
    errors: str = "raise",
    spool_max_size: int = DEFAULT_SPOOL_SIZE,
    encoding: str = "utf-8",
    **options,
) -> RunResult:
    """
    Demultiplex a fixed-width file into one table per layout.

    Args:
        source: Path, open text stream, literal text or iterable of lines
        registry: LayoutRegistry (or a mapping accepted by
            LayoutRegistry.from_mapping)
        classify: ``(line, registry) -> layout name or None``
        skip: Number of leading lines to discard unread
        limit: Maximum number of lines to read after ``skip`` (None = all)
        batch_size: Lines pulled from the source per read
        decoder: ``(lines, widths, field_names, **options) -> DataFrame``
        errors: "raise" (fail fast) or "collect" (best effort)
        spool_max_size: Bytes a bucket keeps in memory before spilling
            to a temporary file (0 = never spill)
        encoding: Text encoding used when ``source`` is a path
        **options: Passed unchanged to ``decoder``

    Returns:
        RunResult mapping every registered layout name to a DataFrame,
        or None when no line was routed to it

    Raises:
        ClassifierError: If ``classify`` raises
        DecodeError: If a layout's lines cannot be decoded (errors="raise")
        FileNotFoundError / OSError: If the source cannot be read
    """
    _check_run_args(skip, limit, batch_size, errors)
    registry = LayoutRegistry.from_mapping(registry)

    with open_lines(source, encoding=encoding) as lines, \
            BucketSet(registry, max_size=spool_max_size) as buckets:
        line_number = 0
        for _ in islice(lines, skip):
            line_number += 1

        dropped = 0
        for batch in _batches(lines, batch_size, limit):
            for raw in batch:
                line_number += 1
                line = _strip_terminator(raw)
                if "\n" in line:
                    raise ValueError(
                        f"Input line {line_number} contains an embedded newline; "
                        "split multi-line strings before passing them in"
                    )
                try:
                    name = classify(line, registry)
                except Exception as e:
                    raise ClassifierError(
                        f"Classifier failed on input line {line_number}: {e}",
                        line_number=line_number,
                        line=line,
                    ) from e

                if isinstance(name, str) and name in buckets:
                    buckets[name].append(line, line_number)
                else:
                    dropped += 1

        logger.debug(
            "Read %d line(s), routed %s, dropped %d",
            line_number, buckets.counts(), dropped,
        )
        result = assemble(buckets, registry, decoder=decoder, errors=errors, **options)
        result.dropped = dropped
        return result


# read_fwf-style alias
read_multi_fwf = run


__all__ = [
    "ClassifierError",
    "RunResult",
    "assemble",
    "open_lines",
    "run",
    "read_multi_fwf",
]
