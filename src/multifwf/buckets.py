"""
Run-scoped line buckets.

A Bucket is the ordered group of raw lines routed to one layout during a
demux run. Lines are kept in a spooled temporary file: in memory while
small, rolled over to disk once the buffer passes ``max_size`` bytes.

BucketSet owns one Bucket per registered layout and releases all of
their storage when its ``with`` block exits, whether the run succeeded
or not.
"""

from __future__ import annotations

import logging
import tempfile
from array import array
from typing import Dict, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_SPOOL_SIZE = 8 * 1024 * 1024


class Bucket:
    """Ordered, append-only lines for a single layout."""

    def __init__(self, name: str, max_size: int = DEFAULT_SPOOL_SIZE, encoding: str = "utf-8"):
        self.name = name
        # newline="\n": no translation, so "\r" inside a line survives the round trip
        self._buffer = tempfile.SpooledTemporaryFile(
            max_size=max_size,
            mode="w+",
            encoding=encoding,
            errors="surrogatepass",
            newline="\n",
            prefix="multifwf.",
        )
        self._line_numbers = array("q")
        self._closed = False

    def append(self, line: str, line_number: int) -> None:
        """Store a line (without terminator) and its 1-based input line number."""
        if self._closed:
            raise ValueError(f"Bucket '{self.name}' is closed")
        # "\n" delimits records in the buffer
        if "\n" in line:
            raise ValueError(f"Line {line_number} contains an embedded newline")
        self._buffer.write(line)
        self._buffer.write("\n")
        self._line_numbers.append(line_number)

    def __len__(self) -> int:
        return len(self._line_numbers)

    @property
    def spilled(self) -> bool:
        """True once the bucket rolled over to a file on disk."""
        # SpooledTemporaryFile has no public rollover flag; _rolled is a CPython internal
        return bool(getattr(self._buffer, "_rolled", False))

    @property
    def line_numbers(self) -> List[int]:
        return list(self._line_numbers)

    def line_number_at(self, position: int) -> Optional[int]:
        """Input line number of the 1-based ``position``-th line in this bucket."""
        if 1 <= position <= len(self._line_numbers):
            return self._line_numbers[position - 1]
        return None

    def lines(self) -> Iterator[str]:
        """Yield stored lines in insertion order."""
        if self._closed:
            raise ValueError(f"Bucket '{self.name}' is closed")
        self._buffer.flush()
        self._buffer.seek(0)
        for raw in self._buffer:
            yield raw[:-1]
        self._buffer.seek(0, 2)

    def close(self) -> None:
        if not self._closed:
            if self.spilled:
                logger.debug("Releasing spilled bucket %s (%d lines)", self.name, len(self))
            self._buffer.close()
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed


class BucketSet:
    """
    One Bucket per layout name, released together.

    Usage:
        with BucketSet(registry) as buckets:
            buckets["sp1"].append(line, 1)
    """

    def __init__(self, names: Iterable[str], max_size: int = DEFAULT_SPOOL_SIZE, encoding: str = "utf-8"):
        self._buckets: Dict[str, Bucket] = {}
        try:
            for name in names:
                self._buckets[name] = Bucket(name, max_size=max_size, encoding=encoding)
        except BaseException:
            self.close()
            raise

    def __getitem__(self, name: str) -> Bucket:
        return self._buckets[name]

    def __contains__(self, name) -> bool:
        return name in self._buckets

    def __iter__(self) -> Iterator[str]:
        return iter(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)

    def items(self):
        return self._buckets.items()

    def counts(self) -> Dict[str, int]:
        return {name: len(bucket) for name, bucket in self._buckets.items()}

    def close(self) -> None:
        for bucket in self._buckets.values():
            bucket.close()

    def __enter__(self) -> "BucketSet":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
