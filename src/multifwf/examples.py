"""
Example exchange message log for proof-of-concept runs.

Builds a small venue log with four record types, each identified by its
first character:

    H  header   type(1) date(8) venue(4)
    T  trade    type(1) time(6) symbol(6) qty(6) price(9)
    Q  quote    type(1) time(6) symbol(6) bid(9) ask(9)
    Z  trailer  type(1) count(6)

Lines starting with '#' are comments and match no layout.
"""
from typing import List

from multifwf.classifiers import prefix_classifier
from multifwf.layouts import LayoutRegistry


EXAMPLE_DTYPES = {
    "qty": "int",
    "price": "float",
    "bid": "float",
    "ask": "float",
    "count": "int",
}


def build_example_registry() -> LayoutRegistry:
    registry = LayoutRegistry()
    registry.register("header", [1, 8, 4], ["type", "date", "venue"])
    registry.register("trade", [1, 6, 6, 6, 9], ["type", "time", "symbol", "qty", "price"])
    registry.register("quote", [1, 6, 6, 9, 9], ["type", "time", "symbol", "bid", "ask"])
    registry.register("trailer", [1, 6], ["type", "count"])
    return registry


example_classifier = prefix_classifier({
    "H": "header",
    "T": "trade",
    "Q": "quote",
    "Z": "trailer",
})


def _trade(time: str, symbol: str, qty: int, price: float) -> str:
    return f"T{time:6}{symbol:<6}{qty:>6}{price:>9.2f}"


def _quote(time: str, symbol: str, bid: float, ask: float) -> str:
    return f"Q{time:6}{symbol:<6}{bid:>9.2f}{ask:>9.2f}"


def build_example_lines(trade_count: int = 3) -> List[str]:
    """Header, interleaved quotes/trades, a comment and a trailer."""
    lines = ["H20240102XLON", "# session open"]
    for i in range(trade_count):
        time = f"0900{i:02d}"
        lines.append(_quote(time, "VOD", 100.0 + i, 100.5 + i))
        lines.append(_trade(time, "VOD", 100 * (i + 1), 100.25 + i))
    lines.append(f"Z{len(lines) - 1:>6}")
    return lines


def build_example_text(trade_count: int = 3) -> str:
    return "\n".join(build_example_lines(trade_count)) + "\n"
