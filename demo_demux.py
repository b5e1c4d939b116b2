"""
Demo: Demultiplex the example exchange log and print each table.
"""

from multifwf.demux import run
from multifwf.examples import (
    EXAMPLE_DTYPES,
    build_example_registry,
    build_example_text,
    example_classifier,
)
from multifwf.serialization import registry_to_yaml


def print_result(result):
    """Pretty-print a RunResult."""
    print()
    print("=" * 70)
    print("DEMUX RESULT")
    print("=" * 70)
    print(f"  Dropped lines: {result.dropped}")
    for name, table in result.items():
        print()
        print(f"[{name}]  {result.counts.get(name, 0)} line(s)")
        if table is None:
            print("  (no records)")
        else:
            print(table.to_string(index=False))
    print()


def main():
    registry = build_example_registry()
    print("Layouts:")
    print(registry_to_yaml(registry))

    result = run(
        build_example_text(trade_count=4),
        registry,
        example_classifier,
        dtypes=EXAMPLE_DTYPES,
    )
    print_result(result)


if __name__ == "__main__":
    main()
