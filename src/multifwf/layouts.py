"""
Layout Model Objects

Defines the named fixed-width record layouts that drive demultiplexing.

These are pure data classes representing:
    - Fields (width + name)
    - LayoutSpecs (ordered fields of one record type)
    - LayoutRegistry (named layouts, in insertion order)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about classification or decoding
        - Are immutable once registered
        - Are fully serializable
        - Are validated eagerly, never at run time
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple


class InvalidLayout(ValueError):
    """Raised when a layout definition is malformed."""
    pass


@dataclass(frozen=True)
class Field:
    """
    A single fixed-width column.

    Properties:
        width: Number of characters the field occupies (> 0)
        name: Column name in the decoded table
    """

    width: int
    name: str


@dataclass(frozen=True)
class LayoutSpec:
    """
    Ordered field definitions of one record type.

    Example:
        A trade line "T20240102  101.5" could be described as

        LayoutSpec(fields=(
            Field(1, "type"),
            Field(8, "date"),
            Field(7, "price"),
        ))

    Properties:
        fields:
            Fields in line order. Offsets are implied by the widths.

        index:
            Optional field name used as the row index of the decoded table
            If None: rows are numbered from 0

    INVARIANTS:
        - At least one field
        - Field names are unique within the layout
        - index, when set, names one of the fields
    """

    fields: Tuple[Field, ...]
    index: Optional[str] = None

    @property
    def widths(self) -> List[int]:
        return [f.width for f in self.fields]

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    @property
    def record_width(self) -> int:
        """Total characters a line needs to cover every field."""
        return sum(self.widths)


def _is_width(value) -> bool:
    # bool is an int subclass; True is not a width
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def build_layout(
    widths: Sequence[int],
    field_names: Sequence[str],
    index: Optional[str] = None,
) -> LayoutSpec:
    """
    Validate parallel widths/names lists and build a LayoutSpec.

    Raises:
        InvalidLayout: If any layout invariant is violated
    """
    widths = list(widths)
    field_names = list(field_names)

    if not widths:
        raise InvalidLayout("Layout must declare at least one field width")

    bad = [w for w in widths if not _is_width(w)]
    if bad:
        raise InvalidLayout(f"Field widths must be positive integers, got: {bad}")

    if len(field_names) != len(widths):
        raise InvalidLayout(
            f"Expected {len(widths)} field names, got {len(field_names)}"
        )

    for name in field_names:
        if not isinstance(name, str) or not name:
            raise InvalidLayout(f"Field names must be non-empty strings, got: {name!r}")

    if len(field_names) != len(set(field_names)):
        duplicates = [n for n in field_names if field_names.count(n) > 1]
        raise InvalidLayout(f"Duplicate field names: {sorted(set(duplicates))}")

    if index is not None and index not in field_names:
        raise InvalidLayout(f"Index field '{index}' is not one of {field_names}")

    fields = tuple(Field(width=w, name=n) for w, n in zip(widths, field_names))
    return LayoutSpec(fields=fields, index=index)


def _split_definition(definition) -> Tuple[List[int], List[str], Optional[str]]:
    """Accept either (width, name) pairs or parallel widths/field_names lists."""
    if isinstance(definition, LayoutSpec):
        return definition.widths, definition.field_names, definition.index

    if isinstance(definition, Mapping):
        if "fields" in definition:
            widths, names, _ = _split_definition(definition["fields"])
            return widths, names, definition.get("index")
        names = definition.get("field_names", definition.get("col_names"))
        if "widths" not in definition or names is None:
            raise InvalidLayout(
                "Layout mapping needs 'widths' and 'field_names' (or 'col_names')"
            )
        return list(definition["widths"]), list(names), definition.get("index")

    widths: List[int] = []
    names: List[str] = []
    for item in definition:
        if isinstance(item, Field):
            widths.append(item.width)
            names.append(item.name)
        elif isinstance(item, Mapping):
            try:
                widths.append(item["width"])
                names.append(item["name"])
            except KeyError as e:
                raise InvalidLayout(f"Field entry {item!r} is missing {e}") from e
        else:
            try:
                width, name = item
            except (TypeError, ValueError) as e:
                raise InvalidLayout(f"Field entry must be a (width, name) pair, got: {item!r}") from e
            widths.append(width)
            names.append(name)
    return widths, names, None


class LayoutRegistry(Mapping):
    """
    Named fixed-width layouts, iterated in registration order.

    The registry is the single source of truth for which layout names a
    classifier may return. Names absent from the registry are never
    produced by a demux run.

    Registration is the only mutation. Layouts cannot be replaced or
    removed once registered.
    """

    def __init__(self):
        self._layouts: Dict[str, LayoutSpec] = {}

    @classmethod
    def from_mapping(cls, layouts) -> "LayoutRegistry":
        """
        Build a registry from a mapping of layout name -> definition.

        A definition is either a list of (width, name) pairs (or
        {"width", "name"} dicts), or a dict with parallel "widths" and
        "field_names" lists and an optional "index".
        """
        if isinstance(layouts, LayoutRegistry):
            return layouts
        registry = cls()
        for name, definition in layouts.items():
            widths, names, index = _split_definition(definition)
            registry.register(name, widths, names, index=index)
        return registry

    def register(
        self,
        name: str,
        widths: Sequence[int],
        field_names: Sequence[str],
        index: Optional[str] = None,
    ) -> LayoutSpec:
        """
        Add a named layout.

        Args:
            name: Unique, non-empty layout name
            widths: Field widths, in line order
            field_names: Field names, parallel to widths
            index: Optional field to use as the table's row index

        Returns:
            The registered LayoutSpec

        Raises:
            InvalidLayout: If the name or the definition is invalid
        """
        if not isinstance(name, str) or not name:
            raise InvalidLayout(f"Layout name must be a non-empty string, got: {name!r}")
        if name in self._layouts:
            raise InvalidLayout(f"Layout '{name}' is already registered")

        try:
            spec = build_layout(widths, field_names, index=index)
        except InvalidLayout as e:
            raise InvalidLayout(f"Layout '{name}': {e}") from e

        self._layouts[name] = spec
        return spec

    def __getitem__(self, name: str) -> LayoutSpec:
        return self._layouts[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._layouts)

    def __len__(self) -> int:
        return len(self._layouts)

    def __repr__(self) -> str:
        return f"LayoutRegistry({list(self._layouts)})"


__all__ = [
    "Field",
    "LayoutSpec",
    "LayoutRegistry",
    "InvalidLayout",
    "build_layout",
]
