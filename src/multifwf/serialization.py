"""
Serialization helpers for layout registries.

Provides JSON/YAML round-trip via an intermediate dict representation, so
layouts can live in configuration files next to the data they describe.

Document shape:

    layouts:
      sp1:
        index: t          # optional
        fields:
          - {width: 1, name: t}
          - {width: 2, name: v}

A layout may also be written as a bare list of fields, or with parallel
``widths`` / ``field_names`` lists.
"""
from __future__ import annotations

import json
import os
from typing import Any, Dict

import yaml

from multifwf.layouts import Field, InvalidLayout, LayoutRegistry, LayoutSpec


def field_to_dict(f: Field) -> Dict[str, Any]:
    return {"width": f.width, "name": f.name}


def layout_to_dict(spec: LayoutSpec) -> Dict[str, Any]:
    d: Dict[str, Any] = {"fields": [field_to_dict(f) for f in spec.fields]}
    if spec.index is not None:
        d["index"] = spec.index
    return d


def registry_to_dict(registry: LayoutRegistry) -> Dict[str, Any]:
    return {"layouts": {name: layout_to_dict(spec) for name, spec in registry.items()}}


def registry_from_dict(d: Any) -> LayoutRegistry:
    if not isinstance(d, dict):
        raise InvalidLayout(f"Layout document must be a mapping, got {type(d).__name__}")
    layouts = d.get("layouts", d)
    if not isinstance(layouts, dict):
        raise InvalidLayout("'layouts' must map layout names to definitions")
    return LayoutRegistry.from_mapping(layouts)


def registry_to_json(registry: LayoutRegistry) -> str:
    return json.dumps(registry_to_dict(registry))


def registry_from_json(s: str) -> LayoutRegistry:
    d = json.loads(s)
    return registry_from_dict(d)


def registry_to_yaml(registry: LayoutRegistry) -> str:
    # sort_keys=False keeps registry order, which is result order
    return yaml.safe_dump(registry_to_dict(registry), sort_keys=False)


def registry_from_yaml(s: str) -> LayoutRegistry:
    d = yaml.safe_load(s)
    return registry_from_dict(d)


def load_registry(filepath: str) -> LayoutRegistry:
    """
    Load layouts from a .json, .yaml or .yml file.

    Raises:
        FileNotFoundError: If file doesn't exist
        InvalidLayout: If the document or a layout is invalid
    """
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            content = f.read()
    except FileNotFoundError:
        raise FileNotFoundError(f"Layout file not found: {filepath}")

    if os.path.splitext(os.fspath(filepath))[1].lower() == ".json":
        return registry_from_json(content)
    return registry_from_yaml(content)
