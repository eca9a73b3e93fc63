"""Canonical string rendering of decoded JSON/YAML values."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from apichain._internal.types import JsonValue


def render_value(value: JsonValue) -> str:
    """Render a value as the string used for loose comparison.

    Numbers and their string forms render identically (``5`` and ``"5"``
    both give ``"5"``), so expectations written in YAML match JSON bodies
    regardless of how either side typed the scalar.

    Rules:
        - ``str``: verbatim.
        - ``bool``: ``true`` / ``false``.
        - ``None``: ``null``.
        - ``int``: decimal digits.
        - ``float``: integral finite values drop the fractional part
          (``5.0`` -> ``5``), anything else uses ``repr``.
        - mapping: ``{key:value,...}`` sorted by key, values rendered
          recursively.
        - list/tuple: ``[value,...]`` with elements rendered recursively.
        - anything else (e.g. YAML dates): ``str(value)``.

    Args:
        value: Any decoded JSON/YAML value.

    Returns:
        The canonical rendering.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda item: str(item[0]))
        return "{" + ",".join(f"{key}:{render_value(item)}" for key, item in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(render_value(item) for item in value) + "]"
    return str(value)
