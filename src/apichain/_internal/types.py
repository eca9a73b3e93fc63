"""Shared type aliases for apichain."""

from __future__ import annotations

from typing import Any

# HTTP headers dictionary.
Headers = dict[str, str]

# Any value a decoded JSON/YAML document can hold: str, int, float, bool,
# None, list of JsonValue, or JsonObject.
JsonValue = Any

# A decoded JSON/YAML mapping.
JsonObject = dict[str, Any]
