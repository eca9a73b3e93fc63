"""Scenario file loading from YAML or JSON."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from apichain._internal.errors import ScenarioLoadError
from apichain.scenario.models import EndpointTest, TestScenario

_YAML_SUFFIXES = frozenset({".yaml", ".yml"})
_JSON_SUFFIXES = frozenset({".json"})


def load_scenario(file_path: str | Path) -> TestScenario:
    """Load a scenario from a YAML or JSON file.

    Args:
        file_path: Path to a ``.yaml``, ``.yml`` or ``.json`` file.

    Returns:
        The parsed TestScenario. Its name defaults to the file stem.

    Raises:
        ScenarioLoadError: If the file does not exist, has an unsupported
            suffix, cannot be decoded, or has the wrong shape.
    """
    path = Path(file_path)

    if not path.is_file():
        msg = f"Scenario file not found: {path}"
        raise ScenarioLoadError(msg)

    suffix = path.suffix.lower()
    if suffix not in _YAML_SUFFIXES | _JSON_SUFFIXES:
        msg = f"Scenario file must be .yaml, .yml or .json, got: {path}"
        raise ScenarioLoadError(msg)

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Error reading the scenario file {path}: {exc}"
        raise ScenarioLoadError(msg) from exc

    try:
        data = json.loads(text) if suffix in _JSON_SUFFIXES else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        msg = f"Error decoding the scenario file {path}: {exc}"
        raise ScenarioLoadError(msg) from exc

    return parse_scenario(data, default_name=path.stem)


def parse_scenario(data: Any, *, default_name: str = "scenario") -> TestScenario:
    """Build a TestScenario from an already-decoded document.

    Args:
        data: Decoded YAML/JSON document. Must be a mapping with an
            ``endpoints`` list.
        default_name: Scenario name when the document has no ``name``.

    Returns:
        The parsed TestScenario.

    Raises:
        ScenarioLoadError: If the document does not have the expected shape.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = f"Scenario document must be a mapping, got {type(data).__name__}"
        raise ScenarioLoadError(msg)

    raw_endpoints = data.get("endpoints") or []
    if not isinstance(raw_endpoints, list):
        msg = "'endpoints' must be a list"
        raise ScenarioLoadError(msg)

    variables = data.get("variables") or {}
    if not isinstance(variables, dict):
        msg = "'variables' must be a mapping"
        raise ScenarioLoadError(msg)

    return TestScenario(
        endpoints=[_parse_endpoint(raw, index) for index, raw in enumerate(raw_endpoints)],
        name=str(data.get("name") or default_name),
        base_url=_optional_str(data, "baseUrl", where="scenario") or "",
        variables={str(key): value for key, value in variables.items()},
    )


def _parse_endpoint(raw: Any, index: int) -> EndpointTest:
    """Convert one ``endpoints`` entry into an EndpointTest."""
    where = f"endpoint #{index + 1}"
    if not isinstance(raw, dict):
        msg = f"{where} must be a mapping, got {type(raw).__name__}"
        raise ScenarioLoadError(msg)

    url = _optional_str(raw, "url", where=where)
    if url is None:
        msg = f"{where} is missing 'url'"
        raise ScenarioLoadError(msg)

    method = _optional_str(raw, "method", where=where) or "GET"

    expected_status = raw.get("expectedStatus")
    if isinstance(expected_status, bool) or not isinstance(expected_status, int):
        msg = f"{where} 'expectedStatus' must be an integer, got {expected_status!r}"
        raise ScenarioLoadError(msg)

    name = _optional_str(raw, "name", where=where) or f"{method} {url}"

    headers = _optional_mapping(raw, "headers", where=where) or {}
    response_variables = _optional_mapping(raw, "responseVariables", where=where)

    return EndpointTest(
        name=name,
        url=url,
        method=method,
        expected_status=expected_status,
        headers={str(key): _scalar_to_str(value) for key, value in headers.items()},
        body=_optional_mapping(raw, "body", where=where),
        multipart_fields=_optional_mapping(raw, "multipartFields", where=where),
        expected_response=_optional_mapping(raw, "expectedResponse", where=where),
        response_variables=(
            None
            if response_variables is None
            else {str(key): str(value) for key, value in response_variables.items()}
        ),
    )


def _optional_str(raw: dict[str, Any], key: str, *, where: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        msg = f"{where} {key!r} must be a string, got {type(value).__name__}"
        raise ScenarioLoadError(msg)
    return value


def _optional_mapping(raw: dict[str, Any], key: str, *, where: str) -> dict[str, Any] | None:
    if key not in raw or raw[key] is None:
        return None
    value = raw[key]
    if not isinstance(value, dict):
        msg = f"{where} {key!r} must be a mapping, got {type(value).__name__}"
        raise ScenarioLoadError(msg)
    return {str(k): v for k, v in value.items()}


def _scalar_to_str(value: Any) -> str:
    # YAML turns unquoted header values like ``1`` or ``true`` into scalars.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        msg = f"header values must be scalars, got {type(value).__name__}"
        raise ScenarioLoadError(msg)
    return "" if value is None else str(value)
