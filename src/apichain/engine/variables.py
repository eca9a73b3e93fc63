"""Variable store and ``{{ name }}`` placeholder substitution.

Placeholders are rendered with a sandboxed Jinja2 environment. Rendering is
lenient on two levels:

- an unknown name renders as the empty string;
- a template that does not parse (or fails while rendering) is left exactly
  as written. That outcome is reported through :class:`Substitution` rather
  than raised, so callers and tests can see when a string was left alone.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from jinja2 import TemplateError, Undefined
from jinja2.sandbox import SandboxedEnvironment

from apichain._internal.errors import MissingResponseField
from apichain._internal.logging import get_logger
from apichain.engine.values import render_value

if TYPE_CHECKING:
    from collections.abc import Iterator

    from apichain._internal.types import JsonObject, JsonValue
    from apichain.scenario.models import EndpointTest

logger = get_logger("engine.variables")

# ``{{ .name }}`` is accepted as an alias of ``{{ name }}``.
_LEADING_DOT = re.compile(r"\{\{(-?)\s*\.(?=[A-Za-z_])")


def _finalize(value: object) -> str:
    if value is None or isinstance(value, Undefined):
        return ""
    return render_value(value)


# Only ``{{ }}`` is special. Block and comment tags are moved onto Unicode
# noncharacters so ``{%`` and ``{#`` in scenario text stay literal.
_environment = SandboxedEnvironment(
    block_start_string="\ufdd0%",
    block_end_string="%\ufdd0",
    comment_start_string="\ufdd0#",
    comment_end_string="#\ufdd0",
    autoescape=False,
    keep_trailing_newline=True,
    finalize=_finalize,
)


class VariableStore:
    """Named values captured during one scenario run.

    One store is created per run and handed explicitly to everything that
    reads or writes it. Later writes overwrite earlier values with the same
    name.
    """

    def __init__(self, initial: Mapping[str, JsonValue] | None = None) -> None:
        """Initialize the store.

        Args:
            initial: Optional seed values (the scenario's ``variables``).
        """
        self._values: dict[str, JsonValue] = dict(initial or {})

    def get(self, name: str, default: JsonValue = None) -> JsonValue:
        """Return the value stored under ``name``, or ``default``."""
        return self._values.get(name, default)

    def set(self, name: str, value: JsonValue) -> None:
        """Store ``value`` under ``name``."""
        self._values[name] = value

    def update(self, bindings: Mapping[str, JsonValue]) -> None:
        """Store every binding in ``bindings``."""
        self._values.update(bindings)

    def capture(
        self,
        document: JsonObject,
        response_variables: Mapping[str, str],
    ) -> dict[str, JsonValue]:
        """Copy top-level response fields into the store.

        Every field is looked up before anything is written, so a missing
        field leaves the store untouched.

        Args:
            document: Decoded response body.
            response_variables: ``local_name -> field_name`` pairs. Field
                names are top-level keys only; dots are not path separators.

        Returns:
            The new bindings (``local_name -> value``).

        Raises:
            MissingResponseField: If a field is absent from ``document``.
        """
        bindings: dict[str, JsonValue] = {}
        for local_name, field_name in response_variables.items():
            if field_name not in document:
                raise MissingResponseField(field_name)
            bindings[local_name] = document[field_name]
        self._values.update(bindings)
        return bindings

    def as_dict(self) -> dict[str, JsonValue]:
        """Return a shallow copy of all stored values."""
        return dict(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"VariableStore({self._values!r})"


@dataclass(frozen=True)
class Substitution:
    """Outcome of rendering one string.

    Attributes:
        value: Rendered text, or the original text when rendering failed.
        error: Why rendering failed, or None on success.
    """

    value: str
    error: str | None = None

    @property
    def fell_back(self) -> bool:
        """True when the original text was returned because rendering failed."""
        return self.error is not None


def render_template(text: str, variables: Mapping[str, JsonValue]) -> Substitution:
    """Resolve the placeholders in a single string.

    Args:
        text: String that may contain ``{{ name }}`` placeholders.
        variables: Values visible to the placeholders.

    Returns:
        A Substitution holding the rendered text, or the unchanged input
        and the error message if the template is malformed.
    """
    if "{{" not in text:
        return Substitution(text)

    source = _LEADING_DOT.sub(r"{{\1 ", text)
    try:
        rendered = _environment.from_string(source).render(dict(variables))
    except (TemplateError, TypeError, ValueError, ArithmeticError) as exc:
        logger.debug("Leaving %r unsubstituted: %s", text, exc)
        return Substitution(text, error=f"{type(exc).__name__}: {exc}")
    return Substitution(rendered)


def substitute(value: JsonValue, store: VariableStore | Mapping[str, JsonValue]) -> JsonValue:
    """Return a copy of ``value`` with every string leaf substituted.

    Mappings and lists are rebuilt with the same shape; list elements of any
    type are visited. Keys and non-string scalars are left as they are. The
    input is never mutated.

    Args:
        value: A string or a nested structure of mappings, lists and scalars.
        store: Variables visible to the placeholders.

    Returns:
        The substituted copy.
    """
    variables = store.as_dict() if isinstance(store, VariableStore) else dict(store)
    return _substitute(value, variables)


def _substitute(value: JsonValue, variables: dict[str, JsonValue]) -> JsonValue:
    if isinstance(value, str):
        return render_template(value, variables).value
    if isinstance(value, dict):
        return {key: _substitute(item, variables) for key, item in value.items()}
    if isinstance(value, list):
        return [_substitute(item, variables) for item in value]
    return value


def substitute_endpoint(endpoint: EndpointTest, store: VariableStore) -> EndpointTest:
    """Return a copy of ``endpoint`` with its placeholders resolved.

    Substitutes the URL, method, header values, JSON body, multipart fields
    and expected response. ``None`` fields stay ``None``.

    Args:
        endpoint: The endpoint as written in the scenario.
        store: Variables captured by earlier endpoints.

    Returns:
        A new EndpointTest.
    """
    variables = store.as_dict()

    def _optional(value: JsonValue) -> JsonValue:
        return None if value is None else _substitute(value, variables)

    return replace(
        endpoint,
        url=render_template(endpoint.url, variables).value,
        method=render_template(endpoint.method, variables).value,
        headers={
            key: render_template(value, variables).value
            for key, value in endpoint.headers.items()
        },
        body=_optional(endpoint.body),
        multipart_fields=_optional(endpoint.multipart_fields),
        expected_response=_optional(endpoint.expected_response),
    )
