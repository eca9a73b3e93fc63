"""Response verification: status, body decoding and expected-body matching."""

from __future__ import annotations

import json
from enum import Enum
from typing import TYPE_CHECKING, Any

import yaml

from apichain._internal.errors import (
    ExpectedKeyMissing,
    ResponseDecodeError,
    StatusMismatch,
    ValueMismatch,
)
from apichain.engine.values import render_value

if TYPE_CHECKING:
    from apichain._internal.types import JsonObject

# Key reported by ValueMismatch when a whole body is compared.
WHOLE_BODY = "<body>"


class MatchMode(str, Enum):
    """How an expected response is compared with the actual body.

    SUPERSET checks only the expected keys and ignores extra ones. EXACT is
    the stricter alternative: the whole body must equal the expectation.
    """

    SUPERSET = "superset"
    EXACT = "exact"


def check_status(expected: int, actual: int) -> None:
    """Raise StatusMismatch unless ``actual == expected``."""
    if actual != expected:
        raise StatusMismatch(expected, actual)


def decode_body(raw: bytes) -> JsonObject:
    """Decode a response body into a mapping.

    JSON is tried first and YAML second. An empty (or all-whitespace) body
    decodes to ``{}``.

    Args:
        raw: Raw response body.

    Returns:
        The decoded mapping, with top-level keys converted to strings.

    Raises:
        ResponseDecodeError: If the body is not UTF-8, not parseable, or
            its top level is not a mapping.
    """
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        msg = f"decoding the response: body is not UTF-8 ({exc})"
        raise ResponseDecodeError(msg) from exc

    if not text.strip():
        return {}

    document: Any
    try:
        document = json.loads(text)
    except json.JSONDecodeError:
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            msg = f"decoding the response: {exc}"
            raise ResponseDecodeError(msg) from exc

    if document is None:
        return {}
    if not isinstance(document, dict):
        msg = f"decoding the response: expected a mapping, got {type(document).__name__}"
        raise ResponseDecodeError(msg)
    return {str(key): value for key, value in document.items()}


def check_body(
    expected: JsonObject,
    actual: JsonObject,
    mode: MatchMode = MatchMode.SUPERSET,
) -> None:
    """Compare a decoded body against the expected response.

    Values are compared through :func:`render_value`, so ``5`` equals
    ``"5"`` and nested mappings compare independently of key order.

    Args:
        expected: Expected keys and values (placeholders already resolved).
        actual: Decoded response body.
        mode: Matching policy.

    Raises:
        ExpectedKeyMissing: SUPERSET mode, an expected key is absent.
        ValueMismatch: A value (or, in EXACT mode, the body) differs.
    """
    if mode is MatchMode.EXACT:
        expected_text = render_value(expected)
        actual_text = render_value(actual)
        if expected_text != actual_text:
            raise ValueMismatch(WHOLE_BODY, expected_text, actual_text)
        return

    for key, expected_value in expected.items():
        if key not in actual:
            raise ExpectedKeyMissing(key)
        expected_text = render_value(expected_value)
        actual_text = render_value(actual[key])
        if expected_text != actual_text:
            raise ValueMismatch(key, expected_text, actual_text)


def verify(
    expected_status: int,
    actual_status: int,
    expected_response: JsonObject | None,
    actual_body: bytes,
    *,
    mode: MatchMode = MatchMode.SUPERSET,
    decode: bool = False,
) -> JsonObject | None:
    """Verify a response: status first, then the body.

    The body is not looked at when the status differs. It is decoded when
    there is an expected response to compare, or when ``decode`` asks for
    the document (e.g. to capture response variables).

    Args:
        expected_status: Expected HTTP status.
        actual_status: Received HTTP status.
        expected_response: Expected body keys, or None to skip the check.
        actual_body: Raw response body.
        mode: Matching policy.
        decode: Decode the body even without an expected response.

    Returns:
        The decoded body, or None when it was not needed.

    Raises:
        StatusMismatch: Status differs.
        ResponseDecodeError: The body could not be decoded.
        ExpectedKeyMissing: An expected key is absent.
        ValueMismatch: A value differs.
    """
    check_status(expected_status, actual_status)
    return verify_body(expected_response, actual_body, mode=mode, decode=decode)


def verify_body(
    expected_response: JsonObject | None,
    actual_body: bytes,
    *,
    mode: MatchMode = MatchMode.SUPERSET,
    decode: bool = False,
) -> JsonObject | None:
    """Decode and check a body whose status has already been accepted.

    Returns:
        The decoded body, or None when neither a comparison nor ``decode``
        asked for it.
    """
    if expected_response is None and not decode:
        return None

    document = decode_body(actual_body)
    if expected_response is not None:
        check_body(expected_response, document, mode)
    return document
