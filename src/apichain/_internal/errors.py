"""Custom exception hierarchy for apichain."""

from __future__ import annotations

from typing import Any


class ApichainError(Exception):
    """Base exception for all apichain errors.

    All custom exceptions in apichain inherit from this class, making it
    easy to catch any apichain-specific error with a single except clause.
    """


class ScenarioLoadError(ApichainError):
    """Raised when a scenario file cannot be read or parsed.

    This is the only error that aborts a whole run.

    Examples:
        - The scenario file does not exist.
        - The file is not valid YAML/JSON.
        - An endpoint entry is missing ``expectedStatus``.
    """


class ConfigError(ApichainError):
    """Raised when configuration is invalid or missing.

    Examples:
        - ``APICHAIN_TIMEOUT`` is not a positive number.
        - ``APICHAIN_MATCH_MODE`` names an unknown policy.
    """


class EndpointError(ApichainError):
    """Base class for failures local to a single endpoint test.

    An ``EndpointError`` fails only the endpoint that produced it; the
    runner records it and moves on (unless stop-on-failure is set).
    """

    @property
    def kind(self) -> str:
        """Return the error kind, e.g. ``"StatusMismatch"``."""
        return type(self).__name__


class RequestConstructionError(EndpointError):
    """Raised when an endpoint cannot be turned into a request (bad method or URL)."""


class InvalidFieldType(EndpointError):
    """Raised when a multipart field value is not a string."""

    def __init__(self, field: str, value: Any) -> None:
        self.field = field
        self.value = value
        super().__init__(
            f"multipart field {field!r} must be a string, got {type(value).__name__}"
        )


class TransportError(EndpointError):
    """Raised when the HTTP request could not be completed."""


class StatusMismatch(EndpointError):
    """Raised when the response status differs from the expected one."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"expected code {expected}, received {actual}")


class ResponseDecodeError(EndpointError):
    """Raised when a response body is not a decodable mapping."""


class ExpectedKeyMissing(EndpointError):
    """Raised when an expected response key is absent from the actual body."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"response key {key!r} not found in the actual response")


class ValueMismatch(EndpointError):
    """Raised when an expected response value differs from the actual one."""

    def __init__(self, key: str, expected: str, actual: str) -> None:
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"response key {key!r} does not match the expected value. "
            f"Expected: {expected}, Actual: {actual}"
        )


class MissingResponseField(EndpointError):
    """Raised when a response variable's source field is absent."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"response variable field {field!r} not found in the response")
