"""Endpoint test and scenario dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from apichain._internal.types import Headers, JsonObject, JsonValue


@dataclass
class EndpointTest:
    """One planned HTTP interaction and its expectations.

    String fields (``url``, ``method``, header values and every string leaf
    of ``body``, ``multipart_fields`` and ``expected_response``) may contain
    ``{{ name }}`` placeholders resolved against the variable store right
    before the request is built.

    Attributes:
        name: Identifier used in reports. Not required to be unique.
        url: Absolute URL, or a path resolved against the scenario base URL.
        method: HTTP method.
        expected_status: HTTP status code the response must carry.
        headers: Request headers. Applied after generated headers, so they
            override ``Content-Type`` when given.
        body: JSON body. ``None`` sends no body; ``{}`` sends ``{}``.
        multipart_fields: Form fields. When non-empty the request is sent
            as ``multipart/form-data`` and ``body`` is ignored.
        expected_response: Expected response keys and values.
        response_variables: ``local_name -> response_field`` pairs read
            from the top level of the decoded response body.
    """

    name: str
    url: str
    method: str
    expected_status: int
    headers: Headers = field(default_factory=dict)
    body: JsonObject | None = None
    multipart_fields: dict[str, JsonValue] | None = None
    expected_response: JsonObject | None = None
    response_variables: dict[str, str] | None = None


@dataclass
class TestScenario:
    """An ordered list of endpoint tests sharing one variable store.

    Attributes:
        endpoints: Endpoint tests in execution order.
        name: Human-readable scenario name (defaults to the file stem).
        base_url: Base URL for relative endpoint URLs.
        variables: Initial variable store contents.
    """

    __test__ = False  # not a pytest test class

    endpoints: list[EndpointTest] = field(default_factory=list)
    name: str = "scenario"
    base_url: str = ""
    variables: JsonObject = field(default_factory=dict)

    def __len__(self) -> int:
        """Return the number of endpoint tests."""
        return len(self.endpoints)
