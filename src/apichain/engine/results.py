"""Per-endpoint and per-run result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from apichain._internal.errors import EndpointError
    from apichain._internal.types import JsonObject


class EndpointState(Enum):
    """Life cycle of one endpoint test.

    PENDING -> SUBSTITUTED -> REQUESTED -> STATUS_CHECKED -> BODY_CHECKED
            -> VARIABLES_CAPTURED -> PASSED
    Any checkpoint -> FAILED (first error wins).
    """

    PENDING = auto()
    SUBSTITUTED = auto()
    REQUESTED = auto()
    STATUS_CHECKED = auto()
    BODY_CHECKED = auto()
    VARIABLES_CAPTURED = auto()
    PASSED = auto()
    FAILED = auto()


@dataclass
class EndpointResult:
    """Outcome of one endpoint test.

    Attributes:
        name: Endpoint name.
        state: PASSED or FAILED.
        last_state: Last checkpoint reached before finishing. For a failed
            endpoint this tells which step failed (e.g. REQUESTED means the
            status check failed).
        error: The first error encountered, None when passed.
        captured: Variables captured by this endpoint.
        status: Received HTTP status, None if no response was received.
        elapsed_ms: Wall time spent on the endpoint in milliseconds.
    """

    name: str
    state: EndpointState
    last_state: EndpointState
    error: EndpointError | None = None
    captured: JsonObject = field(default_factory=dict)
    status: int | None = None
    elapsed_ms: float = 0.0

    @property
    def passed(self) -> bool:
        """True when the endpoint passed."""
        return self.state is EndpointState.PASSED


@dataclass
class RunSummary:
    """Counts for a finished (or aborted) run.

    Attributes:
        passed: Endpoints that passed.
        failed: Endpoints that failed.
        total: Endpoints in the scenario, including skipped ones.
        skipped: Endpoints never executed because the run was aborted.
        aborted: True when stop-on-failure ended the run early.
    """

    passed: int = 0
    failed: int = 0
    total: int = 0
    skipped: int = 0
    aborted: bool = False

    @property
    def coverage_percent(self) -> float:
        """Passed endpoints as a percentage of ``total`` (0.0 for an empty scenario)."""
        if self.total == 0:
            return 0.0
        return self.passed / self.total * 100


@dataclass
class RunResult:
    """Complete result of a scenario run.

    Attributes:
        scenario_name: Name of the scenario that was executed.
        results: Per-endpoint results in execution order.
        summary: Aggregate counts.
        variables: Variable store contents when the run ended.
        duration_seconds: Wall-clock duration of the run.
    """

    scenario_name: str
    results: list[EndpointResult] = field(default_factory=list)
    summary: RunSummary = field(default_factory=RunSummary)
    variables: JsonObject = field(default_factory=dict)
    duration_seconds: float = 0.0
