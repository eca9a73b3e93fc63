"""Sequential scenario orchestrator."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from apichain._internal.errors import EndpointError
from apichain._internal.logging import get_logger
from apichain.engine.builder import build_request
from apichain.engine.results import EndpointResult, EndpointState, RunResult, RunSummary
from apichain.engine.variables import VariableStore, substitute_endpoint
from apichain.engine.verifier import MatchMode, check_status, verify_body

if TYPE_CHECKING:
    from apichain._internal.types import JsonObject
    from apichain.engine.builder import PreparedRequest
    from apichain.engine.transport import HttpResponse, Transport
    from apichain.scenario.models import EndpointTest, TestScenario

logger = get_logger("engine.runner")


class RunReporter:
    """Receives run events. Every hook is a no-op; override what you need."""

    def run_started(self, scenario: TestScenario) -> None:
        """Called once before the first endpoint."""

    def request_prepared(self, endpoint: EndpointTest, request: PreparedRequest) -> None:
        """Called right before a request is sent."""

    def response_received(self, endpoint: EndpointTest, response: HttpResponse) -> None:
        """Called as soon as a response has been read."""

    def endpoint_finished(self, result: EndpointResult) -> None:
        """Called once per executed endpoint, passed or failed."""

    def run_finished(self, result: RunResult) -> None:
        """Called once after the last endpoint or after an abort."""


class ScenarioRunner:
    """Runs the endpoints of a scenario one after another.

    Each run gets its own VariableStore. Endpoint *i* is substituted with
    the variables captured by endpoints *1..i-1*, sent, verified, and only
    then allowed to capture its own variables.

    Attributes:
        stop_on_failure: Abort the run at the first failed endpoint.
        match_mode: Policy used to compare expected responses.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        stop_on_failure: bool = False,
        match_mode: MatchMode = MatchMode.SUPERSET,
        base_url: str = "",
        reporter: RunReporter | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            transport: Sends the prepared requests.
            stop_on_failure: Abort at the first failed endpoint; remaining
                endpoints are reported as skipped.
            match_mode: Expected-response matching policy.
            base_url: Base URL for relative endpoint URLs when the scenario
                does not set its own.
            reporter: Receives run events. Defaults to a silent reporter.
        """
        self.stop_on_failure = stop_on_failure
        self.match_mode = match_mode
        self._transport = transport
        self._base_url = base_url
        self._reporter = reporter or RunReporter()

    async def run(self, scenario: TestScenario) -> RunResult:
        """Execute every endpoint of ``scenario`` in order.

        Args:
            scenario: The scenario to run.

        Returns:
            RunResult with per-endpoint results and the summary. The
            summary is produced for aborted runs too.
        """
        store = VariableStore(scenario.variables)
        base_url = scenario.base_url or self._base_url
        summary = RunSummary(total=len(scenario.endpoints))
        run_result = RunResult(scenario_name=scenario.name, summary=summary)

        logger.info(
            "Starting scenario: name=%s, endpoints=%d, match=%s, stop_on_failure=%s",
            scenario.name,
            summary.total,
            self.match_mode.value,
            self.stop_on_failure,
        )
        self._reporter.run_started(scenario)
        start = time.monotonic()

        for index, endpoint in enumerate(scenario.endpoints):
            result = await self._run_endpoint(endpoint, store, base_url)
            run_result.results.append(result)
            self._reporter.endpoint_finished(result)

            if result.passed:
                summary.passed += 1
                continue

            summary.failed += 1
            if self.stop_on_failure:
                summary.skipped = summary.total - index - 1
                summary.aborted = True
                logger.warning(
                    "Stopping after failed endpoint; %d endpoint(s) skipped",
                    summary.skipped,
                    extra={"endpoint": endpoint.name},
                )
                break

        run_result.duration_seconds = time.monotonic() - start
        run_result.variables = store.as_dict()

        logger.info(
            "Scenario finished: passed=%d, failed=%d, skipped=%d, coverage=%.2f%%",
            summary.passed,
            summary.failed,
            summary.skipped,
            summary.coverage_percent,
        )
        self._reporter.run_finished(run_result)
        return run_result

    async def _run_endpoint(
        self,
        endpoint: EndpointTest,
        store: VariableStore,
        base_url: str,
    ) -> EndpointResult:
        """Run one endpoint through its checkpoints, stopping at the first error."""
        state = EndpointState.PENDING
        status: int | None = None
        captured: JsonObject = {}
        start = time.monotonic()

        try:
            resolved = substitute_endpoint(endpoint, store)
            state = EndpointState.SUBSTITUTED

            request = build_request(resolved, base_url=base_url)
            self._reporter.request_prepared(resolved, request)
            response = await self._transport.send(request)
            status = response.status
            state = EndpointState.REQUESTED
            self._reporter.response_received(resolved, response)

            check_status(resolved.expected_status, response.status)
            state = EndpointState.STATUS_CHECKED

            document = verify_body(
                resolved.expected_response,
                response.body,
                mode=self.match_mode,
                decode=bool(resolved.response_variables),
            )
            state = EndpointState.BODY_CHECKED

            if resolved.response_variables and document is not None:
                captured = store.capture(document, resolved.response_variables)
            state = EndpointState.VARIABLES_CAPTURED
        except EndpointError as exc:
            logger.warning(
                "%s at %s: %s",
                exc.kind,
                state.name,
                exc,
                extra={"endpoint": endpoint.name},
            )
            return EndpointResult(
                name=endpoint.name,
                state=EndpointState.FAILED,
                last_state=state,
                error=exc,
                status=status,
                elapsed_ms=(time.monotonic() - start) * 1000,
            )

        logger.debug("Passed", extra={"endpoint": endpoint.name})
        return EndpointResult(
            name=endpoint.name,
            state=EndpointState.PASSED,
            last_state=state,
            captured=captured,
            status=status,
            elapsed_ms=(time.monotonic() - start) * 1000,
        )
