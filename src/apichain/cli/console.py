"""Rich console reporter for scenario runs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console

from apichain.engine.runner import RunReporter

if TYPE_CHECKING:
    from apichain.engine.builder import PreparedRequest
    from apichain.engine.results import EndpointResult, RunResult
    from apichain.engine.transport import HttpResponse
    from apichain.scenario.models import EndpointTest, TestScenario


def make_console() -> Console:
    """Return the stderr console used by every command."""
    return Console(stderr=True, soft_wrap=True, highlight=False)


def format_request(request: PreparedRequest) -> list[str]:
    """Render a prepared request as HTTP/1.1-style lines."""
    target = request.url.raw_path_qs or "/"
    lines = [f"{request.method} {target} HTTP/1.1", f"Host: {request.url.raw_authority}"]
    lines.extend(f"{key}: {value}" for key, value in request.headers.items())
    lines.append("")
    if request.is_multipart:
        lines.extend(f"[form] {name}={value}" for name, value in request.form_fields.items())
    elif isinstance(request.data, bytes):
        lines.extend(request.data.decode("utf-8", errors="replace").splitlines())
    return lines


def format_response(response: HttpResponse) -> list[str]:
    """Render a response as HTTP/1.1-style lines."""
    lines = [f"HTTP/1.1 {response.status} {response.reason}".rstrip()]
    lines.extend(f"{key}: {value}" for key, value in response.headers.items())
    lines.append("")
    lines.extend(response.body.decode("utf-8", errors="replace").splitlines())
    return lines


class ConsoleReporter(RunReporter):
    """Prints PASS/FAIL lines, optional request/response dumps and the summary.

    Attributes:
        details: Dump every request (``> `` prefix) and response (``< ``).
    """

    def __init__(self, console: Console, *, details: bool = False) -> None:
        self.console = console
        self.details = details

    def run_started(self, scenario: TestScenario) -> None:
        self.console.print(
            f"Running {scenario.name} ({len(scenario)} endpoint(s))",
            style="bold",
            markup=False,
        )

    def request_prepared(self, endpoint: EndpointTest, request: PreparedRequest) -> None:
        if self.details:
            self._dump("> ", format_request(request))

    def response_received(self, endpoint: EndpointTest, response: HttpResponse) -> None:
        if self.details:
            self._dump("< ", format_response(response))

    def endpoint_finished(self, result: EndpointResult) -> None:
        if result.passed:
            self.console.print(f"[PASS] [{result.name}]", style="green", markup=False)
        else:
            error = result.error
            detail = f"{error.kind}: {error}" if error is not None else "failed"
            self.console.print(f"[FAIL] [{result.name}] {detail}", style="red", markup=False)

    def run_finished(self, result: RunResult) -> None:
        summary = result.summary
        self.console.print(
            f"Tests Passed: {summary.passed} / Tests Failed: {summary.failed} / "
            f"Coverage: {summary.coverage_percent:.2f}%",
            markup=False,
        )
        if summary.aborted:
            self.console.print(
                f"Skipped: {summary.skipped}. The tests afterwards were not executed "
                "because you specified --stop-on-failure.",
                style="yellow",
                markup=False,
            )

    def _dump(self, prefix: str, lines: list[str]) -> None:
        self.console.print()
        for line in lines:
            self.console.print(f"{prefix}{line}", style="cyan", markup=False)
