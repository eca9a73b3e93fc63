"""Tests for the rich console reporter."""

from __future__ import annotations

import io

from multidict import CIMultiDict
from rich.console import Console

from apichain._internal.errors import StatusMismatch
from apichain.cli.console import ConsoleReporter, format_request, format_response
from apichain.engine.builder import build_request
from apichain.engine.results import EndpointResult, EndpointState, RunResult, RunSummary
from apichain.engine.transport import HttpResponse
from apichain.scenario.models import EndpointTest


def _reporter(*, details: bool = False) -> tuple[ConsoleReporter, io.StringIO]:
    buffer = io.StringIO()
    console = Console(file=buffer, width=200, color_system=None)
    return ConsoleReporter(console, details=details), buffer


def _endpoint(**overrides: object) -> EndpointTest:
    fields: dict[str, object] = {
        "name": "Create",
        "url": "http://api.test/items?x=1",
        "method": "POST",
        "expected_status": 201,
    }
    fields.update(overrides)
    return EndpointTest(**fields)  # type: ignore[arg-type]


class TestFormatting:
    def test_format_json_request(self):
        lines = format_request(build_request(_endpoint(body={"a": 1})))
        assert lines[0] == "POST /items?x=1 HTTP/1.1"
        assert "Host: api.test" in lines
        assert "Content-Type: application/json" in lines
        assert lines[-1] == '{"a": 1}'

    def test_format_multipart_request(self):
        lines = format_request(build_request(_endpoint(multipart_fields={"title": "Report"})))
        assert "[form] title=Report" in lines

    def test_format_response(self):
        response = HttpResponse(
            status=404,
            reason="Not Found",
            headers=CIMultiDict({"Content-Type": "application/json"}),
            body=b'{"error": "missing"}',
        )
        lines = format_response(response)
        assert lines[0] == "HTTP/1.1 404 Not Found"
        assert "Content-Type: application/json" in lines
        assert lines[-1] == '{"error": "missing"}'


class TestConsoleReporter:
    def test_pass_line(self):
        reporter, buffer = _reporter()
        reporter.endpoint_finished(
            EndpointResult(name="Create", state=EndpointState.PASSED, last_state=EndpointState.VARIABLES_CAPTURED)
        )
        assert "[PASS] [Create]" in buffer.getvalue()

    def test_fail_line_names_error_kind(self):
        reporter, buffer = _reporter()
        reporter.endpoint_finished(
            EndpointResult(
                name="Create",
                state=EndpointState.FAILED,
                last_state=EndpointState.REQUESTED,
                error=StatusMismatch(201, 500),
            )
        )
        assert "[FAIL] [Create] StatusMismatch: expected code 201, received 500" in buffer.getvalue()

    def test_details_dump(self):
        reporter, buffer = _reporter(details=True)
        endpoint = _endpoint(body={"a": 1})
        reporter.request_prepared(endpoint, build_request(endpoint))
        reporter.response_received(endpoint, HttpResponse(status=201, reason="Created", body=b"{}"))

        output = buffer.getvalue()
        assert "> POST /items?x=1 HTTP/1.1" in output
        assert "< HTTP/1.1 201 Created" in output

    def test_no_dump_without_details(self):
        reporter, buffer = _reporter()
        endpoint = _endpoint()
        reporter.request_prepared(endpoint, build_request(endpoint))
        assert buffer.getvalue() == ""

    def test_summary_line(self):
        reporter, buffer = _reporter()
        reporter.run_finished(
            RunResult(scenario_name="s", summary=RunSummary(passed=1, failed=1, total=2))
        )
        output = buffer.getvalue()
        assert "Tests Passed: 1 / Tests Failed: 1 / Coverage: 50.00%" in output
        assert "Skipped" not in output

    def test_summary_notes_skipped(self):
        reporter, buffer = _reporter()
        reporter.run_finished(
            RunResult(
                scenario_name="s",
                summary=RunSummary(passed=1, failed=1, total=3, skipped=1, aborted=True),
            )
        )
        output = buffer.getvalue()
        assert "Coverage: 33.33%" in output
        assert "Skipped: 1." in output
        assert "--stop-on-failure" in output

    def test_empty_scenario_summary(self):
        reporter, buffer = _reporter()
        reporter.run_finished(RunResult(scenario_name="s", summary=RunSummary()))
        assert "Coverage: 0.00%" in buffer.getvalue()
