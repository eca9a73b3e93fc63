"""apichain — declarative, chained HTTP endpoint tests."""

from __future__ import annotations

from apichain.engine.builder import PreparedRequest, build_request
from apichain.engine.results import EndpointResult, EndpointState, RunResult, RunSummary
from apichain.engine.runner import RunReporter, ScenarioRunner
from apichain.engine.transport import AiohttpTransport, HttpResponse, Transport
from apichain.engine.variables import (
    Substitution,
    VariableStore,
    render_template,
    substitute,
    substitute_endpoint,
)
from apichain.engine.verifier import MatchMode, verify, verify_body
from apichain.scenario.loader import load_scenario, parse_scenario
from apichain.scenario.models import EndpointTest, TestScenario

__version__ = "0.1.0"

__all__ = [
    "AiohttpTransport",
    "EndpointResult",
    "EndpointState",
    "EndpointTest",
    "HttpResponse",
    "MatchMode",
    "PreparedRequest",
    "RunReporter",
    "RunResult",
    "RunSummary",
    "ScenarioRunner",
    "Substitution",
    "TestScenario",
    "Transport",
    "VariableStore",
    "build_request",
    "load_scenario",
    "parse_scenario",
    "render_template",
    "substitute",
    "substitute_endpoint",
    "verify",
    "verify_body",
]
