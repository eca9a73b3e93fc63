"""``apichain run`` — execute a scenario file and report the results."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.markup import escape

from apichain._internal.config import MATCH_MODES, load_config
from apichain._internal.errors import ConfigError, ScenarioLoadError
from apichain._internal.logging import setup_logging
from apichain.cli.console import ConsoleReporter, make_console
from apichain.engine.runner import ScenarioRunner
from apichain.engine.transport import AiohttpTransport
from apichain.engine.verifier import MatchMode
from apichain.scenario.loader import load_scenario

if TYPE_CHECKING:
    from apichain.engine.results import RunResult
    from apichain.engine.runner import RunReporter
    from apichain.scenario.models import TestScenario

# Exit code for a run cut short by --stop-on-failure.
EXIT_ABORTED = 2


async def _execute(
    scenario: TestScenario,
    *,
    timeout: float,
    stop_on_failure: bool,
    match_mode: MatchMode,
    base_url: str,
    reporter: RunReporter,
) -> RunResult:
    async with AiohttpTransport(timeout=timeout) as transport:
        runner = ScenarioRunner(
            transport,
            stop_on_failure=stop_on_failure,
            match_mode=match_mode,
            base_url=base_url,
            reporter=reporter,
        )
        return await runner.run(scenario)


def run_cmd(
    scenario_file: Path = typer.Argument(
        ...,
        help="Path to the scenario .yaml/.yml/.json file.",
    ),
    details: bool = typer.Option(
        False,
        "--details",
        "-d",
        help="Display request and response details.",
    ),
    stop_on_failure: bool = typer.Option(
        False,
        "--stop-on-failure",
        "-x",
        help="Stop at the first failed endpoint and skip the rest (exit code 2).",
    ),
    match: str | None = typer.Option(
        None,
        "--match",
        "-m",
        help="Expected-response policy: superset (default) or exact.",
    ),
    base_url: str | None = typer.Option(
        None,
        "--base-url",
        help="Base URL for relative endpoint URLs (scenario baseUrl wins).",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        help="Per-request timeout in seconds.",
        min=0.001,
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Exit with code 1 if any endpoint failed.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
) -> None:
    """Run every endpoint of a scenario file in order."""
    console = make_console()

    try:
        config = load_config()
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    setup_logging(
        level=logging.DEBUG if verbose else logging.WARNING,
        json_format=config.log_json,
    )

    # Exit code 2 belongs to --stop-on-failure, so a bad mode is a config error.
    match_name = (match or config.match_mode).strip().lower()
    if match_name not in MATCH_MODES:
        msg = f"Unknown match mode: {match_name}. Choose from: {', '.join(MATCH_MODES)}"
        console.print(f"[red]Error:[/red] {escape(msg)}")
        raise typer.Exit(code=1)

    try:
        scenario = load_scenario(scenario_file)
    except ScenarioLoadError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    result = asyncio.run(
        _execute(
            scenario,
            timeout=timeout if timeout is not None else config.request_timeout,
            stop_on_failure=stop_on_failure,
            match_mode=MatchMode(match_name),
            base_url=base_url if base_url is not None else config.default_base_url,
            reporter=ConsoleReporter(console, details=details),
        )
    )

    summary = result.summary
    if summary.aborted:
        raise typer.Exit(code=EXIT_ABORTED)
    if strict and summary.failed:
        raise typer.Exit(code=1)
