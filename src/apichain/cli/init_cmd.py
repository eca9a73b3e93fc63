"""``apichain init`` — scaffold a new YAML scenario file."""

from __future__ import annotations

from pathlib import Path
from string import Template

import typer
from rich.console import Console

console = Console(stderr=True)

_SCENARIO_TEMPLATE = Template("""\
# $title
#
# Run with:
#     apichain run $filename --details
name: $title
baseUrl: http://localhost:8080

endpoints:
  - name: Create user
    method: POST
    url: /users
    headers:
      Accept: application/json
    body:
      name: Ada
    expectedStatus: 201
    responseVariables:
      userId: id

  - name: Fetch user
    method: GET
    url: /users/{{ userId }}
    expectedStatus: 200
    expectedResponse:
      id: "{{ userId }}"
      name: Ada
""")


def init_cmd(
    name: str = typer.Argument(
        "my_scenario",
        help="Name for the scenario (used as the file name).",
    ),
) -> None:
    """Scaffold a new scenario file in the current directory."""
    safe_name = "".join(c if c.isalnum() or c in "_-" else "_" for c in name).lower()
    if not safe_name:
        safe_name = "scenario"

    filename = f"{safe_name}.yaml"
    title = name.replace("_", " ").replace("-", " ").title()

    target = Path.cwd() / filename
    if target.exists():
        console.print(f"[red]File already exists:[/red] {filename}")
        raise typer.Exit(code=1)

    target.write_text(_SCENARIO_TEMPLATE.substitute(title=title, filename=filename))
    console.print(f"[green]Created scenario:[/green] {filename}")
