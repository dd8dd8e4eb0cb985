"""
CLI entry point for flowreplay.

This module provides the Typer-based command-line interface.

Commands:
    replay      Replay a recorded flow against a browser page
    schema      Show the inputs a flow expects
    steps       List the parsed steps of a flow
    doctor      Check the environment and the remote browser endpoint

The CLI is thin: it loads settings, opens a browser session and delegates to
ReplayEngine. Embedding servers use the engine directly.
"""

import asyncio
import json
import sys
import traceback
from importlib import metadata
from pathlib import Path
from typing import Annotated, Any, Optional

import httpx
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from flowreplay import __version__
from flowreplay.browser import BrowserSession, probe_endpoint
from flowreplay.config import Settings, load_settings
from flowreplay.engine import ReplayEngine
from flowreplay.errors import FlowReplayError
from flowreplay.log import configure_logging
from flowreplay.schema import TaskRecord, TaskStatus
from flowreplay.selectors import parse_selector
from flowreplay.store import TaskStore
from flowreplay.template import find_placeholders

app = typer.Typer(
    name="flowreplay",
    help="Replay recorded browser user flows.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="Path to a settings YAML file. Defaults to ./flowreplay.yaml if present.",
        exists=True,
        readable=True,
        resolve_path=True,
    ),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output results in JSON format."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]flowreplay[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    flowreplay - replay recorded user flows against a live page.

    Flows are Chrome DevTools Recorder JSON exports, optionally parameterized
    with ${name} placeholders.
    """


def _output_json_error(error_type: str, message: str, include_traceback: bool = False) -> None:
    """Output an error in JSON format."""
    output: dict[str, Any] = {
        "success": False,
        "error_type": error_type,
        "message": message,
    }
    if include_traceback:
        output["traceback"] = traceback.format_exc()
    print(json.dumps(output, indent=2))


def _fail(error_type: str, error: Exception, json_output: bool, debug: bool) -> None:
    message = error.message if isinstance(error, FlowReplayError) else str(error)
    if json_output:
        _output_json_error(error_type, message, debug)
    else:
        console.print(f"[red]Error: {message}[/red]")
        if debug:
            console.print(f"[dim]{traceback.format_exc()}[/dim]")
    raise typer.Exit(code=1)


def _parse_inputs(input_args: list[str] | None, input_file: Path | None) -> dict[str, Any]:
    """
    Merge ``--input-file`` (a JSON object) with repeated ``--input key=value``.

    ``--input`` values are kept exactly as typed and substituted as raw text.
    """
    inputs: dict[str, Any] = {}
    if input_file is not None:
        loaded = json.loads(input_file.read_text(encoding="utf-8"))
        if not isinstance(loaded, dict):
            raise ValueError(f"Input file must contain a JSON object: {input_file}")
        inputs.update(loaded)
    for arg in input_args or []:
        if "=" not in arg:
            raise ValueError(f"Invalid input format: {arg}. Expected key=value")
        key, value = arg.split("=", 1)
        inputs[key] = value
    return inputs


async def _replay_in_session(
    engine: ReplayEngine,
    flow: str,
    inputs: dict[str, Any],
    session: BrowserSession,
    poll_interval: float,
) -> TaskRecord:
    """Launch the replay on the session's page and poll until it finishes."""
    async with session:
        page = await session.current_page()
        handle = engine.launch(flow, inputs, page)
        record = engine.store.require(handle.task_id)
        while not record.is_terminal:
            await asyncio.sleep(poll_interval)
            record = engine.store.require(handle.task_id)
        return record


@app.command()
def replay(
    flow: Annotated[
        str,
        typer.Argument(help="Flow JSON file, relative to the flow directory unless absolute."),
    ],
    input_args: Annotated[
        Optional[list[str]],
        typer.Option(
            "--input",
            "-i",
            help="Input value in key=value format, substituted verbatim. Can be repeated.",
        ),
    ] = None,
    input_file: Annotated[
        Optional[Path],
        typer.Option(
            "--input-file",
            help="JSON file with input values.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    config: ConfigOption = None,
    cdp_url: Annotated[
        Optional[str],
        typer.Option("--cdp-url", help="DevTools endpoint to connect to (overrides settings)."),
    ] = None,
    launch: Annotated[
        bool,
        typer.Option("--launch", help="Launch a local Chromium instead of connecting."),
    ] = False,
    headed: Annotated[
        bool,
        typer.Option("--headed", help="Show the launched browser window."),
    ] = False,
    poll_interval: Annotated[
        float,
        typer.Option("--poll-interval", help="Seconds between status checks.", min=0.01),
    ] = 0.2,
    json_output: JsonOption = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Show inputs and the resolved flow path."),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging and full error tracebacks."),
    ] = False,
) -> None:
    """
    Replay a recorded flow.

    Example:
        $ flowreplay replay checkout.json -i email=a@b.test --launch
    """
    try:
        settings = load_settings(config)
        if headed:
            settings = settings.model_copy(update={"headless": False})
        configure_logging("DEBUG" if debug else settings.log_level, settings.log_file)
        inputs = _parse_inputs(input_args, input_file)

        engine = ReplayEngine(store=TaskStore(), settings=settings)
        missing = [
            name for name in find_placeholders(engine.read_flow_text(flow))
            if name not in inputs
        ]
    except FlowReplayError as e:
        _fail("flow_error", e, json_output, debug)
    except (ValueError, OSError) as e:
        _fail("input_error", e, json_output, debug)

    if not json_output:
        if verbose:
            console.print(f"[dim]Flow: {settings.resolve_flow(flow)}[/dim]")
            for key, value in inputs.items():
                console.print(f"[dim]  {key}: {value}[/dim]")
        if missing:
            console.print(f"[yellow]No value for placeholder(s): {', '.join(missing)}[/yellow]")

    session = BrowserSession(settings, cdp_url=cdp_url, launch=launch)
    try:
        record = asyncio.run(_replay_in_session(engine, flow, inputs, session, poll_interval))
    except Exception as e:
        _fail("browser_error", e, json_output, debug)

    if json_output:
        print(json.dumps(record.to_status(), indent=2))
    else:
        _display_task(record, flow)

    raise typer.Exit(code=0 if record.status == TaskStatus.COMPLETED else 1)


def _display_task(record: TaskRecord, flow: str) -> None:
    """Display a finished task."""
    if record.status == TaskStatus.COMPLETED:
        body = f"[green]✓ completed[/green]\nresult: {json.dumps(record.result)}"
        style = "green"
    else:
        body = f"[red]✗ {record.status.value}[/red]\nerror: {record.error}"
        style = "red"

    duration = ""
    if record.finished_at is not None:
        seconds = (record.finished_at - record.created_at).total_seconds()
        duration = f"\n[dim]duration: {seconds:.2f}s[/dim]"

    console.print(
        Panel(
            f"{body}{duration}",
            title=f"Replay {flow} [dim]({record.task_id})[/dim]",
            border_style=style,
        )
    )


@app.command()
def schema(
    flow: Annotated[str, typer.Argument(help="Flow JSON file.")],
    config: ConfigOption = None,
    json_output: JsonOption = False,
) -> None:
    """
    Show the input schema and placeholders of a flow.

    Example:
        $ flowreplay schema checkout.json --json
    """
    try:
        engine = ReplayEngine(settings=load_settings(config))
        placeholders = find_placeholders(engine.read_flow_text(flow))
        input_schema = engine.input_schema(flow)
    except FlowReplayError as e:
        _fail("flow_error", e, json_output, False)

    if json_output:
        print(json.dumps({"input_schema": input_schema, "placeholders": placeholders}, indent=2))
        return

    if input_schema is None:
        console.print("[dim]No input_schema declared.[/dim]")
    else:
        console.print("[bold]Input schema:[/bold]")
        console.print_json(data=input_schema)
    if placeholders:
        console.print(f"[bold]Placeholders:[/bold] {', '.join(placeholders)}")
    else:
        console.print("[dim]No placeholders.[/dim]")


@app.command()
def steps(
    flow: Annotated[str, typer.Argument(help="Flow JSON file.")],
    config: ConfigOption = None,
) -> None:
    """
    List the steps of a flow and the selector each would try first.

    Placeholders are left unsubstituted.
    """
    try:
        engine = ReplayEngine(settings=load_settings(config))
        parsed = engine.load_flow(flow)
    except FlowReplayError as e:
        _fail("flow_error", e, False, False)

    table = Table(title=parsed.title or flow)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Type")
    table.add_column("Selector")
    table.add_column("Timeout", justify="right")
    table.add_column("Assertions", justify="right")

    for index, step in enumerate(parsed.steps):
        candidates = [parse_selector(s) for s in step.selectors]
        usable = [c for c in candidates if c.supported]
        if usable:
            selector = usable[0].value
        elif candidates:
            selector = "[red]none usable[/red]"
        else:
            selector = "[dim]-[/dim]"
        step_type = step.type if engine.registry.has(step.type) else f"[yellow]{step.type}[/yellow]"
        table.add_row(
            str(index),
            step_type,
            selector,
            f"{step.effective_timeout(engine.settings.default_timeout_ms)}ms",
            str(len(step.asserted_events)),
        )

    console.print(table)


@app.command()
def doctor(
    config: ConfigOption = None,
    json_output: JsonOption = False,
) -> None:
    """
    Check system environment and dependencies.

    Verifies:
    - Python version (3.11+)
    - Playwright installation
    - Remote browser endpoint reachability
    - Flow directory

    Example:
        $ flowreplay doctor
    """
    checks = []

    try:
        settings = load_settings(config)
    except FlowReplayError as e:
        checks.append({"name": "Settings", "ok": False, "value": str(config or ""), "message": e.message})
        settings = Settings()

    # Check 1: Python version
    py_version = sys.version_info
    py_ok = py_version >= (3, 11)
    checks.append({
        "name": "Python version",
        "ok": py_ok,
        "value": f"{py_version.major}.{py_version.minor}.{py_version.micro}",
        "message": "OK" if py_ok else "Requires Python 3.11+",
    })

    # Check 2: Playwright
    try:
        pw_version = metadata.version("playwright")
        checks.append({"name": "Playwright", "ok": True, "value": pw_version, "message": "Installed"})
    except metadata.PackageNotFoundError:
        checks.append({
            "name": "Playwright",
            "ok": False,
            "value": "",
            "message": "Not installed. Run: pip install playwright && playwright install chromium",
        })

    # Check 3: Remote browser endpoint
    endpoint = settings.cdp_endpoint
    try:
        info = probe_endpoint(endpoint)
        checks.append({
            "name": "Remote browser",
            "ok": True,
            "value": endpoint,
            "message": info.get("Browser", "reachable"),
        })
    except httpx.ConnectError:
        checks.append({
            "name": "Remote browser",
            "ok": False,
            "value": endpoint,
            "message": "Not reachable. Start the browser with --remote-debugging-port or use --launch",
        })
    except Exception as e:
        checks.append({"name": "Remote browser", "ok": False, "value": endpoint, "message": f"Error: {e}"})

    # Check 4: Flow directory
    flow_dir = settings.flow_dir
    flow_ok = flow_dir.is_dir()
    checks.append({
        "name": "Flow directory",
        "ok": flow_ok,
        "value": str(flow_dir),
        "message": f"{len(list(flow_dir.glob('*.json')))} flow(s)" if flow_ok else "Not found",
    })

    all_ok = all(check["ok"] for check in checks)

    if json_output:
        print(json.dumps({"ok": all_ok, "version": __version__, "checks": checks}, indent=2))
    else:
        console.print(f"[bold]flowreplay doctor[/bold] v{__version__}")
        console.print()
        for check in checks:
            icon = "[green]✓[/green]" if check["ok"] else "[red]✗[/red]"
            if check["ok"]:
                console.print(f"{icon} {check['name']}: [dim]{check['value']}[/dim] - {check['message']}")
            else:
                console.print(f"{icon} {check['name']}: [dim]{check['value']}[/dim]")
                console.print(f"    [red]{check['message']}[/red]")
        console.print()
        if all_ok:
            console.print("[green]All checks passed![/green]")
        else:
            console.print("[yellow]Some checks failed. See above for details.[/yellow]")

    raise typer.Exit(code=0 if all_ok else 1)


if __name__ == "__main__":
    app()
