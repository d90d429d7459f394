from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer
import uvicorn

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_report


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for the node temperature aggregator service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:3000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for the service to answer.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("temperatures")
def temperatures_command(
    ctx: typer.Context,
    dev: bool = typer.Option(
        False,
        "--dev/--prod",
        help="Ask the service to query the development metrics backend.",
    ),
) -> None:
    """Show minute, hour and day temperature averages per node."""
    state = _get_state(ctx)
    payload = state.client.get_temperatures(dev=dev)
    render_report(payload)


@app.command("serve")
def serve_command(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind."),
    port: int = typer.Option(3000, "--port", "-p", help="Port to listen on."),
) -> None:
    """Run the HTTP API."""
    typer.echo(f"Temperature API starting on http://{host}:{port}")
    uvicorn.run("app.main:app", host=host, port=port)
