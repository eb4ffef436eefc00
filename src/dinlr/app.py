"""Typer application and CLI entry point for dinlr.

The ``dinlr`` command is a thin shell over :class:`~dinlr.client.DinlrClient`
for inspecting a restaurant's data from a terminal::

    dinlr list locations
    dinlr list items --param location_id=loc_1 --json
    dinlr get customers cus_123
    dinlr loyalty-members prog_1 --customer cus_123
    dinlr configure --api-key env:DINLR_KEY --restaurant-id rest_1

Settings come from :func:`~dinlr.config.load_config`; global flags override
them. :class:`~dinlr.exceptions.DinlrError` failures are printed to stderr
and exit with the error's ``exit_code``.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from dinlr import __version__
from dinlr.exceptions import DinlrError
from dinlr.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE
from dinlr.output import error, format_response, info, print_table, warning

app = typer.Typer(
    name="dinlr",
    help="Query the Dinlr point-of-sale API.",
    no_args_is_help=True,
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"dinlr {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to a JSON config file."
    ),
    restaurant_id: Optional[str] = typer.Option(
        None, "--restaurant", "-r", help="Restaurant id (overrides config)."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Set up output and remember the connection overrides for sub-commands."""
    from dinlr.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["overrides"] = {
        "restaurant_id": restaurant_id,
        "debug": True if verbose else None,
    }


def _make_client(ctx: typer.Context):
    from dinlr.client import DinlrClient
    from dinlr.config import load_config

    obj = ctx.obj or {}
    config = load_config(obj.get("config_path"), overrides=obj.get("overrides"))
    return DinlrClient(config)


def _parse_params(pairs: list[str]) -> dict[str, str]:
    """Turn ``key=value`` strings into a params dict."""
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            error(f"Invalid parameter '{pair}', expected key=value")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        params[key] = value
    return params


def _fail(exc: DinlrError) -> None:
    error(str(exc))
    raise typer.Exit(code=exc.exit_code)


def _lookup_resource(client, name: str):
    try:
        return client.resource(name)
    except KeyError:
        error(f"Unknown resource '{name}'")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None


@app.command("list")
def list_command(
    ctx: typer.Context,
    resource: str = typer.Argument(help="Resource name, e.g. 'locations' or 'dining-options'."),
    param: list[str] = typer.Option(
        [], "--param", "-p", help="Query parameter as key=value (repeatable)."
    ),
) -> None:
    """List the records of a resource."""
    params = _parse_params(param)
    try:
        with _make_client(ctx) as client:
            collection = _lookup_resource(client, resource).list(**params)
            info(f"{len(collection)} {resource}")
            format_response(collection.to_array())
    except DinlrError as exc:
        _fail(exc)


@app.command("get")
def get_command(
    ctx: typer.Context,
    resource: str = typer.Argument(help="Resource name."),
    record_id: str = typer.Argument(help="Record id."),
) -> None:
    """Show one record of a resource."""
    try:
        with _make_client(ctx) as client:
            record = _lookup_resource(client, resource).get(record_id)
            format_response(record.to_dict())
    except DinlrError as exc:
        _fail(exc)


@app.command("loyalty-members")
def loyalty_members_command(
    ctx: typer.Context,
    program_id: str = typer.Argument(help="Loyalty program id."),
    customer: Optional[str] = typer.Option(
        None, "--customer", help="Only show the member for this customer id."
    ),
) -> None:
    """Show the members of a loyalty program and their points."""
    from dinlr.security import sanitize_identifier

    try:
        with _make_client(ctx) as client:
            members = client.loyalty().members(program_id)
            if customer is not None:
                member = members.find_by_customer(sanitize_identifier(customer, "customer"))
                if member is None:
                    error(f"Customer '{customer}' is not a member of {program_id}")
                    raise typer.Exit(code=EXIT_GENERIC_FAILURE)
                format_response(member.to_dict())
                return
            rows = [[str(m.id), m.customer, str(m.point)] for m in members]
            print_table(["id", "customer", "point"], rows, title=f"Program {program_id}")
            info(f"Total points: {members.total_points()}")
    except DinlrError as exc:
        _fail(exc)


@app.command("configure")
def configure_command(
    api_key: str = typer.Option(
        ..., "--api-key", help="API key, or a source such as env:VAR or file:/path."
    ),
    restaurant_id: Optional[str] = typer.Option(None, "--restaurant-id", help="Restaurant id."),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="API base URL."),
    path: Optional[str] = typer.Option(None, "--path", help="Config file to write."),
) -> None:
    """Write a config file for later commands.

    The API key is stored as given, so ``env:`` and ``file:`` sources keep
    the secret out of the file.
    """
    from dinlr.config import save_config
    from dinlr.models import ClientConfig

    data: dict[str, Any] = {"api_key": api_key, "restaurant_id": restaurant_id}
    if api_url:
        data["api_url"] = api_url
    try:
        target = save_config(ClientConfig.model_validate(data), path)
    except ValueError as exc:
        error(f"Invalid configuration: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    info(f"Saved configuration to {target}")
    if not api_key.startswith(("env:", "file:")):
        warning("API key stored in plain text; use env:VAR or file:/path to keep it out")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log() -> str:
    """Write the current traceback under the data directory and return its path."""
    from dinlr.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now().strftime('%Y%m%d-%H%M%S')}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """Console-script entry point for ``dinlr``.

    :class:`~dinlr.exceptions.DinlrError` instances that escape a command
    exit with their ``exit_code``; anything else writes a crash log and
    exits with :data:`~dinlr.exit_codes.EXIT_GENERIC_FAILURE`.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except DinlrError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception:
        log_path = _write_crash_log()
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
