"""CLI interface for the key-value store."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Optional, cast

import typer

from kvstore_cli.config import CLIConfig, load_config, resolve_db_path
from kvstore_core.errors import KVStoreError
from kvstore_core.operations import get_value, key_exists, list_keys, set_value
from kvstore_core.results import Failure, NotFound, Result

app = typer.Typer(help="A simple key-value store using SQLite", no_args_is_help=True)

ENCODING_HELP = "r (raw/binary), j (JSON), h (hexdigits) or b (base64)"


@dataclass
class CommandState:
    path: str
    timeout_s: float


def _state(ctx: typer.Context) -> CommandState:
    return cast(CommandState, ctx.obj)


def _echo_value(value: object) -> None:
    if value is None:
        return
    if isinstance(value, bool):
        typer.echo("1" if value else "0")
    elif isinstance(value, (bytes, str)):
        typer.echo(value)
    else:
        typer.echo(json.dumps(value, ensure_ascii=False))


def _emit(result: Result) -> None:
    """Print a result and exit with the code it maps to."""
    if isinstance(result, Failure):
        typer.secho(f"ERROR {result.status}: {result.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(result.exit_code)
    if isinstance(result, NotFound):
        raise typer.Exit(result.exit_code)
    if result.display:
        _echo_value(result.value)
    if result.exit_code:
        raise typer.Exit(result.exit_code)


@app.callback()
def configure(
    ctx: typer.Context,
    path: Optional[str] = typer.Option(
        None,
        "--path",
        "-p",
        help="Database path (default: $HOME/kvstore.db, ':memory:' for a transient store)",
    ),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="YAML config file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
) -> None:
    """Load configuration and set up logging for all commands."""
    try:
        config = load_config(config_path) if config_path else CLIConfig()
        if log_level:
            config = CLIConfig.from_dict({**config.to_dict(), "log_level": log_level})
        db_path = resolve_db_path(path, config)
    except FileNotFoundError as e:
        typer.secho(f"❌ Config file not found: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except ValueError as e:
        typer.secho(f"❌ Invalid config: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except KVStoreError as e:
        typer.secho(f"❌ {e.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = CommandState(path=db_path, timeout_s=config.timeout_s)


@app.command("list-keys")
def list_keys_command(ctx: typer.Context) -> None:
    """List existing keys in the key-value store."""
    state = _state(ctx)
    result = list_keys(path=state.path, timeout_s=state.timeout_s)
    if isinstance(result, (Failure, NotFound)):
        _emit(result)
        return
    for key in result.value:
        typer.echo(key)


@app.command("get")
def get_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Key name"),
    output_encoding: Optional[str] = typer.Option(
        None, "--output-encoding", "-E", help=f"Output encoding: {ENCODING_HELP}"
    ),
) -> None:
    """Get the current value of a key. Exits 1 when the key does not exist."""
    state = _state(ctx)
    _emit(
        get_value(
            key,
            path=state.path,
            output_encoding=output_encoding,
            timeout_s=state.timeout_s,
        )
    )


@app.command("set")
def set_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Key name"),
    value: str = typer.Argument(..., help="Value"),
    input_encoding: str = typer.Option(
        "r", "--input-encoding", "-e", help=f"Input encoding: {ENCODING_HELP}"
    ),
    output_encoding: Optional[str] = typer.Option(
        None, "--output-encoding", "-E", help=f"Output encoding of the old value: {ENCODING_HELP}"
    ),
) -> None:
    """Set the value of a key and print the old value.

    Values given as h or b are stored as raw bytes; JSON values that are
    structures, booleans or null are stored as JSON.
    """
    state = _state(ctx)
    _emit(
        set_value(
            key,
            value,
            path=state.path,
            input_encoding=input_encoding,
            output_encoding=output_encoding,
            timeout_s=state.timeout_s,
        )
    )


@app.command("exists")
def exists_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Key name"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only set the exit code"),
) -> None:
    """Check whether a key exists. Exits 0 when it does, 1 when it does not."""
    state = _state(ctx)
    _emit(key_exists(key, path=state.path, quiet=quiet, timeout_s=state.timeout_s))


if __name__ == "__main__":
    app()
