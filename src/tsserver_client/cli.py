"""tsserver-client CLI.

Runs one-off requests against a tsserver process and prints JSON results
on stdout. Logs go to stderr.

Usage:
    tsserver-client version                         # Probe server version
    tsserver-client quickinfo src/app.ts 10 5       # Quick info at line/offset
    tsserver-client diagnostics src/app.ts src/b.ts # Collected diagnostics
    tsserver-client request navtree '{"file": "src/app.ts"}'
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import click

from .api import TsServerAPI
from .client import ProtocolClient
from .config import ClientConfig, resolve_server_path
from .errors import TsServerError
from .protocol.commands import NO_RESPONSE_COMMANDS
from .version import probe_version, select_completion_command

R = TypeVar("R")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_logging(verbose: int) -> None:
    """Send logs to stderr; stdout is reserved for results."""
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG

    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _run_with_client(
    config: ClientConfig, action: Callable[[ProtocolClient], Awaitable[R]]
) -> R:
    """Start a client, run `action` against it, and stop it."""

    async def run() -> R:
        try:
            version = await probe_version(config.server_path)
        except (OSError, ValueError) as e:
            logging.getLogger(__name__).info(f"Version probe failed, using defaults: {e}")
            version = None

        client = ProtocolClient(
            config,
            completion_strategy=select_completion_command,
            server_version=version,
        )
        async with client:
            return await action(client)

    try:
        return asyncio.run(run())
    except TsServerError as e:
        click.echo(f"Error ({e.kind.value}): {e.message}", err=True)
        sys.exit(1)
    except OSError as e:
        click.echo(f"Cannot launch {config.server_path}: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option(
    "--server-path",
    envvar="TSSERVER_PATH",
    default="tsserver",
    show_default=True,
    help="tsserver executable",
)
@click.option("--server-arg", "server_args", multiple=True, help="Extra server argument (repeatable)")
@click.option("--cwd", "working_directory", type=click.Path(file_okay=False), help="Server working directory")
@click.option("--timeout", type=float, default=None, help="Seconds to wait for each response")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v, -vv)")
@click.pass_context
def main(
    ctx: click.Context,
    server_path: str,
    server_args: tuple[str, ...],
    working_directory: str | None,
    timeout: float | None,
    verbose: int,
) -> None:
    """Talk to a TypeScript tsserver process over its stdio protocol."""
    _configure_logging(verbose)

    config = ClientConfig.from_env()
    config.server_path = resolve_server_path(server_path) or server_path
    if server_args:
        config.server_args = list(server_args)
    if working_directory:
        config.working_directory = working_directory
    if timeout is not None:
        config.request_timeout = timeout

    ctx.obj = config


@main.command()
@click.pass_obj
def version(config: ClientConfig) -> None:
    """Show the server version and the completion command it supports."""

    async def probe() -> dict[str, Any]:
        detected = await probe_version(config.server_path)
        return {
            "version": str(detected),
            "completion_command": select_completion_command(detected),
        }

    try:
        _echo_json(asyncio.run(probe()))
    except (OSError, ValueError) as e:
        click.echo(f"Cannot determine version: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("command")
@click.argument("arguments", required=False)
@click.pass_obj
def request(config: ClientConfig, command: str, arguments: str | None) -> None:
    """Send COMMAND with optional JSON ARGUMENTS and print the response body.

    Commands the server never answers (open, close, geterr...) print null.

    Examples:

        tsserver-client request projectInfo '{"file": "src/app.ts", "needFileNameList": true}'
    """
    try:
        args = json.loads(arguments) if arguments else None
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="ARGUMENTS") from e

    async def action(client: ProtocolClient) -> Any:
        if command in NO_RESPONSE_COMMANDS:
            await client.send_no_response(command, args)
            return None
        return await client.request(command, args)

    _echo_json(_run_with_client(config, action))


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.argument("line", type=int)
@click.argument("offset", type=int)
@click.pass_obj
def quickinfo(config: ClientConfig, file: str, line: int, offset: int) -> None:
    """Show type information at LINE/OFFSET (1-based) in FILE."""
    path = os.path.abspath(file)

    async def action(client: ProtocolClient) -> Any:
        api = TsServerAPI(client)
        await api.open_file({"file": path})
        return await api.quick_info({"file": path, "line": line, "offset": offset})

    _echo_json(_run_with_client(config, action))


@main.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--categories", is_flag=True, help="Tag each diagnostic group with its category")
@click.pass_obj
def diagnostics(config: ClientConfig, files: tuple[str, ...], categories: bool) -> None:
    """Collect semantic, syntactic and suggestion diagnostics for FILES."""
    paths = [os.path.abspath(f) for f in files]

    async def action(client: ProtocolClient) -> Any:
        api = TsServerAPI(client)
        for path in paths:
            await api.open_file({"file": path})
        batch = await api.collect_diagnostics(paths)
        if categories:
            return [group.model_dump(mode="json") for group in batch.groups]
        return batch.bodies

    _echo_json(_run_with_client(config, action))


if __name__ == "__main__":
    main()
