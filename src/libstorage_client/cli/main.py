import asyncio
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from libstorage_client import __version__
from libstorage_client.client import dial
from libstorage_client.config.loader import ConfigLoader
from libstorage_client.config.schema import ClientConfig
from libstorage_client.devices import list_local_devices
from libstorage_client.errors import LibStorageError
from libstorage_client.logging_config import configure_logging

console = Console()


def _fail(error: Exception) -> NoReturn:
    console.print(f"[red]{escape(str(error))}[/red]")
    raise SystemExit(1)


def _run_async(coro):
    """Run an async function from sync Click commands."""
    return asyncio.run(coro)


def _load_config(ctx: click.Context) -> ClientConfig:
    config_path = ctx.obj.get("config_path")
    try:
        config = ConfigLoader(Path(config_path) if config_path else None).load()
    except LibStorageError as e:
        _fail(e)
    host = ctx.obj.get("host")
    if host:
        config.libstorage.host = host
    return config


@click.group()
@click.version_option(version=__version__, prog_name="libstorage-client")
@click.option("--config", "config_path", type=click.Path(), help="YAML config file")
@click.option("--host", default=None, help="Service endpoint, e.g. tcp://127.0.0.1:7979")
@click.option("--log-level", default="WARNING", help="Log level")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, host: str | None, log_level: str) -> None:
    """Query a libStorage storage service."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["host"] = host
    configure_logging(level=log_level)


@cli.command()
@click.pass_context
def root(ctx: click.Context) -> None:
    """List the service's root resources."""
    config = _load_config(ctx)

    async def run() -> list[str]:
        async with dial(config) as client:
            return await client.root()

    try:
        resources = _run_async(run())
    except LibStorageError as e:
        _fail(e)

    for name in resources:
        console.print(escape(name))


@cli.command()
@click.pass_context
def volumes(ctx: click.Context) -> None:
    """List volumes for all services."""
    config = _load_config(ctx)

    async def run():
        async with dial(config) as client:
            return await client.volumes()

    try:
        service_volumes = _run_async(run())
    except LibStorageError as e:
        _fail(e)

    if not any(service_volumes.values()):
        console.print("No volumes.")
        return

    table = Table(title="Volumes")
    table.add_column("Service", style="cyan")
    table.add_column("ID", style="magenta")
    table.add_column("Name")
    table.add_column("Size", justify="right")
    table.add_column("Status", style="green")

    for service, vols in sorted(service_volumes.items()):
        for v in vols:
            table.add_row(service, v.id, v.name, str(v.size), v.status or "-")

    console.print(table)


@cli.command("local-devices")
@click.argument("prefix")
@click.pass_context
def local_devices(ctx: click.Context, prefix: str) -> None:
    """List local devices whose names start with PREFIX."""
    config = _load_config(ctx)
    try:
        devices = list_local_devices(config.client.localdevicesfile, prefix)
    except OSError as e:
        _fail(e)

    for device in devices:
        console.print(device)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
