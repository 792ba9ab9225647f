"""resmap CLI.

Usage::

    resmap build snapshot.json --layout flat --server-id 3 > graph.json
    resmap stats snapshot.json
    resmap serve --port 8080
"""

from __future__ import annotations

import json
from dataclasses import asdict, replace
from typing import IO, Any

import click

from resmap.config import LAYOUT_NAMES, load_config
from resmap.graph.builder import UnknownLayoutError, build_graph
from resmap.graph.filtering import filter_snapshot, snapshot_stats
from resmap.models.config import ResMapConfig
from resmap.models.snapshot import Snapshot, SnapshotError
from resmap.observability.logging import get_logger, setup_logging


def _load_snapshot(stream: IO[str]) -> Snapshot:
    try:
        payload = json.load(stream)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"not valid JSON: {exc}", param_hint="SNAPSHOT") from exc
    try:
        return Snapshot.from_dict(payload)
    except SnapshotError as exc:
        raise click.BadParameter(str(exc), param_hint="SNAPSHOT") from exc


def _load_config() -> ResMapConfig:
    try:
        return load_config()
    except ValueError as exc:
        raise click.UsageError(f"invalid RESMAP_* environment: {exc}") from exc


@click.group()
@click.version_option(package_name="resmap")
@click.option("--log-level", default=None, help="Override RESMAP_LOG_LEVEL for this command.")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """Build positioned resource-map graphs from infrastructure snapshots."""
    config = _load_config()
    setup_logging(log_level or config.log.level, renderer="console")
    ctx.obj = config


@cli.command()
@click.argument("snapshot", type=click.File("r"))
@click.option("--layout", type=click.Choice(LAYOUT_NAMES), default=None, help="Layout strategy.")
@click.option("--server-id", "server_ids", type=int, multiple=True, help="Only draw this server (repeatable).")
@click.option("--indent", type=int, default=None, help="Pretty-print the JSON output.")
@click.pass_obj
def build(
    config: ResMapConfig,
    snapshot: IO[str],
    layout: str | None,
    server_ids: tuple[int, ...],
    indent: int | None,
) -> None:
    """Print the positioned graph for SNAPSHOT as JSON ("-" reads stdin)."""
    parsed = filter_snapshot(_load_snapshot(snapshot), server_ids)
    layout = layout or config.graph.layout
    try:
        graph = build_graph(parsed, layout=layout, geometry=config.graph.geometry)
    except UnknownLayoutError as exc:
        raise click.BadParameter(str(exc), param_hint="--layout") from exc

    get_logger("cli").debug("graph_written", nodes=graph.node_count, edges=graph.edge_count)
    document: dict[str, Any] = {"layout": layout, **graph.to_dict(), "stats": asdict(snapshot_stats(parsed))}
    click.echo(json.dumps(document, indent=indent))


@cli.command()
@click.argument("snapshot", type=click.File("r"))
def stats(snapshot: IO[str]) -> None:
    """Print resource counts for SNAPSHOT."""
    counts = snapshot_stats(_load_snapshot(snapshot))
    if counts.is_empty:
        click.echo("No resources in snapshot.")
        return
    for name, value in asdict(counts).items():
        click.echo(f"{name:<12} {value}")


@cli.command()
@click.option("--host", default=None, help="Bind address (default RESMAP_API_HOST).")
@click.option("--port", type=click.IntRange(1024, 65535), default=None, help="Port (default RESMAP_API_PORT).")
@click.option("--layout", type=click.Choice(LAYOUT_NAMES), default=None, help="Default layout for requests.")
@click.pass_obj
def serve(config: ResMapConfig, host: str | None, port: int | None, layout: str | None) -> None:
    """Run the REST API with uvicorn."""
    import uvicorn

    from resmap.api import build_app

    if host is not None or port is not None:
        config = replace(config, api=replace(config.api, host=host or config.api.host, port=port or config.api.port))
    if layout is not None:
        config = replace(config, graph=replace(config.graph, layout=layout))

    setup_logging(config.log.level, config.log.renderer)
    get_logger("cli").info("serving", host=config.api.host, port=config.api.port, layout=config.graph.layout)
    uvicorn.run(
        build_app(config=config),
        host=config.api.host,
        port=config.api.port,
        log_config=None,
        access_log=False,
    )
