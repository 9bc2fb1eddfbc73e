"""CLI commands that start the broker, a hospital node or the portal."""

import logging
from typing import Optional

import click

from hie_interop.broker import app as broker_app
from hie_interop.config import Config, get_node_config
from hie_interop.node import app as node_app
from hie_interop.portal import app as portal_app
from hie_interop.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _validate_port(port: Optional[int]) -> None:
    if port is not None and not 1 <= port <= 65535:
        raise click.ClickException(
            f"Invalid port {port}. Port must be between 1 and 65535."
        )


def _banner(title: str, host: str, port: int, lines: list[str]) -> None:
    click.echo("=" * 50)
    click.echo(title)
    click.echo("=" * 50)
    click.echo(f"Host: {host}")
    click.echo(f"Port: {port}")
    for line in lines:
        click.echo(line)
    click.echo("=" * 50)
    click.echo("")


@click.group(name="broker")
def broker_group():
    """Manage the central HIE broker.

    Endpoints: POST /fhir/Patient, GET /fhir/Patient/<id>,
    DELETE /patients/<id>, GET /patients, GET /health
    """


@broker_group.command(name="start")
@click.option("--port", type=int, help="Server port (overrides config file)")
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.pass_context
def start_broker(ctx: click.Context, port: Optional[int], debug: bool):
    """Start the broker in the foreground.

    Examples:

        hie-interop broker start

        hie-interop broker start --port 4100
    """
    _validate_port(port)
    config: Config = ctx.obj["config"]
    broker = config.broker
    _banner("HIE Broker", broker.host, port or broker.port, [
        f"Store: {broker.db_path}",
        f"Peers: {', '.join(p.name for p in broker.peers) or 'none'}",
    ])
    broker_app.run_server(broker, config.transport, port=port, debug=debug)


@click.group(name="node")
def node_group():
    """Manage simulated hospital nodes.

    Endpoints: POST /ingest, POST /notify, GET /fhir/Patient/<id>,
    DELETE /patients/<id>, GET /patients, GET /health
    """


@node_group.command(name="start")
@click.argument("name")
@click.option("--port", type=int, help="Server port (overrides config file)")
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.pass_context
def start_node(ctx: click.Context, name: str, port: Optional[int], debug: bool):
    """Start the hospital node NAME in the foreground.

    Examples:

        hie-interop node start Hospital-B

        hie-interop node start hospital-a --port 3101
    """
    _validate_port(port)
    config: Config = ctx.obj["config"]
    try:
        node = get_node_config(config, name)
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    mapping = ", ".join(f"{k}={v}" for k, v in node.local_gender.items())
    _banner(f"Hospital Node: {node.name}", node.host, port or node.port, [
        f"Store: {node.db_path}",
        f"Broker: {node.hie_url}",
        f"Gender codes: {mapping}",
    ])
    node_app.run_server(node, config.transport, port=port, debug=debug)


@click.group(name="portal")
def portal_group():
    """Manage the clinical-workflow portal (all endpoints under /api)."""


@portal_group.command(name="start")
@click.option("--port", type=int, help="Server port (overrides config file)")
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.pass_context
def start_portal(ctx: click.Context, port: Optional[int], debug: bool):
    """Start the portal in the foreground.

    Examples:

        hie-interop portal start
    """
    _validate_port(port)
    config: Config = ctx.obj["config"]
    portal = config.portal
    _banner("EHR Portal", portal.host, port or portal.port, [
        f"Store: {portal.db_path}",
        f"Health Check: http://{portal.host}:{port or portal.port}/api/health",
    ])
    portal_app.run_server(portal, port=port, debug=debug)
