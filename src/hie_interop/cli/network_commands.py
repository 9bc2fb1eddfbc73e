"""CLI commands for inspecting the running demo network."""

import json
import sys
from typing import Any

import click

from hie_interop.config import Config
from hie_interop.transport import ConnectionPool, ConnectionPoolConfig
from hie_interop.utils.exceptions import TransportError


def _request_host(host: str) -> str:
    # A wildcard bind address is not routable as a request target
    return "127.0.0.1" if host == "0.0.0.0" else host


def service_endpoints(config: Config) -> list[tuple[str, str]]:
    """Return (service name, health URL) for the broker, every node and the portal."""
    endpoints = [
        ("hie", f"http://{_request_host(config.broker.host)}:{config.broker.port}/health"),
    ]
    for node in config.nodes:
        endpoints.append(
            (node.name, f"http://{_request_host(node.host)}:{node.port}/health")
        )
    endpoints.append(
        ("portal", f"http://{_request_host(config.portal.host)}:{config.portal.port}/api/health")
    )
    return endpoints


def check_services(config: Config, pool: ConnectionPool) -> list[dict[str, Any]]:
    """GET every health endpoint and report which services answer."""
    results = []
    for name, url in service_endpoints(config):
        try:
            health = pool.get_json(url)
        except TransportError as e:
            results.append({"service": name, "url": url, "running": False, "error": str(e)})
            continue
        results.append({
            "service": name,
            "url": url,
            "running": True,
            "uptime_seconds": health.get("uptime_seconds", 0),
            "request_count": health.get("request_count", 0),
            "patients": health.get("patients", 0),
        })
    return results


def format_uptime(seconds: int) -> str:
    """Format uptime in human-readable format.

    Args:
        seconds: Uptime in seconds

    Returns:
        Formatted uptime string (e.g., "2h 15m 30s")
    """
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")

    return " ".join(parts)


@click.group(name="network")
def network_group():
    """Inspect the broker, hospital nodes and portal."""


@network_group.command(name="status")
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output status as JSON"
)
@click.pass_context
def network_status(ctx: click.Context, output_json: bool):
    """Check the health endpoint of every configured service.

    Exits with status 1 if any service is unreachable.

    Examples:

        hie-interop network status

        hie-interop network status --json
    """
    config: Config = ctx.obj["config"]
    with ConnectionPool(ConnectionPoolConfig.from_transport(config.transport)) as pool:
        results = check_services(config, pool)

    if output_json:
        click.echo(json.dumps(results, indent=2))
    else:
        click.echo("HIE Network Status")
        click.echo("=" * 50)
        for result in results:
            if result["running"]:
                mark = click.style("✓", fg="green", bold=True)
                click.echo(
                    f"{mark} {result['service']:<12} up {format_uptime(result['uptime_seconds'])}, "
                    f"{result['request_count']} requests, {result['patients']} patients"
                )
            else:
                mark = click.style("✗", fg="red", bold=True)
                click.echo(f"{mark} {result['service']:<12} unreachable ({result['url']})")

    sys.exit(0 if all(r["running"] for r in results) else 1)
