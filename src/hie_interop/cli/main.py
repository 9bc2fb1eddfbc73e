"""Entry point of the ``hie-interop`` command."""

from pathlib import Path
from typing import Iterator, Optional

import click

from hie_interop import __version__
from hie_interop.cli.network_commands import network_group
from hie_interop.cli.serve_commands import broker_group, node_group, portal_group
from hie_interop.config import Config, load_config
from hie_interop.logging_audit import configure_logging
from hie_interop.utils.exceptions import ConfigurationError


def _setup_logging(
    config: Config, verbose: bool, log_file: Optional[Path], redact_pii: bool
) -> None:
    """Command-line flags win over the logging section of the config."""
    configure_logging(
        level="DEBUG" if verbose else config.logging.level,
        log_file=log_file or config.logging.log_file,
        redact_pii=redact_pii or config.logging.redact_pii,
    )


@click.group()
@click.version_option(version=__version__, prog_name="hie-interop")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Configuration file (default: ./config/config.json, else built-in demo network)",
)
@click.option("--verbose", is_flag=True, help="Log at DEBUG on the console")
@click.option("--log-file", type=click.Path(path_type=Path), default=None, help="Override the log file")
@click.option("--redact-pii", is_flag=True, help="Mask patient names and birth dates in logs")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_pii: bool,
) -> None:
    """Run the HIE demo network: a broker, hospital nodes and a clinical portal.

    Start each service in its own terminal:

        hie-interop broker start
        hie-interop node start Hospital-A
        hie-interop node start Hospital-B
        hie-interop node start Hospital-C
        hie-interop portal start

    then check them with ``hie-interop network status``.
    """
    ctx.ensure_object(dict)
    try:
        network = load_config(config_path)
    except ConfigurationError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)

    ctx.obj["config"] = network
    _setup_logging(network, verbose, log_file, redact_pii)


cli.add_command(broker_group)
cli.add_command(node_group)
cli.add_command(portal_group)
cli.add_command(network_group)


def _summary(network: Config) -> Iterator[str]:
    """Yield a human-readable outline of a loaded configuration."""
    broker = network.broker
    yield "Broker:"
    yield f"  {broker.host}:{broker.port}  store {broker.db_path}"
    for peer in broker.peers:
        yield f"  notifies {peer.name} at {peer.notify_url}"

    yield "Nodes:"
    if not network.nodes:
        yield "  (none)"
    for node in network.nodes:
        codes = " ".join(f"{canonical}={code}" for canonical, code in node.local_gender.items())
        yield f"  {node.name}  :{node.port}  store {node.db_path}  broker {node.hie_url}  [{codes}]"

    portal = network.portal
    yield "Portal:"
    yield f"  {portal.host}:{portal.port}  store {portal.db_path}"

    transport = network.transport
    yield (
        f"Transport: connect {transport.timeout_connect}s, read {transport.timeout_read}s, "
        f"pool {transport.max_connections}"
    )
    logs = network.logging
    yield f"Logging: {logs.level} to {logs.log_file}, redact PII {'on' if logs.redact_pii else 'off'}"


@cli.group("config")
def config_group() -> None:
    """Inspect configuration files."""


@config_group.command("validate")
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Load CONFIG_FILE, report errors or print what it configures."""
    try:
        network = load_config(config_file)
    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)

    click.echo(click.style("✓", fg="green", bold=True) + f" Configuration is valid: {config_file}\n")
    for line in _summary(network):
        click.echo(line)


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"hie-interop version {__version__}")


if __name__ == "__main__":
    cli()
