"""Simulated hospital node application.

A node keeps its own patient store using hospital-local gender codes,
forwards local admissions to the broker and accepts the broker's
notifications about patients registered elsewhere.
"""

import logging
from typing import Optional

from flask import Flask

from hie_interop.config.schema import NodeConfig, TransportConfig
from hie_interop.interop import GenderMapping, Notifier, Peer
from hie_interop.node.routes import node_bp
from hie_interop.service import create_service_app, run_service
from hie_interop.storage import JsonStore
from hie_interop.transport import ConnectionPool, ConnectionPoolConfig

logger = logging.getLogger(__name__)

BROKER_PEER_NAME = "HIE"


def build_notifier(config: NodeConfig, transport: Optional[TransportConfig] = None) -> Notifier:
    """Create the notifier that forwards local admissions to the broker."""
    pool = ConnectionPool(ConnectionPoolConfig.from_transport(transport or TransportConfig()))
    broker = Peer(BROKER_PEER_NAME, f"{config.hie_url}/fhir/Patient")
    return Notifier([broker], pool, event_prefix="node")


def create_app(
    config: NodeConfig,
    transport: Optional[TransportConfig] = None,
    store: Optional[JsonStore] = None,
    notifier: Optional[Notifier] = None,
) -> Flask:
    """Create a hospital node Flask application.

    Args:
        config: Node configuration, including its gender code table
        transport: Outbound HTTP settings
        store: JSON store (defaults to one at ``config.db_path``)
        notifier: Broker notifier (defaults to one targeting ``config.hie_url``)

    Returns:
        Configured Flask application
    """
    store = store or JsonStore(config.db_path, {"patients": []})
    notifier = notifier or build_notifier(config, transport)
    mapping = GenderMapping(config.local_gender)

    app = create_service_app(
        config.name,
        store,
        node_bp,
        settings={"config": config, "mapping": mapping, "notifier": notifier},
    )
    logger.info(f"{config.name} gender mapping: {mapping.as_dict()}")
    return app


def run_server(
    config: NodeConfig,
    transport: Optional[TransportConfig] = None,
    port: Optional[int] = None,
    debug: bool = False,
) -> None:
    """Run a hospital node until interrupted."""
    app = create_app(config, transport)
    run_service(app, config.host, port or config.port, debug=debug)
