"""Central HIE broker application.

The broker holds the canonical patient store, deduplicates incoming records
and notifies every configured node after each create and soft delete.
"""

import logging
from typing import Optional

from flask import Flask

from hie_interop.broker.routes import broker_bp
from hie_interop.config.schema import BrokerConfig, TransportConfig
from hie_interop.interop import Notifier, Peer
from hie_interop.service import create_service_app, run_service
from hie_interop.storage import JsonStore
from hie_interop.transport import ConnectionPool, ConnectionPoolConfig

logger = logging.getLogger(__name__)

SERVICE_NAME = "hie"


def build_notifier(config: BrokerConfig, transport: Optional[TransportConfig] = None) -> Notifier:
    """Create the notifier that fans records out to every configured peer."""
    pool = ConnectionPool(ConnectionPoolConfig.from_transport(transport or TransportConfig()))
    peers = [Peer(peer.name, peer.notify_url) for peer in config.peers]
    return Notifier(peers, pool, event_prefix=SERVICE_NAME)


def create_app(
    config: BrokerConfig,
    transport: Optional[TransportConfig] = None,
    store: Optional[JsonStore] = None,
    notifier: Optional[Notifier] = None,
) -> Flask:
    """Create the broker Flask application.

    Args:
        config: Broker configuration
        transport: Outbound HTTP settings for notifications
        store: JSON store (defaults to one at ``config.db_path``)
        notifier: Fan-out notifier (defaults to one built from ``config.peers``)

    Returns:
        Configured Flask application
    """
    store = store or JsonStore(config.db_path, {"patients": []})
    notifier = notifier or build_notifier(config, transport)

    app = create_service_app(
        SERVICE_NAME,
        store,
        broker_bp,
        settings={"config": config, "notifier": notifier},
    )
    logger.info(f"Broker will notify {len(notifier.peers)} peer(s)")
    return app


def run_server(
    config: BrokerConfig,
    transport: Optional[TransportConfig] = None,
    port: Optional[int] = None,
    debug: bool = False,
) -> None:
    """Run the broker until interrupted."""
    app = create_app(config, transport)
    run_service(app, config.host, port or config.port, debug=debug)
