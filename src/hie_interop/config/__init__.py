"""Config module.

This module provides configuration management functionality.
"""

from hie_interop.config.manager import (
    get_node_config,
    load_config,
)
from hie_interop.config.schema import (
    CANONICAL_GENDERS,
    BrokerConfig,
    Config,
    LoggingConfig,
    NodeConfig,
    PeerConfig,
    PortalConfig,
    TransportConfig,
)

__all__ = [
    # Main configuration loading
    "load_config",
    # Helper functions
    "get_node_config",
    # Configuration models
    "CANONICAL_GENDERS",
    "Config",
    "BrokerConfig",
    "NodeConfig",
    "PeerConfig",
    "PortalConfig",
    "TransportConfig",
    "LoggingConfig",
]
