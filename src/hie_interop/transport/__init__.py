"""Transport module.

This module provides the pooled HTTP client used for peer notifications and
health checks.
"""

from hie_interop.transport.http_client import ConnectionPool, ConnectionPoolConfig

__all__ = [
    "ConnectionPool",
    "ConnectionPoolConfig",
]
