"""Node module.

This module provides the simulated hospital node service.
"""

from hie_interop.node.app import create_app, run_server

__all__ = ["create_app", "run_server"]
