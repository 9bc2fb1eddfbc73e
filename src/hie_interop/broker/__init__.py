"""Broker module.

This module provides the central HIE broker service.
"""

from hie_interop.broker.app import create_app, run_server

__all__ = ["create_app", "run_server"]
