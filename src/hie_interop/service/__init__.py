"""Service module.

This module provides the Flask scaffolding shared by all services.
"""

from hie_interop.service.app import (
    ServiceContext,
    create_service_app,
    get_context,
    json_body,
    run_service,
)

__all__ = [
    "ServiceContext",
    "create_service_app",
    "get_context",
    "json_body",
    "run_service",
]
