"""Clinical-workflow portal application.

The portal is a standalone service: it does not exchange records with the
broker or the hospital nodes.
"""

import copy
import logging
from typing import Optional

from flask import Flask

from hie_interop.config.schema import PortalConfig
from hie_interop.models import DEFAULT_USERS
from hie_interop.portal.routes import portal_bp
from hie_interop.service import create_service_app, run_service
from hie_interop.storage import JsonStore, StoreData

logger = logging.getLogger(__name__)

SERVICE_NAME = "portal"


def default_portal_data() -> StoreData:
    """Empty clinical collections plus one seeded user per role."""
    return {
        "patients": [],
        "encounters": [],
        "labResults": [],
        "radiologyReports": [],
        "diagnoses": [],
        "prescriptions": [],
        "users": copy.deepcopy(DEFAULT_USERS),
    }


def create_app(config: PortalConfig, store: Optional[JsonStore] = None) -> Flask:
    """Create the portal Flask application.

    Args:
        config: Portal configuration
        store: JSON store (defaults to one at ``config.db_path``)

    Returns:
        Configured Flask application
    """
    store = store or JsonStore(config.db_path, default_portal_data())
    return create_service_app(
        SERVICE_NAME,
        store,
        portal_bp,
        settings={"config": config},
        health_path="/api/health",
    )


def run_server(config: PortalConfig, port: Optional[int] = None, debug: bool = False) -> None:
    """Run the portal until interrupted."""
    app = create_app(config)
    run_service(app, config.host, port or config.port, debug=debug)
