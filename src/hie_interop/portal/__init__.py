"""Portal module.

This module provides the role-gated clinical-workflow portal service.
"""

from hie_interop.portal.app import create_app, default_portal_data, run_server

__all__ = ["create_app", "default_portal_data", "run_server"]
