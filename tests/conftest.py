"""
Shared pytest configuration and fixtures.

This module provides fixtures used across the unit and integration suites:
service configurations, tmp_path-backed JSON stores, Flask test clients for
each service with a mocked notifier, and portal credential headers.
"""

from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock

import pytest

from hie_interop.broker import create_app as create_broker_app
from hie_interop.config import BrokerConfig, NodeConfig, PeerConfig, PortalConfig
from hie_interop.interop import Notifier
from hie_interop.node import create_app as create_node_app
from hie_interop.portal import create_app as create_portal_app
from hie_interop.portal import default_portal_data
from hie_interop.storage import JsonStore

HOSPITAL_A_CODES = {"male": "M", "female": "W", "other": "O", "unknown": "U"}
HOSPITAL_B_CODES = {"male": "1", "female": "0", "other": "9", "unknown": "8"}
HOSPITAL_C_CODES = {"male": "male", "female": "female", "other": "other", "unknown": "unknown"}


@pytest.fixture
def project_root() -> Path:
    """
    Return the project root directory.

    Returns:
        Path: Absolute path to the project root directory.
    """
    return Path(__file__).parent.parent


@pytest.fixture
def mock_notifier() -> MagicMock:
    """
    Return a notifier double that records fan-out calls without any HTTP.

    Returns:
        MagicMock: Mock with the Notifier interface and an empty peer list.
    """
    notifier = MagicMock(spec=Notifier)
    notifier.peers = []
    notifier.notify_all.return_value = []
    return notifier


@pytest.fixture
def broker_config(tmp_path: Path) -> BrokerConfig:
    """Broker configuration with a tmp_path store and the three demo peers."""
    return BrokerConfig(
        db_path=tmp_path / "hie-db.json",
        peers=[
            PeerConfig(name="Hospital-A", notify_url="http://localhost:3001/notify"),
            PeerConfig(name="Hospital-B", notify_url="http://localhost:3002/notify"),
            PeerConfig(name="Hospital-C", notify_url="http://localhost:3003/notify"),
        ],
    )


@pytest.fixture
def broker_store(broker_config: BrokerConfig) -> JsonStore:
    return JsonStore(broker_config.db_path, {"patients": []})


@pytest.fixture
def broker_app(broker_config, broker_store, mock_notifier):
    """Broker Flask app in testing mode."""
    app = create_broker_app(broker_config, store=broker_store, notifier=mock_notifier)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def broker_client(broker_app):
    """Broker test client."""
    return broker_app.test_client()


@pytest.fixture
def node_config_factory(tmp_path: Path) -> Callable[..., NodeConfig]:
    """
    Return a factory building node configurations with tmp_path stores.

    Returns:
        Callable taking (name, codes) and returning a NodeConfig.
    """
    def _make(name: str = "Hospital-B", codes: dict = None) -> NodeConfig:
        return NodeConfig(
            name=name,
            port=3002,
            db_path=tmp_path / f"{name.lower()}.json",
            hie_url="http://localhost:4000",
            local_gender=codes or HOSPITAL_B_CODES,
        )
    return _make


@pytest.fixture
def node_config(node_config_factory) -> NodeConfig:
    """Hospital-B configuration (numeric gender codes)."""
    return node_config_factory("Hospital-B", HOSPITAL_B_CODES)


@pytest.fixture
def node_store(node_config: NodeConfig) -> JsonStore:
    return JsonStore(node_config.db_path, {"patients": []})


@pytest.fixture
def node_app(node_config, node_store, mock_notifier):
    """Hospital-B Flask app in testing mode."""
    app = create_node_app(node_config, store=node_store, notifier=mock_notifier)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def node_client(node_app):
    """Hospital-B test client."""
    return node_app.test_client()


@pytest.fixture
def portal_store(tmp_path: Path) -> JsonStore:
    return JsonStore(tmp_path / "ehr-global.json", default_portal_data())


@pytest.fixture
def portal_app(tmp_path, portal_store):
    """Portal Flask app in testing mode with the seeded users."""
    app = create_portal_app(PortalConfig(db_path=tmp_path / "ehr-global.json"), store=portal_store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def portal_client(portal_app):
    """Portal test client."""
    return portal_app.test_client()


def credentials(role: str) -> dict:
    """Return the seeded credential headers for a role (username == role)."""
    return {"username": role, "password": f"{role}123"}


@pytest.fixture
def auth_headers() -> Callable[[str], dict]:
    """
    Return a helper producing portal credential headers for a role.

    Returns:
        Callable mapping a role name to {"username", "password"} headers.
    """
    return credentials


@pytest.fixture
def sample_patient_resource() -> dict:
    """
    Return a Patient resource as sent by Hospital-B to the broker.

    Returns:
        dict: FHIR-like Patient resource.
    """
    return {
        "resourceType": "Patient",
        "id": "PT-20250106-K3F9QZ",
        "name": [{"text": "Jane Doe"}],
        "gender": "female",
        "birthDate": "1980-01-01",
        "meta": {"sourceLocalId": "L-1736175600000", "sourceHospital": "Hospital-B"},
    }
