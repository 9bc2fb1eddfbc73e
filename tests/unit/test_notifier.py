"""Unit tests for notification fan-out and the pooled HTTP client."""

import logging
from unittest.mock import MagicMock, patch

import pytest
import requests

from hie_interop.config import TransportConfig
from hie_interop.interop import Notifier, Peer
from hie_interop.transport import ConnectionPool, ConnectionPoolConfig
from hie_interop.utils.exceptions import TransportError

PEERS = [
    Peer("Hospital-A", "http://localhost:3001/notify"),
    Peer("Hospital-B", "http://localhost:3002/notify"),
    Peer("Hospital-C", "http://localhost:3003/notify"),
]

RESOURCE = {"resourceType": "Patient", "id": "PT-1", "name": [{"text": "Jane Doe"}]}


def _join(threads):
    for thread in threads:
        thread.join(timeout=5)


class TestNotifier:
    """Tests for Notifier.notify_all."""

    def test_posts_to_every_peer(self):
        """Test posts to every peer."""
        # Arrange
        pool = MagicMock(spec=ConnectionPool)
        notifier = Notifier(PEERS, pool, event_prefix="hie")

        # Act
        _join(notifier.notify_all(RESOURCE, record_id="PT-1"))

        # Assert
        urls = sorted(call.args[0] for call in pool.post_json.call_args_list)
        assert urls == [p.url for p in PEERS]
        for call in pool.post_json.call_args_list:
            assert call.args[1] == RESOURCE

    def test_threads_are_daemons(self):
        """Test threads are daemons."""
        # Arrange
        pool = MagicMock(spec=ConnectionPool)
        notifier = Notifier(PEERS, pool)

        # Act
        threads = notifier.notify_all(RESOURCE)
        _join(threads)

        # Assert
        assert len(threads) == 3
        assert all(t.daemon for t in threads)

    def test_failure_is_logged_and_other_peers_still_notified(self, caplog):
        """Test one unreachable peer does not stop delivery to the others."""
        # Arrange
        caplog.set_level(logging.INFO)
        pool = MagicMock(spec=ConnectionPool)

        def post(url, payload):
            if "3002" in url:
                raise TransportError("connection refused")

        pool.post_json.side_effect = post
        notifier = Notifier(PEERS, pool, event_prefix="hie")

        # Act
        _join(notifier.notify_all(RESOURCE, record_id="PT-1"))

        # Assert
        assert pool.post_json.call_count == 3
        messages = [r.getMessage() for r in caplog.records]
        failures = [m for m in messages if m.startswith("AUDIT [hie.notify.failure]")]
        successes = [m for m in messages if m.startswith("AUDIT [hie.notify.success]")]
        assert len(failures) == 1
        assert "peer=Hospital-B" in failures[0]
        assert "error=connection refused" in failures[0]
        assert len(successes) == 2

    def test_delete_event_name(self, caplog):
        """Test delete event name."""
        # Arrange
        caplog.set_level(logging.INFO)
        notifier = Notifier(PEERS[:1], MagicMock(spec=ConnectionPool), event_prefix="hie")

        # Act
        _join(notifier.notify_all(RESOURCE, record_id="PT-1", event="notify.delete"))

        # Assert
        assert any(
            r.getMessage().startswith("AUDIT [hie.notify.delete.success]") for r in caplog.records
        )

    def test_no_peers_starts_no_threads(self):
        """Test no peers starts no threads."""
        # Arrange
        notifier = Notifier([], MagicMock(spec=ConnectionPool))

        # Act & Assert
        assert notifier.notify_all(RESOURCE) == []


class TestConnectionPool:
    """Tests for the pooled HTTP client."""

    def test_config_from_transport(self):
        """Test config from transport."""
        # Arrange & Act
        config = ConnectionPoolConfig.from_transport(
            TransportConfig(timeout_connect=2, timeout_read=3, max_connections=4)
        )

        # Assert
        assert config.max_connections == 4
        assert config.timeout == (2, 3)

    def test_config_rejects_bad_values(self):
        """Test config rejects bad values."""
        # Arrange & Act & Assert
        with pytest.raises(ValueError, match="max_connections"):
            ConnectionPoolConfig(max_connections=0)

    def test_session_is_reused(self):
        """Test session is reused."""
        # Arrange
        pool = ConnectionPool()

        # Act & Assert
        assert pool.get_session() is pool.get_session()
        pool.close()

    def test_retries_disabled(self):
        """Test retries disabled."""
        # Arrange
        pool = ConnectionPool()

        # Act
        adapter = pool.get_session().get_adapter("http://localhost:3001/notify")

        # Assert
        assert adapter.max_retries.total == 0
        pool.close()

    def test_post_json_wraps_request_errors(self):
        """Test post json wraps request errors."""
        # Arrange
        pool = ConnectionPool()
        with patch.object(
            requests.Session, "post", side_effect=requests.ConnectionError("refused")
        ):
            # Act & Assert
            with pytest.raises(TransportError, match="POST http://localhost:3001/notify failed"):
                pool.post_json("http://localhost:3001/notify", RESOURCE)

    def test_post_json_raises_on_error_status(self):
        """Test post json raises on error status."""
        # Arrange
        pool = ConnectionPool()
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
        with patch.object(requests.Session, "post", return_value=response) as mock_post:
            # Act & Assert
            with pytest.raises(TransportError):
                pool.post_json("http://localhost:4000/fhir/Patient", RESOURCE)
            assert mock_post.call_args.kwargs["json"] == RESOURCE
            assert mock_post.call_args.kwargs["timeout"] == (5.0, 10.0)

    def test_get_json_decodes_body(self):
        """Test get json decodes body."""
        # Arrange
        pool = ConnectionPool()
        response = MagicMock()
        response.json.return_value = {"status": "healthy"}
        with patch.object(requests.Session, "get", return_value=response):
            # Act
            body = pool.get_json("http://localhost:4000/health")

        # Assert
        assert body == {"status": "healthy"}

    def test_context_manager_closes_session(self):
        """Test context manager closes session."""
        # Arrange & Act
        with ConnectionPool() as pool:
            pool.get_session()

        # Assert
        assert pool._session is None
