"""HTTP client with connection pooling for peer notifications.

Notifications are best-effort: the pooled session is built with retries
disabled, so a failed call surfaces immediately as a requests exception.
"""

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from hie_interop.config.schema import TransportConfig
from hie_interop.utils.exceptions import TransportError

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONNECTIONS = 10
DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_READ_TIMEOUT = 10.0


@dataclass
class ConnectionPoolConfig:
    """Configuration for HTTP connection pooling.

    Attributes:
        max_connections: Maximum number of connections in the pool.
        connect_timeout: Connection timeout in seconds.
        read_timeout: Read timeout in seconds.
    """
    max_connections: int = DEFAULT_MAX_CONNECTIONS
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_connections < 1:
            raise ValueError(
                f"max_connections must be >= 1, got {self.max_connections}"
            )
        if self.connect_timeout <= 0 or self.read_timeout <= 0:
            raise ValueError("timeouts must be > 0")

    @classmethod
    def from_transport(cls, transport: TransportConfig) -> "ConnectionPoolConfig":
        return cls(
            max_connections=transport.max_connections,
            connect_timeout=transport.timeout_connect,
            read_timeout=transport.timeout_read,
        )

    @property
    def timeout(self) -> tuple[float, float]:
        return (self.connect_timeout, self.read_timeout)


class ConnectionPool:
    """Lazily created, thread-safe pooled HTTP session.

    Example:
        >>> with ConnectionPool() as pool:
        ...     pool.post_json("http://localhost:3001/notify", {"resourceType": "Patient"})
    """

    def __init__(self, config: Optional[ConnectionPoolConfig] = None) -> None:
        self.config = config or ConnectionPoolConfig()
        self._session: Optional[requests.Session] = None
        self._lock = Lock()

    def get_session(self) -> requests.Session:
        """Get or create the pooled session."""
        with self._lock:
            if self._session is None:
                self._session = self._create_session()
            return self._session

    def _create_session(self) -> requests.Session:
        adapter = HTTPAdapter(
            pool_connections=self.config.max_connections,
            pool_maxsize=self.config.max_connections,
            max_retries=Retry(total=0, connect=0, read=0, redirect=0, status=0),
        )
        session = requests.Session()
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        logger.debug(
            "Created HTTP session with pool_maxsize=%d, retries disabled",
            self.config.max_connections,
        )
        return session

    def post_json(self, url: str, payload: Any) -> requests.Response:
        """POST a JSON body and return the response.

        Raises:
            TransportError: On connection failure, timeout or a non-2xx status
        """
        try:
            response = self.get_session().post(url, json=payload, timeout=self.config.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"POST {url} failed: {e}") from e
        return response

    def get_json(self, url: str) -> Any:
        """GET a URL and decode its JSON body.

        Raises:
            TransportError: On connection failure, timeout, a non-2xx status
                or a non-JSON body
        """
        try:
            response = self.get_session().get(url, timeout=self.config.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            raise TransportError(f"GET {url} failed: {e}") from e

    def close(self) -> None:
        """Close the session and release pooled connections."""
        with self._lock:
            if self._session is not None:
                self._session.close()
                self._session = None
                logger.debug("ConnectionPool session closed")

    def __enter__(self) -> "ConnectionPool":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
