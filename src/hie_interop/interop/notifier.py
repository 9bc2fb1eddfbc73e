"""Best-effort fan-out notification to peer services.

Each peer gets one POST on its own daemon thread; the caller does not wait.
Outcomes are only logged: there is no retry, backoff, dead-letter queue,
ordering across peers, or idempotency key.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from hie_interop.logging_audit import log_audit_event
from hie_interop.transport.http_client import ConnectionPool
from hie_interop.utils.exceptions import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Peer:
    """A notification target.

    Attributes:
        name: Peer display name used in log lines
        url: Full URL the payload is POSTed to
    """

    name: str
    url: str


class Notifier:
    """Dispatch a payload to every configured peer without awaiting delivery.

    Attributes:
        peers: Notification targets
        pool: Shared pooled HTTP session
        event_prefix: Audit event prefix, e.g. "hie" or "hospital-b"

    Example:
        >>> notifier = Notifier([Peer("Hospital-A", "http://localhost:3001/notify")],
        ...                     ConnectionPool(), event_prefix="hie")
        >>> threads = notifier.notify_all(resource, record_id=resource["id"])
    """

    def __init__(
        self,
        peers: Iterable[Peer],
        pool: Optional[ConnectionPool] = None,
        event_prefix: str = "notify",
    ) -> None:
        self.peers = list(peers)
        self.pool = pool or ConnectionPool()
        self.event_prefix = event_prefix

    def notify_all(
        self,
        payload: dict[str, Any],
        record_id: Optional[str] = None,
        event: str = "notify",
    ) -> list[threading.Thread]:
        """Start one delivery thread per peer and return immediately.

        Args:
            payload: JSON body to POST
            record_id: Id of the record the payload describes, for log lines
            event: Audit event stem ("notify" or "notify.delete")

        Returns:
            The started threads (callers may join them; the services do not)
        """
        threads = []
        for peer in self.peers:
            thread = threading.Thread(
                target=self._deliver,
                args=(peer, payload, record_id, event),
                name=f"{self.event_prefix}-notify-{peer.name}",
                daemon=True,
            )
            thread.start()
            threads.append(thread)
        logger.debug(f"Dispatched {event} for {record_id} to {len(threads)} peer(s)")
        return threads

    def _deliver(
        self,
        peer: Peer,
        payload: dict[str, Any],
        record_id: Optional[str],
        event: str,
    ) -> None:
        try:
            self.pool.post_json(peer.url, payload)
        except TransportError as e:
            log_audit_event(f"{self.event_prefix}.{event}.failure", {
                "status": "failure",
                "peer": peer.name,
                "id": record_id,
                "error": str(e),
            })
            return
        log_audit_event(f"{self.event_prefix}.{event}.success", {
            "status": "success",
            "peer": peer.name,
            "id": record_id,
        })
