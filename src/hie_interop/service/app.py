"""Flask application scaffolding shared by the broker, nodes and portal.

Every service is a Flask app built by ``create_service_app``: a JSON store, a
request-logging hook with a per-service counter, a ``/health`` endpoint and
error handlers that turn HIEInteropError subclasses into ``{"error": ...}``
responses with the exception's status code.
"""

import logging
import signal
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from flask import Blueprint, Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from hie_interop import __version__
from hie_interop.logging_audit import set_service_name
from hie_interop.storage import JsonStore
from hie_interop.utils.exceptions import HIEInteropError

logger = logging.getLogger(__name__)

EXTENSION_KEY = "hie_interop"


@dataclass
class ServiceContext:
    """Per-app state reachable from request handlers via ``get_context()``.

    Attributes:
        name: Service name used in log lines and /health
        store: The service's JSON store
        settings: Service-specific collaborators (config, notifier, mapping)
        started_at: Service start time
        request_count: Requests seen since start
    """

    name: str
    store: JsonStore
    settings: dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    request_count: int = 0


def get_context() -> ServiceContext:
    """Return the ServiceContext of the app handling the current request."""
    return current_app.extensions[EXTENSION_KEY]


def create_service_app(
    name: str,
    store: JsonStore,
    blueprint: Blueprint,
    settings: Optional[dict[str, Any]] = None,
    health_path: str = "/health",
) -> Flask:
    """Build a Flask app for one service.

    Args:
        name: Service name, e.g. "hie" or "Hospital-B"
        store: JSON store, initialized here
        blueprint: The service's routes
        settings: Extra collaborators stored on the ServiceContext
        health_path: Path of the unauthenticated health endpoint

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    store.initialize()
    app.extensions[EXTENSION_KEY] = ServiceContext(
        name=name, store=store, settings=dict(settings or {})
    )

    app.before_request(_log_request)
    app.register_error_handler(HIEInteropError, _handle_service_error)
    app.register_error_handler(HTTPException, _handle_http_error)
    app.register_error_handler(Exception, _handle_unexpected_error)
    app.add_url_rule(health_path, "health", _health_check, methods=["GET"])
    app.register_blueprint(blueprint)

    logger.info(f"{name} application initialized")
    return app


def _log_request() -> None:
    """Log all incoming requests."""
    ctx = get_context()
    ctx.request_count += 1

    logger.info(
        f"[{ctx.name}] Request #{ctx.request_count}: {request.method} {request.path} "
        f"(Content-Length: {request.content_length or 0})"
    )

    if request.data and logger.isEnabledFor(logging.DEBUG):
        try:
            body = request.data.decode("utf-8")
            logger.debug(f"Request body: {body[:500]}")
        except UnicodeDecodeError as e:
            logger.debug(f"Could not decode request body: {e}")


def _health_check():
    """Health check endpoint.

    Returns JSON with service name, version, uptime, request count,
    stored patient count and timestamp.
    """
    ctx = get_context()
    uptime_seconds = int((datetime.now(timezone.utc) - ctx.started_at).total_seconds())
    data = ctx.store.read()

    return jsonify({
        "status": "healthy",
        "service": ctx.name,
        "version": __version__,
        "database": "connected",
        "patients": len(data.get("patients", [])),
        "uptime_seconds": uptime_seconds,
        "request_count": ctx.request_count,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }), 200


def _handle_service_error(error: HIEInteropError):
    if error.status_code >= 500:
        logger.error(f"{type(error).__name__}: {error}")
    else:
        logger.warning(f"{request.method} {request.path} -> {error.status_code}: {error}")
    return jsonify({"error": str(error)}), error.status_code


def _handle_http_error(error: HTTPException):
    return jsonify({"error": error.description}), error.code


def _handle_unexpected_error(error: Exception):
    logger.error(f"Unexpected error processing {request.method} {request.path}: {error}", exc_info=True)
    return jsonify({"error": "Internal Server Error"}), 500


def json_body() -> Optional[Any]:
    """Return the decoded JSON request body, or None if absent or malformed."""
    return request.get_json(silent=True)


def setup_graceful_shutdown(service_name: str) -> None:
    """Setup graceful shutdown handlers for SIGTERM and SIGINT.

    Signal handlers can only be registered in the main thread; elsewhere a
    warning is logged and signals keep their default behaviour.
    """
    def shutdown_handler(signum, frame):
        logger.info(f"{service_name} received shutdown signal ({signum})")
        sys.exit(0)

    try:
        signal.signal(signal.SIGTERM, shutdown_handler)
        signal.signal(signal.SIGINT, shutdown_handler)
    except ValueError as e:
        logger.warning(
            f"Could not register signal handlers (not in main thread): {e}. "
            f"Graceful shutdown via signals will not be available."
        )


def run_service(app: Flask, host: str, port: int, debug: bool = False) -> None:
    """Run a service app on Werkzeug's threaded development server."""
    ctx: ServiceContext = app.extensions[EXTENSION_KEY]
    set_service_name(ctx.name)
    setup_graceful_shutdown(ctx.name)
    logger.info(f"Starting {ctx.name} on http://{host}:{port}")
    app.run(host=host, port=port, debug=debug, use_reloader=False, threaded=True)
