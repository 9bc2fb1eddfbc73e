"""Header-based authentication and role checks for portal endpoints.

Every call carries plaintext ``username`` and ``password`` headers which are
matched against the users table in the portal store. There are no tokens,
sessions or expiry.
"""

from functools import wraps
from typing import Any, Callable, Union

from flask import g, request

from hie_interop.logging_audit import log_audit_event
from hie_interop.models import Role
from hie_interop.service import get_context
from hie_interop.utils.exceptions import AuthenticationError, AuthorizationError


def authenticate(view: Callable) -> Callable:
    """Reject the request with 401 unless the credential headers match a user.

    The matched user record is available to the view as ``g.user``.
    """
    @wraps(view)
    def _wrapped(*args: Any, **kwargs: Any) -> Any:
        username = request.headers.get("username")
        password = request.headers.get("password")
        users = get_context().store.read().get("users", [])
        user = next(
            (u for u in users if u.get("username") == username and u.get("password") == password),
            None,
        )
        if not username or user is None:
            raise AuthenticationError("Authentication failed")

        g.user = user
        log_audit_event("portal.auth.success", {"userId": user["id"], "role": user["role"]})
        return view(*args, **kwargs)
    return _wrapped


def require_role(*roles: Union[Role, str]) -> Callable:
    """Reject the request with 403 unless ``g.user`` holds one of ``roles``.

    Must be applied beneath ``authenticate``.

    Example:
        >>> @portal_bp.route("/diagnoses", methods=["POST"])
        ... @authenticate
        ... @require_role(Role.DOCTOR)
        ... def add_diagnosis(): ...
    """
    allowed = [Role(r).value for r in roles]

    def decorator(view: Callable) -> Callable:
        @wraps(view)
        def _wrapped(*args: Any, **kwargs: Any) -> Any:
            if current_user().get("role") not in allowed:
                raise AuthorizationError(allowed)
            return view(*args, **kwargs)
        return _wrapped
    return decorator


def current_user() -> dict[str, Any]:
    """Return the authenticated user record for this request."""
    return g.user
