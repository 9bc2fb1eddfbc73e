"""Custom exception classes for the HIE Interop Demo.

All exceptions inherit from HIEInteropError to allow catching all custom exceptions.
Each exception carries the HTTP status code the services answer with when it
escapes a request handler.
"""


class HIEInteropError(Exception):
    """Base exception for all HIE Interop Demo custom exceptions."""

    status_code = 500


class ValidationError(HIEInteropError):
    """Raised when request data fails a presence or shape check.

    Examples:
        - Patient resource without resourceType "Patient"
        - Ingest request without a name
        - Lab result missing its LOINC code
    """

    status_code = 400


class NotFoundError(HIEInteropError):
    """Raised when a looked-up record does not exist.

    Examples:
        - Soft delete of an unknown patient id
        - Dispensing an unknown prescription
    """

    status_code = 404


class AuthenticationError(HIEInteropError):
    """Raised when portal credentials are missing or do not match a user."""

    status_code = 401


class AuthorizationError(HIEInteropError):
    """Raised when an authenticated portal user lacks a required role.

    Attributes:
        required_roles: Roles that would have been accepted
    """

    status_code = 403

    def __init__(self, required_roles: list[str]) -> None:
        self.required_roles = list(required_roles)
        super().__init__(
            f"Access denied. Required roles: {', '.join(self.required_roles)}"
        )


class ConfigurationError(HIEInteropError):
    """Raised when configuration loading or validation fails.

    Examples:
        - Invalid configuration file format
        - Gender mapping missing a canonical value
        - Unknown node name
    """

    pass


class StoreError(HIEInteropError):
    """Raised when a JSON store cannot be read or written.

    Examples:
        - Store file contains malformed JSON
        - Store directory is not writable
    """

    pass


class TransportError(HIEInteropError):
    """Raised when an outbound HTTP call to a peer fails.

    Examples:
        - Connection refused by a node
        - Non-2xx response from the broker
    """

    status_code = 502
