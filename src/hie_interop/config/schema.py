"""Configuration schema models using pydantic.

This module defines the configuration structure and validation rules using pydantic.
All configuration values are validated according to the schema defined here.
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

CANONICAL_GENDERS = ("male", "female", "other", "unknown")
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _validate_http_url(v: str) -> str:
    if not v.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid URL: {v}. Must start with http:// or https://"
        )
    return v.rstrip("/")


def _validate_port(v: int) -> int:
    if not 1 <= v <= 65535:
        raise ValueError(f"Invalid port {v}. Must be between 1 and 65535.")
    return v


class PeerConfig(BaseModel):
    """A service that receives broker notifications.

    Attributes:
        name: Display name of the peer (e.g. "Hospital-A")
        notify_url: Full URL of the peer's notify endpoint
    """

    name: str = Field(..., min_length=1, description="Peer display name")
    notify_url: str = Field(..., description="Peer notify endpoint URL")

    @field_validator("notify_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL is valid HTTP/HTTPS."""
        return _validate_http_url(v)


class BrokerConfig(BaseModel):
    """Configuration for the central HIE broker.

    Attributes:
        host: Bind address
        port: HTTP port
        db_path: Path of the broker's JSON store
        peers: Nodes that receive fan-out notifications
    """

    host: str = Field(default="0.0.0.0", description="Server host address")
    port: int = Field(default=4000, description="HTTP server port")
    db_path: Path = Field(
        default=Path("data/hie-db.json"),
        description="Broker JSON store path",
    )
    peers: list[PeerConfig] = Field(
        default_factory=list,
        description="Nodes notified after every create and soft delete",
    )

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number is in valid range."""
        return _validate_port(v)


class NodeConfig(BaseModel):
    """Configuration for one simulated hospital node.

    Attributes:
        name: Hospital name, also recorded as the source of local records
        host: Bind address
        port: HTTP port
        db_path: Path of the node's JSON store
        hie_url: Base URL of the broker
        local_gender: Canonical gender -> local code table

    Example:
        >>> node = NodeConfig(
        ...     name="Hospital-B",
        ...     port=3002,
        ...     db_path=Path("data/hospital-b.json"),
        ...     hie_url="http://localhost:4000",
        ...     local_gender={"male": "1", "female": "0", "other": "9", "unknown": "8"},
        ... )
    """

    name: str = Field(..., min_length=1, description="Hospital name")
    host: str = Field(default="0.0.0.0", description="Server host address")
    port: int = Field(..., description="HTTP server port")
    db_path: Path = Field(..., description="Node JSON store path")
    hie_url: str = Field(
        default="http://localhost:4000",
        description="Broker base URL",
    )
    local_gender: dict[str, str] = Field(
        default_factory=lambda: {g: g for g in CANONICAL_GENDERS},
        description="Canonical gender to local code mapping",
    )

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number is in valid range."""
        return _validate_port(v)

    @field_validator("hie_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL is valid HTTP/HTTPS."""
        return _validate_http_url(v)

    @field_validator("local_gender", mode="before")
    @classmethod
    def coerce_local_codes(cls, v: Any) -> Any:
        """Accept numeric codes such as {"male": 1}; codes compare as strings."""
        if isinstance(v, dict):
            return {str(k): str(code) for k, code in v.items()}
        return v

    @field_validator("local_gender")
    @classmethod
    def validate_local_gender(cls, v: dict[str, str]) -> dict[str, str]:
        """Validate the gender table covers every canonical value exactly once.

        Raises:
            ValueError: If a canonical value is missing, an unknown key is
                present, or two canonical values share a local code
        """
        missing = [g for g in CANONICAL_GENDERS if g not in v]
        if missing:
            raise ValueError(
                f"local_gender is missing canonical values: {', '.join(missing)}"
            )
        extra = [k for k in v if k not in CANONICAL_GENDERS]
        if extra:
            raise ValueError(
                f"local_gender has unknown canonical values: {', '.join(extra)}. "
                f"Must be one of: {', '.join(CANONICAL_GENDERS)}"
            )
        codes = list(v.values())
        if len(set(codes)) != len(codes):
            raise ValueError(
                f"local_gender codes must be distinct, got: {', '.join(codes)}"
            )
        return v


class PortalConfig(BaseModel):
    """Configuration for the clinical-workflow portal."""

    host: str = Field(default="0.0.0.0", description="Server host address")
    port: int = Field(default=5000, description="HTTP server port")
    db_path: Path = Field(
        default=Path("data/ehr-global.json"),
        description="Portal JSON store path",
    )

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number is in valid range."""
        return _validate_port(v)


class TransportConfig(BaseModel):
    """Configuration for outbound notification HTTP calls.

    Notifications are never retried, so there is no retry setting here.

    Attributes:
        timeout_connect: Connection timeout in seconds
        timeout_read: Read timeout in seconds
        max_connections: Connection pool size per peer host
    """

    timeout_connect: float = Field(
        default=5.0,
        gt=0,
        description="Connection timeout in seconds"
    )
    timeout_read: float = Field(
        default=10.0,
        gt=0,
        description="Read timeout in seconds"
    )
    max_connections: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum pooled HTTP connections"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file
        redact_pii: Whether to redact PII from logs
    """

    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    log_file: Path = Field(
        default=Path("logs/hie-interop.log"),
        description="Log file path"
    )
    redact_pii: bool = Field(
        default=False,
        description="Redact PII from logs"
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level.

        Raises:
            ValueError: If log level is not valid
        """
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
            )
        return v_upper


class Config(BaseModel):
    """Root configuration model.

    Attributes:
        broker: Central broker configuration
        nodes: Simulated hospital nodes
        portal: Clinical-workflow portal configuration
        transport: Outbound HTTP configuration
        logging: Logging configuration
    """

    broker: BrokerConfig = BrokerConfig()
    nodes: list[NodeConfig] = Field(default_factory=list)
    portal: PortalConfig = PortalConfig()
    transport: TransportConfig = TransportConfig()
    logging: LoggingConfig = LoggingConfig()

    @model_validator(mode="after")
    def validate_unique_node_names(self) -> "Config":
        """Validate node names are unique (case-insensitive).

        Raises:
            ValueError: If two nodes share a name
        """
        seen: set[str] = set()
        for node in self.nodes:
            key = node.name.lower()
            if key in seen:
                raise ValueError(
                    f"Duplicate node name: {node.name}. "
                    f"Fix: Give every node a distinct name."
                )
            seen.add(key)
        return self
