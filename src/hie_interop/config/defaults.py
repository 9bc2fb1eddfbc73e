"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided. The defaults describe the demo network on localhost: one
broker on port 4000, three hospital nodes on ports 3001-3003 and the portal on
port 5000.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "broker": {
        "host": "0.0.0.0",
        "port": 4000,
        "db_path": "data/hie-db.json",
        "peers": [
            {"name": "Hospital-A", "notify_url": "http://localhost:3001/notify"},
            {"name": "Hospital-B", "notify_url": "http://localhost:3002/notify"},
            {"name": "Hospital-C", "notify_url": "http://localhost:3003/notify"},
        ],
    },
    "nodes": [
        {
            "name": "Hospital-A",
            "port": 3001,
            "db_path": "data/hospital-a.json",
            "hie_url": "http://localhost:4000",
            "local_gender": {"male": "M", "female": "W", "other": "O", "unknown": "U"},
        },
        {
            "name": "Hospital-B",
            "port": 3002,
            "db_path": "data/hospital-b.json",
            "hie_url": "http://localhost:4000",
            "local_gender": {"male": "1", "female": "0", "other": "9", "unknown": "8"},
        },
        {
            "name": "Hospital-C",
            "port": 3003,
            "db_path": "data/hospital-c.json",
            "hie_url": "http://localhost:4000",
            "local_gender": {
                "male": "male",
                "female": "female",
                "other": "other",
                "unknown": "unknown",
            },
        },
    ],
    "portal": {
        "host": "0.0.0.0",
        "port": 5000,
        "db_path": "data/ehr-global.json",
    },
    "transport": {
        # Notifications are fire-and-forget, keep timeouts short
        "timeout_connect": 5,
        "timeout_read": 10,
        "max_connections": 10,
    },
    "logging": {
        "level": "INFO",
        "log_file": "logs/hie-interop.log",
        # Do not redact PII by default (user must opt-in for privacy)
        "redact_pii": False,
    },
}

# Default configuration file path
DEFAULT_CONFIG_PATH = "config/config.json"
