"""JSON output wrapper for machine-readable CLI commands.

Every JSON document printed by the CLI carries schema metadata
(schema_id, schema_version, producer, produced_at) so that scripts
consuming it can detect format changes.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any


def json_response(
    schema_id: str,
    schema_version: int,
    **data: Any,
) -> str:
    """Create schema-wrapped JSON response for CLI output.

    Args:
        schema_id: Identifier for the output type (e.g., "certificates").
        schema_version: Integer version for backward compatibility.
        **data: Payload data to include in the response.

    Returns:
        JSON string with schema metadata and payload.

    Example:
        >>> json_response("certificates", 1, certificates=[])
        {
          "schema_id": "certificates",
          "schema_version": 1,
          "producer": "scriptsign-0.1.0",
          "produced_at": "2026-10-16T10:30:00+00:00",
          "certificates": []
        }
    """
    from scriptsign import __version__

    wrapped = {
        "schema_id": schema_id,
        "schema_version": schema_version,
        "producer": f"scriptsign-{__version__}",
        "produced_at": datetime.now(UTC).isoformat(),
        **data,
    }
    return json.dumps(wrapped, indent=2, default=str)
