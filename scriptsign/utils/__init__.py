"""Utility modules for common operations."""

from scriptsign.utils.cli_output import json_response
from scriptsign.utils.paths import canonicalize, resolve_existing_file

__all__ = [
    "canonicalize",
    "json_response",
    "resolve_existing_file",
]
