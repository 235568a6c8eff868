"""Concrete adapters wiring application ports to built-in implementations."""

from __future__ import annotations

from .http_signing import HTTPSigningServiceAdapter, parse_service_error
from .socket_probe import SocketPortProbe

__all__ = [
    "HTTPSigningServiceAdapter",
    "SocketPortProbe",
    "parse_service_error",
]
