"""Application layer for scriptsign.

This layer orchestrates the workflows without direct socket or HTTP I/O.
All side effects are delegated to adapters via port interfaces.
"""

__all__ = [
    "CertificateChoiceRequired",
    "PortFinder",
    "SigningCompleted",
    "SigningOptions",
    "SigningOrchestrator",
    "SigningOutcome",
]

from scriptsign.app.port_finder import PortFinder
from scriptsign.app.signing_service import (
    CertificateChoiceRequired,
    SigningCompleted,
    SigningOptions,
    SigningOrchestrator,
    SigningOutcome,
)
