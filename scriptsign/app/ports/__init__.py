"""Port interfaces for the scriptsign application layer.

These protocol interfaces define contracts for adapters.
Application logic depends on these ports, never on concrete implementations.
"""

__all__ = [
    "CertificateDescriptor",
    "LivenessReport",
    "PortProbePort",
    "PortVerdict",
    "ProbeOutcome",
    "ProbePolicy",
    "RawServiceError",
    "ServiceCallError",
    "ServiceError",
    "SignatureData",
    "SignRequest",
    "SignResult",
    "SigningServicePort",
    "StructuredServiceError",
    "VerificationData",
    "VerifyResult",
    "get_probe_policy",
    "timeout_as_free",
    "timeout_as_inconclusive",
]

from scriptsign.app.ports.probe import (
    PortProbePort,
    PortVerdict,
    ProbeOutcome,
    ProbePolicy,
    get_probe_policy,
    timeout_as_free,
    timeout_as_inconclusive,
)
from scriptsign.app.ports.signing import (
    CertificateDescriptor,
    LivenessReport,
    RawServiceError,
    ServiceCallError,
    ServiceError,
    SignatureData,
    SigningServicePort,
    SignRequest,
    SignResult,
    StructuredServiceError,
    VerificationData,
    VerifyResult,
)
