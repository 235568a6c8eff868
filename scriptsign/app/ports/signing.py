"""Signing service port interface and wire models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, SecretStr


@dataclass(frozen=True, slots=True)
class StructuredServiceError:
    """Error message extracted from a structured (JSON) response body."""

    message: str

    def describe(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class RawServiceError:
    """Unparsed response text, or a transport failure description."""

    text: str

    def describe(self) -> str:
        return self.text.strip() or "(empty response)"


ServiceError = StructuredServiceError | RawServiceError


class ServiceCallError(Exception):
    """Raised by adapters when a service call fails at the transport level.

    ``reachable`` is False when no HTTP response was received at all
    (connection refused, DNS failure, timeout).
    """

    def __init__(
        self,
        error: ServiceError,
        *,
        reachable: bool = True,
        status_code: int | None = None,
    ) -> None:
        super().__init__(error.describe())
        self.error = error
        self.reachable = reachable
        self.status_code = status_code


class _ServiceModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class CertificateDescriptor(_ServiceModel):
    """Certificate snapshot returned by the service inventory."""

    subject: str = Field(alias="Subject")
    thumbprint: str = Field(alias="Thumbprint")
    # Kept as the raw string when the service does not emit ISO-8601.
    not_after: datetime | str | None = Field(
        default=None, alias="NotAfter", union_mode="left_to_right"
    )


class LivenessReport(_ServiceModel):
    """Response of the liveness probe."""

    available: bool = False


class SignatureData(_ServiceModel):
    """Signature details reported after signing."""

    status: str = Field(alias="Status")
    signed_by: str | None = Field(default=None, alias="SignedBy")
    time_stamper: str | None = Field(default=None, alias="TimeStamper")
    signature_type: str | None = Field(default=None, alias="SignatureType")


class VerificationData(_ServiceModel):
    """Signature details reported by verification."""

    status: str = Field(alias="Status")
    signed_by: str | None = Field(default=None, alias="SignedBy")


class SignResult(_ServiceModel):
    """Result envelope of a signing call."""

    success: bool
    data: SignatureData | None = None
    error: str | None = None


class VerifyResult(_ServiceModel):
    """Result envelope of a verification call."""

    success: bool
    data: VerificationData | None = None
    error: str | None = None


class SignRequest(BaseModel):
    """Signing request, built fresh for every invocation.

    Exactly one of ``cert_thumbprint`` or ``pfx_path`` is expected; the
    service is responsible for rejecting anything else.
    """

    script_path: Path
    cert_thumbprint: str | None = None
    pfx_path: Path | None = None
    pfx_password: SecretStr | None = None
    timestamp_server: str | None = None

    def to_wire(self) -> dict[str, str]:
        """Return the JSON body sent to ``/api/sign-script``."""

        payload: dict[str, str] = {"scriptPath": str(self.script_path)}
        if self.cert_thumbprint:
            payload["certThumbprint"] = self.cert_thumbprint
        if self.pfx_path is not None:
            payload["pfxPath"] = str(self.pfx_path)
        if self.pfx_password is not None:
            payload["pfxPassword"] = self.pfx_password.get_secret_value()
        if self.timestamp_server:
            payload["timestampServer"] = self.timestamp_server
        return payload


class SigningServicePort(Protocol):
    """Port interface for the external code-signing service.

    Adapters: HTTP+JSON (``requests``).

    Side effects: network calls; the service writes signatures into the
    script files it is given.
    """

    base_url: str

    def check_runtime(self) -> LivenessReport:
        """Probe the service and report whether its signing runtime is ready.

        Raises:
            ServiceCallError: If the service cannot be reached or answers non-2xx
        """
        ...

    def list_certificates(self) -> list[CertificateDescriptor]:
        """Return the certificate inventory in service order."""
        ...

    def sign_script(self, request: SignRequest) -> SignResult:
        """Submit a signing request."""
        ...

    def verify_signature(self, script_path: Path) -> VerifyResult:
        """Verify the signature of ``script_path``."""
        ...
