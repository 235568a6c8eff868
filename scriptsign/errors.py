"""Operator-facing error taxonomy for the signing workflow.

Every abort of the orchestrator is a :class:`SigningAbort`. The CLI is the
only layer that turns them into exit codes.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from scriptsign.app.ports.signing import ServiceError


class SigningStage(str, Enum):
    """Stages of the sign-then-verify workflow, in order."""

    START = "start"
    PATH_RESOLVED = "path_resolved"
    SERVICE_CHECKED = "service_checked"
    CERT_RESOLVED = "cert_resolved"
    SIGNED = "signed"
    VERIFIED = "verified"
    ABORTED = "aborted"


class SigningAbort(RuntimeError):
    """Base class for failures that end an invocation."""

    code = "SigningAbort"

    def __init__(
        self,
        message: str,
        *,
        stage: SigningStage = SigningStage.START,
        remediation: str | None = None,
        detail: ServiceError | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.remediation = remediation
        self.detail = detail

    def __str__(self) -> str:
        if self.detail is None:
            return self.message
        return f"{self.message}: {self.detail.describe()}"


class ScriptNotFoundError(SigningAbort):
    code = "ScriptNotFound"

    def __init__(self, path: Path) -> None:
        super().__init__(f"Script not found: {path}")
        self.path = path


class PfxNotFoundError(SigningAbort):
    code = "PfxNotFound"

    def __init__(self, path: Path) -> None:
        super().__init__(f"PFX file not found: {path}")
        self.path = path


def _service_remediation(base_url: str) -> str:
    return (
        f"Start the local signing service so that it listens on {base_url}, "
        "or point scriptsign at the running instance with --service-url "
        "(or SCRIPTSIGN_SERVICE_URL). `scriptsign find-port` suggests a free port."
    )


class ServiceUnreachableError(SigningAbort):
    code = "ServiceUnreachable"

    def __init__(self, base_url: str, *, detail: ServiceError | None = None) -> None:
        super().__init__(
            f"Signing service unreachable at {base_url}",
            remediation=_service_remediation(base_url),
            detail=detail,
        )
        self.base_url = base_url


class RuntimeUnavailableError(SigningAbort):
    code = "RuntimeUnavailable"

    def __init__(self, base_url: str) -> None:
        super().__init__(
            f"Signing service at {base_url} reports that its signing runtime is unavailable",
            remediation=(
                "Install or enable PowerShell on the machine running the signing "
                "service, then restart the service."
            ),
        )
        self.base_url = base_url


class NoCertificatesFoundError(SigningAbort):
    code = "NoCertificatesFound"

    def __init__(self) -> None:
        super().__init__(
            "No code-signing certificates available",
            remediation=(
                "Create or import a code-signing certificate into the certificate "
                "store, or sign with a PFX file via --pfx/--pfx-password."
            ),
        )


class CertificateInventoryError(SigningAbort):
    code = "CertificateInventoryFailed"

    def __init__(self, *, detail: ServiceError | None = None) -> None:
        super().__init__(
            "Could not list certificates",
            detail=detail,
        )


class SignRequestFailedError(SigningAbort):
    code = "SignRequestFailed"

    def __init__(self, script_path: Path, *, detail: ServiceError | None = None) -> None:
        super().__init__(
            f"Signing failed for {script_path}",
            detail=detail,
        )
        self.script_path = script_path


class VerifyRequestFailedError(SigningAbort):
    """Verification failure.

    Inside the sign workflow this is only ever reported as a warning.
    """

    code = "VerifyRequestFailed"

    def __init__(
        self,
        script_path: Path,
        message: str | None = None,
        *,
        detail: ServiceError | None = None,
    ) -> None:
        super().__init__(
            message or f"Verification failed for {script_path}",
            detail=detail,
        )
        self.script_path = script_path
