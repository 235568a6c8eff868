"""Sign-then-verify workflow against the local code-signing service.

The workflow is a strictly linear state machine::

    START -> PATH_RESOLVED -> SERVICE_CHECKED -> CERT_RESOLVED -> SIGNED -> VERIFIED

Any failure raises a :class:`~scriptsign.errors.SigningAbort` and moves the
orchestrator to ``ABORTED``. Two outcomes are not failures:

- no certificate was chosen, so the inventory is returned for a human to
  pick from (:class:`CertificateChoiceRequired`);
- signing succeeded (:class:`SigningCompleted`), whatever verification said.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import SecretStr

from scriptsign.app.ports.signing import (
    CertificateDescriptor,
    LivenessReport,
    ServiceCallError,
    SignatureData,
    SigningServicePort,
    SignRequest,
    StructuredServiceError,
    VerificationData,
)
from scriptsign.errors import (
    CertificateInventoryError,
    NoCertificatesFoundError,
    PfxNotFoundError,
    RuntimeUnavailableError,
    ScriptNotFoundError,
    ServiceUnreachableError,
    SignRequestFailedError,
    SigningAbort,
    SigningStage,
    VerifyRequestFailedError,
)
from scriptsign.utils.paths import resolve_existing_file

logger = logging.getLogger(__name__)

VALID_STATUS = "Valid"


@dataclass(frozen=True, slots=True)
class SigningOptions:
    """Operator input for one signing invocation."""

    script_path: Path
    cert_thumbprint: str | None = None
    pfx_path: Path | None = None
    pfx_password: str | None = None
    timestamp_server: str | None = None

    @property
    def has_identity(self) -> bool:
        return bool(self.cert_thumbprint) or self.pfx_path is not None


@dataclass(frozen=True, slots=True)
class CertificateChoiceRequired:
    """No certificate was specified; the operator must pick one from the list."""

    script_path: Path
    certificates: tuple[CertificateDescriptor, ...]


@dataclass(frozen=True, slots=True)
class SigningCompleted:
    """The script was signed; verification is reported alongside."""

    script_path: Path
    signature: SignatureData | None
    verification: VerificationData | None
    verification_warning: VerifyRequestFailedError | None = None

    @property
    def verified(self) -> bool:
        return self.verification_warning is None

    @property
    def final_status(self) -> str | None:
        if self.verification is not None:
            return self.verification.status
        if self.signature is not None:
            return self.signature.status
        return None


SigningOutcome = CertificateChoiceRequired | SigningCompleted


class SigningOrchestrator:
    """Drive one sign-then-verify invocation.

    An instance tracks the stage it reached, so use a fresh orchestrator per
    invocation.
    """

    def __init__(self, service: SigningServicePort) -> None:
        self.service = service
        self.stage = SigningStage.START

    def run(self, options: SigningOptions) -> SigningOutcome:
        """Execute the workflow for ``options``.

        Raises:
            SigningAbort: On any failure before or during signing
        """
        try:
            script_path, pfx_path = self._resolve_paths(options)
            self._advance(SigningStage.PATH_RESOLVED)

            self.check_service()
            self._advance(SigningStage.SERVICE_CHECKED)

            if not options.has_identity:
                certificates = self._fetch_inventory()
                logger.info(
                    "No certificate specified; %d candidate(s) listed for selection",
                    len(certificates),
                )
                return CertificateChoiceRequired(
                    script_path=script_path, certificates=tuple(certificates)
                )
            self._advance(SigningStage.CERT_RESOLVED)

            request = SignRequest(
                script_path=script_path,
                cert_thumbprint=options.cert_thumbprint or None,
                pfx_path=pfx_path,
                pfx_password=(
                    SecretStr(options.pfx_password) if options.pfx_password is not None else None
                ),
                timestamp_server=options.timestamp_server or None,
            )
            signature = self._sign(request)
            self._advance(SigningStage.SIGNED)
        except SigningAbort as exc:
            exc.stage = self.stage
            self.stage = SigningStage.ABORTED
            logger.debug("Aborted after %s: %s", exc.stage.value, exc.code)
            raise

        verification, warning = self._verify_after_sign(script_path)
        self._advance(SigningStage.VERIFIED)
        return SigningCompleted(
            script_path=script_path,
            signature=signature,
            verification=verification,
            verification_warning=warning,
        )

    def check_service(self) -> LivenessReport:
        """Run the liveness probe.

        Raises:
            ServiceUnreachableError: If the service does not answer successfully
            RuntimeUnavailableError: If the service answers but cannot sign
        """
        try:
            report = self.service.check_runtime()
        except ServiceCallError as exc:
            raise ServiceUnreachableError(self.service.base_url, detail=exc.error) from exc

        if not report.available:
            raise RuntimeUnavailableError(self.service.base_url)
        return report

    def list_certificates(self) -> list[CertificateDescriptor]:
        """Check the service, then return its non-empty certificate inventory."""

        self.check_service()
        return self._fetch_inventory()

    def verify_only(self, script_path: Path) -> VerificationData:
        """Verify an already-signed script; verification is the primary outcome here.

        Raises:
            ScriptNotFoundError: If the script does not exist
            VerifyRequestFailedError: If the call fails or reports ``success=false``
        """
        try:
            resolved = resolve_existing_file(script_path)
        except FileNotFoundError as exc:
            raise ScriptNotFoundError(Path(script_path)) from exc

        self.check_service()
        data, failure = self._request_verification(resolved)
        if failure is not None or data is None:
            raise failure or VerifyRequestFailedError(resolved)
        return data

    def _advance(self, stage: SigningStage) -> None:
        logger.debug("Signing workflow: %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def _resolve_paths(self, options: SigningOptions) -> tuple[Path, Path | None]:
        try:
            script_path = resolve_existing_file(options.script_path)
        except FileNotFoundError as exc:
            raise ScriptNotFoundError(Path(options.script_path)) from exc

        pfx_path: Path | None = None
        if options.pfx_path is not None:
            try:
                pfx_path = resolve_existing_file(options.pfx_path)
            except FileNotFoundError as exc:
                raise PfxNotFoundError(Path(options.pfx_path)) from exc

        return script_path, pfx_path

    def _fetch_inventory(self) -> list[CertificateDescriptor]:
        try:
            certificates = self.service.list_certificates()
        except ServiceCallError as exc:
            raise CertificateInventoryError(detail=exc.error) from exc

        if not certificates:
            raise NoCertificatesFoundError()
        return certificates

    def _sign(self, request: SignRequest) -> SignatureData | None:
        try:
            result = self.service.sign_script(request)
        except ServiceCallError as exc:
            raise SignRequestFailedError(request.script_path, detail=exc.error) from exc

        if not result.success:
            detail = StructuredServiceError(result.error) if result.error else None
            raise SignRequestFailedError(request.script_path, detail=detail)

        if result.data is not None:
            logger.info(
                "Signed %s (status=%s, signed_by=%s)",
                request.script_path,
                result.data.status,
                result.data.signed_by,
            )
        return result.data

    def _verify_after_sign(
        self, script_path: Path
    ) -> tuple[VerificationData | None, VerifyRequestFailedError | None]:
        data, failure = self._request_verification(script_path)
        if failure is None and data is not None and data.status != VALID_STATUS:
            failure = VerifyRequestFailedError(
                script_path,
                f"Signature status after signing is '{data.status}', expected '{VALID_STATUS}'",
            )
        if failure is not None:
            logger.warning("Verification after signing did not pass: %s", failure)
        return data, failure

    def _request_verification(
        self, script_path: Path
    ) -> tuple[VerificationData | None, VerifyRequestFailedError | None]:
        try:
            result = self.service.verify_signature(script_path)
        except ServiceCallError as exc:
            return None, VerifyRequestFailedError(script_path, detail=exc.error)

        if not result.success:
            detail = StructuredServiceError(result.error) if result.error else None
            return result.data, VerifyRequestFailedError(script_path, detail=detail)

        if result.data is None:
            return None, VerifyRequestFailedError(
                script_path, f"Verification of {script_path} returned no status"
            )
        return result.data, None
