"""Pytest configuration and fixtures."""

import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from scriptsign.app.ports import (
    CertificateDescriptor,
    LivenessReport,
    RawServiceError,
    ServiceCallError,
    SignRequest,
    SignResult,
    VerifyResult,
)
from scriptsign.config import Settings

VALID_SIGN_RESULT = SignResult.model_validate(
    {
        "success": True,
        "data": {
            "Status": "Valid",
            "SignedBy": "CN=Build Bot",
            "TimeStamper": "CN=Timestamp Authority",
            "SignatureType": "Authenticode",
        },
    }
)

VALID_VERIFY_RESULT = VerifyResult.model_validate(
    {"success": True, "data": {"Status": "Valid", "SignedBy": "CN=Build Bot"}}
)


class FakeSigningService:
    """In-memory signing service that records every call it receives."""

    def __init__(
        self,
        *,
        base_url: str = "http://localhost:20000",
        available: bool = True,
        certificates: list[CertificateDescriptor] | None = None,
        sign_result: SignResult | None = None,
        verify_result: VerifyResult | None = None,
    ) -> None:
        self.base_url = base_url
        self.available = available
        self.certificates = certificates if certificates is not None else []
        self.sign_result = sign_result or VALID_SIGN_RESULT
        self.verify_result = verify_result or VALID_VERIFY_RESULT
        self.liveness_error: ServiceCallError | None = None
        self.inventory_error: ServiceCallError | None = None
        self.sign_error: ServiceCallError | None = None
        self.verify_error: ServiceCallError | None = None
        self.calls: list[str] = []
        self.sign_requests: list[SignRequest] = []
        self.verified_paths: list[Path] = []

    @property
    def request_count(self) -> int:
        return len(self.calls)

    def check_runtime(self) -> LivenessReport:
        self.calls.append("check_runtime")
        if self.liveness_error is not None:
            raise self.liveness_error
        return LivenessReport(available=self.available)

    def list_certificates(self) -> list[CertificateDescriptor]:
        self.calls.append("list_certificates")
        if self.inventory_error is not None:
            raise self.inventory_error
        return list(self.certificates)

    def sign_script(self, request: SignRequest) -> SignResult:
        self.calls.append("sign_script")
        self.sign_requests.append(request)
        if self.sign_error is not None:
            raise self.sign_error
        return self.sign_result

    def verify_signature(self, script_path: Path) -> VerifyResult:
        self.calls.append("verify_signature")
        self.verified_paths.append(script_path)
        if self.verify_error is not None:
            raise self.verify_error
        return self.verify_result


def make_certificate(
    subject: str, thumbprint: str, not_after: str = "2027-06-30T12:00:00"
) -> CertificateDescriptor:
    return CertificateDescriptor.model_validate(
        {"Subject": subject, "Thumbprint": thumbprint, "NotAfter": not_after}
    )


def unreachable(message: str = "Connection refused") -> ServiceCallError:
    return ServiceCallError(RawServiceError(message), reachable=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    try:
        yield Path(tmpdir)
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def sample_script(temp_dir: Path) -> Path:
    """Create a script file to sign."""
    script = temp_dir / "deploy.ps1"
    script.write_text("Write-Output 'hello'\n", encoding="utf-8")
    return script


@pytest.fixture
def sample_pfx(temp_dir: Path) -> Path:
    """Create a placeholder PFX file (the fake service never opens it)."""
    pfx = temp_dir / "signing.pfx"
    pfx.write_bytes(b"\x30\x82placeholder")
    return pfx


@pytest.fixture
def fake_service() -> FakeSigningService:
    """Signing service stub that signs and verifies successfully."""
    return FakeSigningService(
        certificates=[make_certificate("CN=Build Bot", "A1B2C3D4E5F6")],
    )


@pytest.fixture
def override_settings(
    temp_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Settings, None, None]:
    """Provide isolated scriptsign settings scoped to tests."""

    import scriptsign.config as config_module

    original_settings = getattr(config_module, "_settings", None)

    for name in ("SCRIPTSIGN_SERVICE_URL", "SCRIPTSIGN_PFX_PASSWORD", "SCRIPTSIGN_TIMESTAMP_SERVER"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(temp_dir)

    settings = config_module.Settings()
    config_module._settings = settings

    try:
        yield settings
    finally:
        config_module._settings = original_settings
