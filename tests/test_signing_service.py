"""Tests for the sign-then-verify workflow."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import FakeSigningService, make_certificate, unreachable

from scriptsign.app.ports import (
    ServiceCallError,
    SignResult,
    StructuredServiceError,
    VerifyResult,
)
from scriptsign.app.signing_service import (
    CertificateChoiceRequired,
    SigningCompleted,
    SigningOptions,
    SigningOrchestrator,
)
from scriptsign.errors import (
    CertificateInventoryError,
    NoCertificatesFoundError,
    PfxNotFoundError,
    RuntimeUnavailableError,
    ScriptNotFoundError,
    ServiceUnreachableError,
    SigningStage,
    SignRequestFailedError,
    VerifyRequestFailedError,
)


def test_missing_script_aborts_before_any_request(temp_dir: Path) -> None:
    service = FakeSigningService()
    orchestrator = SigningOrchestrator(service)

    with pytest.raises(ScriptNotFoundError) as excinfo:
        orchestrator.run(SigningOptions(script_path=temp_dir / "missing.ps1", cert_thumbprint="AB"))

    assert service.request_count == 0
    assert excinfo.value.code == "ScriptNotFound"
    assert excinfo.value.stage is SigningStage.START
    assert orchestrator.stage is SigningStage.ABORTED


def test_directory_is_not_a_script(temp_dir: Path) -> None:
    service = FakeSigningService()

    with pytest.raises(ScriptNotFoundError):
        SigningOrchestrator(service).run(SigningOptions(script_path=temp_dir, cert_thumbprint="AB"))

    assert service.request_count == 0


def test_missing_pfx_aborts_before_any_request(sample_script: Path, temp_dir: Path) -> None:
    service = FakeSigningService()

    with pytest.raises(PfxNotFoundError):
        SigningOrchestrator(service).run(
            SigningOptions(script_path=sample_script, pfx_path=temp_dir / "absent.pfx")
        )

    assert service.request_count == 0


def test_unreachable_service_never_signs(sample_script: Path) -> None:
    service = FakeSigningService()
    service.liveness_error = unreachable()

    with pytest.raises(ServiceUnreachableError) as excinfo:
        SigningOrchestrator(service).run(
            SigningOptions(script_path=sample_script, cert_thumbprint="AB")
        )

    assert service.calls == ["check_runtime"]
    assert excinfo.value.remediation is not None
    assert "--service-url" in excinfo.value.remediation
    assert excinfo.value.detail is not None
    assert excinfo.value.stage is SigningStage.PATH_RESOLVED


def test_unavailable_runtime_never_signs(sample_script: Path) -> None:
    service = FakeSigningService(available=False)

    with pytest.raises(RuntimeUnavailableError):
        SigningOrchestrator(service).run(
            SigningOptions(script_path=sample_script, cert_thumbprint="AB")
        )

    assert "sign_script" not in service.calls
    assert "verify_signature" not in service.calls


def test_no_identity_lists_all_certificates_without_signing(sample_script: Path) -> None:
    certificates = [
        make_certificate("CN=Zeta", "FFFF"),
        make_certificate("CN=Alpha", "AAAA"),
        make_certificate("CN=Mid", "8888"),
    ]
    service = FakeSigningService(certificates=certificates)

    outcome = SigningOrchestrator(service).run(SigningOptions(script_path=sample_script))

    assert isinstance(outcome, CertificateChoiceRequired)
    # Service order is preserved, not re-sorted.
    assert [c.thumbprint for c in outcome.certificates] == ["FFFF", "AAAA", "8888"]
    assert outcome.script_path == sample_script.resolve()
    assert service.calls == ["check_runtime", "list_certificates"]


def test_single_certificate_is_not_auto_selected(sample_script: Path) -> None:
    service = FakeSigningService(certificates=[make_certificate("CN=Only", "0001")])

    outcome = SigningOrchestrator(service).run(SigningOptions(script_path=sample_script))

    assert isinstance(outcome, CertificateChoiceRequired)
    assert len(outcome.certificates) == 1
    assert service.sign_requests == []


def test_empty_inventory_aborts(sample_script: Path) -> None:
    service = FakeSigningService(certificates=[])

    with pytest.raises(NoCertificatesFoundError) as excinfo:
        SigningOrchestrator(service).run(SigningOptions(script_path=sample_script))

    assert excinfo.value.remediation is not None
    assert "--pfx" in excinfo.value.remediation
    assert "sign_script" not in service.calls


def test_inventory_failure_aborts(sample_script: Path) -> None:
    service = FakeSigningService()
    service.inventory_error = ServiceCallError(StructuredServiceError("store locked"), status_code=500)

    with pytest.raises(CertificateInventoryError) as excinfo:
        SigningOrchestrator(service).run(SigningOptions(script_path=sample_script))

    assert "store locked" in str(excinfo.value)


def test_successful_sign_verifies_exactly_once(
    fake_service: FakeSigningService, sample_script: Path
) -> None:
    service = fake_service
    orchestrator = SigningOrchestrator(service)

    outcome = orchestrator.run(SigningOptions(script_path=sample_script, cert_thumbprint="A1B2"))

    assert isinstance(outcome, SigningCompleted)
    assert outcome.verified
    assert service.calls == ["check_runtime", "sign_script", "verify_signature"]
    assert service.verified_paths == [sample_script.resolve()]
    assert orchestrator.stage is SigningStage.VERIFIED


def test_sign_request_uses_canonical_path(sample_script: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(sample_script.parent)
    service = FakeSigningService()

    SigningOrchestrator(service).run(
        SigningOptions(
            script_path=Path(sample_script.name),
            cert_thumbprint="A1B2",
            timestamp_server="http://timestamp.example.test",
        )
    )

    request = service.sign_requests[0]
    assert request.script_path.is_absolute()
    assert request.script_path == sample_script.resolve()
    assert request.to_wire() == {
        "scriptPath": str(sample_script.resolve()),
        "certThumbprint": "A1B2",
        "timestampServer": "http://timestamp.example.test",
    }


def test_pfx_request_carries_password(sample_script: Path, sample_pfx: Path) -> None:
    service = FakeSigningService()

    SigningOrchestrator(service).run(
        SigningOptions(script_path=sample_script, pfx_path=sample_pfx, pfx_password="s3cret")
    )

    request = service.sign_requests[0]
    wire = request.to_wire()
    assert wire["pfxPath"] == str(sample_pfx.resolve())
    assert wire["pfxPassword"] == "s3cret"
    assert "certThumbprint" not in wire
    assert "s3cret" not in repr(request)


def test_sign_success_false_aborts_without_verify(sample_script: Path) -> None:
    service = FakeSigningService(
        sign_result=SignResult(success=False, error="Certificate has expired")
    )

    with pytest.raises(SignRequestFailedError) as excinfo:
        SigningOrchestrator(service).run(
            SigningOptions(script_path=sample_script, cert_thumbprint="A1B2")
        )

    assert excinfo.value.detail == StructuredServiceError("Certificate has expired")
    assert "verify_signature" not in service.calls


def test_sign_transport_failure_aborts_without_verify(sample_script: Path) -> None:
    service = FakeSigningService()
    service.sign_error = unreachable("timed out after 120s")

    with pytest.raises(SignRequestFailedError) as excinfo:
        SigningOrchestrator(service).run(
            SigningOptions(script_path=sample_script, cert_thumbprint="A1B2")
        )

    assert excinfo.value.stage is SigningStage.CERT_RESOLVED
    assert "verify_signature" not in service.calls


def test_verify_failure_is_only_a_warning(sample_script: Path) -> None:
    service = FakeSigningService()
    service.verify_error = unreachable()

    outcome = SigningOrchestrator(service).run(
        SigningOptions(script_path=sample_script, cert_thumbprint="A1B2")
    )

    assert isinstance(outcome, SigningCompleted)
    assert not outcome.verified
    assert outcome.verification_warning is not None
    assert outcome.verification_warning.code == "VerifyRequestFailed"
    assert service.calls.count("verify_signature") == 1


def test_verify_status_mismatch_is_a_warning(sample_script: Path) -> None:
    service = FakeSigningService(
        verify_result=VerifyResult.model_validate({"success": True, "data": {"Status": "HashMismatch"}})
    )

    outcome = SigningOrchestrator(service).run(
        SigningOptions(script_path=sample_script, cert_thumbprint="A1B2")
    )

    assert isinstance(outcome, SigningCompleted)
    assert not outcome.verified
    assert outcome.final_status == "HashMismatch"


def test_final_status_echoes_verification(sample_script: Path) -> None:
    service = FakeSigningService(
        sign_result=SignResult.model_validate(
            {"success": True, "data": {"Status": "Valid", "SignedBy": "CN=Echo"}}
        ),
        verify_result=VerifyResult.model_validate({"success": True, "data": {"Status": "Valid"}}),
    )

    outcome = SigningOrchestrator(service).run(
        SigningOptions(script_path=sample_script, cert_thumbprint="A1B2")
    )

    assert isinstance(outcome, SigningCompleted)
    assert outcome.signature is not None
    assert outcome.signature.signed_by == "CN=Echo"
    assert outcome.final_status == "Valid"


def test_list_certificates_checks_service_first() -> None:
    service = FakeSigningService(certificates=[make_certificate("CN=A", "01")])

    certificates = SigningOrchestrator(service).list_certificates()

    assert [c.subject for c in certificates] == ["CN=A"]
    assert service.calls == ["check_runtime", "list_certificates"]


def test_verify_only_raises_on_failed_call(sample_script: Path) -> None:
    service = FakeSigningService(verify_result=VerifyResult(success=False, error="not signed"))

    with pytest.raises(VerifyRequestFailedError) as excinfo:
        SigningOrchestrator(service).verify_only(sample_script)

    assert "not signed" in str(excinfo.value)
