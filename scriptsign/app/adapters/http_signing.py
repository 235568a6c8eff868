"""HTTP+JSON adapter for the local code-signing service."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from scriptsign.app.ports.signing import (
    CertificateDescriptor,
    LivenessReport,
    RawServiceError,
    ServiceCallError,
    ServiceError,
    SigningServicePort,
    SignRequest,
    SignResult,
    StructuredServiceError,
    VerifyResult,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

LIVENESS_PATH = "/api/check-powershell"
LIST_CERTIFICATES_PATH = "/api/list-certificates"
SIGN_SCRIPT_PATH = "/api/sign-script"
VERIFY_SIGNATURE_PATH = "/api/verify-signature"

_ERROR_KEYS = ("error", "message", "detail")


def parse_service_error(response: requests.Response) -> ServiceError:
    """Resolve a failed response body into a :data:`ServiceError`.

    JSON bodies carrying an ``error``/``message``/``detail`` string become
    :class:`StructuredServiceError`; anything else is kept as raw text.
    """

    try:
        body = response.json()
    except ValueError:
        text = response.text
        if not text.strip():
            text = f"HTTP {response.status_code} {response.reason or ''}".strip()
        return RawServiceError(text)

    if isinstance(body, dict):
        for key in _ERROR_KEYS:
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return StructuredServiceError(value)
            if isinstance(value, dict):
                nested = value.get("message")
                if isinstance(nested, str) and nested.strip():
                    return StructuredServiceError(nested)

    return RawServiceError(response.text)


class HTTPSigningServiceAdapter(SigningServicePort):
    """Adapter that talks to the signing service over HTTP with ``requests``.

    The liveness probe uses a short timeout; every other call uses the
    generous request timeout. No call is retried.
    """

    def __init__(
        self,
        base_url: str,
        *,
        liveness_timeout: float = 2.0,
        request_timeout: float = 120.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.liveness_timeout = liveness_timeout
        self.request_timeout = request_timeout
        self._session = session or requests.Session()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url!r}, "
            f"liveness_timeout={self.liveness_timeout!r}, "
            f"request_timeout={self.request_timeout!r})"
        )

    def check_runtime(self) -> LivenessReport:
        body = self._request("GET", LIVENESS_PATH, timeout=self.liveness_timeout)
        return self._parse(LivenessReport, body)

    def list_certificates(self) -> list[CertificateDescriptor]:
        body = self._request("GET", LIST_CERTIFICATES_PATH, timeout=self.request_timeout)
        if not isinstance(body, dict):
            raise ServiceCallError(RawServiceError(f"Unexpected certificate inventory: {body!r}"))
        entries = body.get("certificates") or []
        if not isinstance(entries, list):
            raise ServiceCallError(
                RawServiceError(f"Unexpected certificate inventory: {entries!r}")
            )
        return [self._parse(CertificateDescriptor, entry) for entry in entries]

    def sign_script(self, request: SignRequest) -> SignResult:
        logger.debug(
            "Submitting signing request for %s (thumbprint=%s, pfx=%s)",
            request.script_path,
            request.cert_thumbprint,
            request.pfx_path,
        )
        body = self._request(
            "POST",
            SIGN_SCRIPT_PATH,
            timeout=self.request_timeout,
            json=request.to_wire(),
        )
        return self._parse(SignResult, body)

    def verify_signature(self, script_path: Path) -> VerifyResult:
        body = self._request(
            "POST",
            VERIFY_SIGNATURE_PATH,
            timeout=self.request_timeout,
            json={"scriptPath": str(script_path)},
        )
        return self._parse(VerifyResult, body)

    def _request(
        self,
        method: str,
        path: str,
        *,
        timeout: float,
        json: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s (timeout=%ss)", method, url, timeout)

        try:
            response = self._session.request(method, url, json=json, timeout=timeout)
        except requests.Timeout as exc:
            raise ServiceCallError(
                RawServiceError(f"{method} {url} timed out after {timeout}s"),
                reachable=False,
            ) from exc
        except requests.ConnectionError as exc:
            raise ServiceCallError(
                RawServiceError(f"Could not connect to {url}: {exc}"),
                reachable=False,
            ) from exc
        except requests.RequestException as exc:
            raise ServiceCallError(
                RawServiceError(f"{method} {url} failed: {exc}"),
                reachable=False,
            ) from exc

        if not response.ok:
            logger.debug("%s %s returned HTTP %s", method, url, response.status_code)
            raise ServiceCallError(
                parse_service_error(response),
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ServiceCallError(
                RawServiceError(response.text),
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _parse(model: type[M], body: Any) -> M:
        try:
            return model.model_validate(body)
        except ValidationError as exc:
            raise ServiceCallError(
                RawServiceError(f"Unexpected {model.__name__} payload: {body!r}")
            ) from exc
