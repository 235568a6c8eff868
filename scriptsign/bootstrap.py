"""Application bootstrap wiring ports, adapters, and services."""

from __future__ import annotations

from dataclasses import dataclass

from scriptsign.app import PortFinder, SigningOrchestrator
from scriptsign.app.adapters import HTTPSigningServiceAdapter, SocketPortProbe
from scriptsign.app.ports import PortProbePort, SigningServicePort, get_probe_policy
from scriptsign.config import Settings, get_settings


@dataclass(slots=True)
class ApplicationContainer:
    """Aggregates wired services and adapters for the CLI layer."""

    settings: Settings
    signing_port: SigningServicePort
    probe_port: PortProbePort
    port_finder: PortFinder

    def orchestrator(self) -> SigningOrchestrator:
        """Return a fresh orchestrator for one signing invocation."""

        return SigningOrchestrator(self.signing_port)


def bootstrap_application(
    settings: Settings | None = None,
    *,
    service_url: str | None = None,
) -> ApplicationContainer:
    """Instantiate adapters and services for CLI consumption.

    ``service_url`` overrides the configured base URL for this container only.
    """

    active_settings = settings or get_settings()

    signing_port = HTTPSigningServiceAdapter(
        (service_url or active_settings.service_url).rstrip("/"),
        liveness_timeout=active_settings.liveness_timeout_seconds,
        request_timeout=active_settings.request_timeout_seconds,
    )
    probe_port = SocketPortProbe(
        active_settings.probe_host,
        timeout=active_settings.probe_timeout_seconds,
    )
    port_finder = PortFinder(
        probe_port,
        policy=get_probe_policy(active_settings.probe_policy),
        default_start=active_settings.port_range_start,
        default_end=active_settings.port_range_end,
    )

    return ApplicationContainer(
        settings=active_settings,
        signing_port=signing_port,
        probe_port=probe_port,
        port_finder=port_finder,
    )
