"""Port probe interface and probe verdict policies."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Protocol


class ProbeOutcome(str, Enum):
    """What a single connect attempt observed."""

    LISTENING = "listening"
    REFUSED = "refused"
    TIMED_OUT = "timed_out"
    ERROR = "error"


class PortVerdict(str, Enum):
    """How the port finder treats a probed port."""

    OCCUPIED = "occupied"
    FREE = "free"
    SKIP = "skip"


ProbePolicy = Callable[[ProbeOutcome], PortVerdict]


class PortProbePort(Protocol):
    """Port interface for checking whether something listens on a TCP port.

    Side effects: opens and closes one transient socket per call.
    """

    def probe(self, port: int) -> ProbeOutcome:
        """Attempt a connection to ``port`` and report what happened."""
        ...


def timeout_as_free(outcome: ProbeOutcome) -> PortVerdict:
    """Only an accepted connection marks a port as occupied.

    Timeouts and unrelated socket errors count as free, so a filtered port
    never stalls or aborts the scan. A slow-to-refuse listener can be
    misreported as free.
    """

    if outcome is ProbeOutcome.LISTENING:
        return PortVerdict.OCCUPIED
    return PortVerdict.FREE


def timeout_as_inconclusive(outcome: ProbeOutcome) -> PortVerdict:
    """Only a refused connection marks a port as free; inconclusive probes are skipped."""

    if outcome is ProbeOutcome.LISTENING:
        return PortVerdict.OCCUPIED
    if outcome is ProbeOutcome.REFUSED:
        return PortVerdict.FREE
    return PortVerdict.SKIP


PROBE_POLICIES: dict[str, ProbePolicy] = {
    "free": timeout_as_free,
    "skip": timeout_as_inconclusive,
}


def get_probe_policy(name: str) -> ProbePolicy:
    """Look up a probe policy by its configuration name."""

    try:
        return PROBE_POLICIES[name]
    except KeyError as exc:
        known = ", ".join(sorted(PROBE_POLICIES))
        raise ValueError(f"Unknown probe policy '{name}' (expected one of: {known})") from exc
