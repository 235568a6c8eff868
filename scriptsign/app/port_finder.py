"""Find the first TCP port in a range with nothing listening on it."""

from __future__ import annotations

import logging

from scriptsign.app.ports.probe import (
    PortProbePort,
    PortVerdict,
    ProbePolicy,
    timeout_as_free,
)

logger = logging.getLogger(__name__)

MIN_PORT = 1
MAX_PORT = 65535


class PortFinder:
    """Sequential, greedy port scanner.

    Ports are probed one at a time in ascending order, so the lowest free
    port is always the one returned.
    """

    def __init__(
        self,
        prober: PortProbePort,
        *,
        policy: ProbePolicy = timeout_as_free,
        default_start: int = 11000,
        default_end: int = 12000,
    ) -> None:
        self.prober = prober
        self.policy = policy
        self.default_start = default_start
        self.default_end = default_end

    def find_available_port(
        self, start_port: int | None = None, end_port: int | None = None
    ) -> int | None:
        """Return the first free port in ``[start_port, end_port]``, or None.

        An inverted range is an empty scan and returns None without probing.

        Raises:
            ValueError: If either bound is outside 1-65535
        """
        start = self.default_start if start_port is None else start_port
        end = self.default_end if end_port is None else end_port

        for bound in (start, end):
            if not MIN_PORT <= bound <= MAX_PORT:
                raise ValueError(f"Port {bound} is outside {MIN_PORT}-{MAX_PORT}")

        for port in range(start, end + 1):
            outcome = self.prober.probe(port)
            verdict = self.policy(outcome)
            logger.debug("Port %d: %s -> %s", port, outcome.value, verdict.value)
            if verdict is PortVerdict.FREE:
                return port

        logger.info("No free port found in %d-%d", start, end)
        return None
