"""TCP connect prober used by the port finder."""

from __future__ import annotations

import logging
import socket

from scriptsign.app.ports.probe import PortProbePort, ProbeOutcome

logger = logging.getLogger(__name__)


class SocketPortProbe(PortProbePort):
    """Probe ports by attempting a short-timeout TCP connection."""

    def __init__(self, host: str = "localhost", *, timeout: float = 0.2) -> None:
        self.host = host
        self.timeout = timeout

    def probe(self, port: int) -> ProbeOutcome:
        try:
            with socket.create_connection((self.host, port), timeout=self.timeout):
                return ProbeOutcome.LISTENING
        except ConnectionRefusedError:
            return ProbeOutcome.REFUSED
        except TimeoutError:
            return ProbeOutcome.TIMED_OUT
        except OSError as exc:
            logger.debug("Probe of %s:%d failed: %s", self.host, port, exc)
            return ProbeOutcome.ERROR
