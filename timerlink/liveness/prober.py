"""Primary-side liveness prober.

State machine: idle -> probing -> succeeded | failed(timeout | transport_error | invalid_reply)

Correlation discipline:
- every probe() gets a fresh correlation id and cancels the previous probe's timeout
- a pong resolves the probe only if its pingId equals the outstanding id
- a timeout fires only if its probe is still outstanding
So each probe() reports at most one result, and stale pongs or timers never
change state.

A probe is sent twice: a direct request whose reply is routed back here, and
a queued durable copy. A pong relayed back through the durable path is
accepted too, as long as the id still matches.

A pong without a pingId is ignored even while probing, since it cannot be
tied to the outstanding probe. A legacy companion that omits the id
therefore reads as a timeout.
"""

import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any

from loguru import logger

from timerlink.link.errors import TransportError
from timerlink.link.session import LinkSession
from timerlink.link.types import LinkStatus
from timerlink.protocol.messages import PingMessage, PongMessage, parse_message
from timerlink.runtime.scheduler import Handle

DEFAULT_PING_TIMEOUT_SECONDS = 10.0


class ProbeState(StrEnum):
    IDLE = "idle"
    PROBING = "probing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ProbeFailure(StrEnum):
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"
    INVALID_REPLY = "invalid_reply"


@dataclass(frozen=True)
class LivenessReport:
    """Latest liveness result.

    Attributes:
        state: Probe state
        probe_id: Correlation id the report refers to
        reason: Failure reason (failed only)
        note: Progress note while probing, e.g. "waiting for activation"
        reported_at: Scheduler time of the report
    """

    state: ProbeState = ProbeState.IDLE
    probe_id: str | None = None
    reason: ProbeFailure | None = None
    note: str | None = None
    reported_at: float | None = None

    @property
    def succeeded(self) -> bool | None:
        if self.state is ProbeState.SUCCEEDED:
            return True
        if self.state is ProbeState.FAILED:
            return False
        return None


@dataclass
class PingProbe:
    """The single outstanding probe."""

    correlation_id: str
    issued_at: float
    timeout_handle: Handle
    pending: bool = False


ReportCallback = Callable[[LivenessReport], None]


class LivenessProber:
    """Issues pings to the companion and reports link health."""

    def __init__(
        self,
        link: LinkSession,
        timeout: float = DEFAULT_PING_TIMEOUT_SECONDS,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._link = link
        self._scheduler = link.scheduler
        self._timeout = timeout
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._outstanding: PingProbe | None = None
        self._report = LivenessReport()
        self._subscribers: list[ReportCallback] = []
        link.subscribe(self._on_link_status)

    @property
    def report(self) -> LivenessReport:
        return self._report

    @property
    def outstanding(self) -> PingProbe | None:
        return self._outstanding

    @property
    def is_probing(self) -> bool:
        return self._outstanding is not None

    def subscribe(self, callback: ReportCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def probe(self) -> str | None:
        """Start a new probe, invalidating any outstanding one.

        Returns:
            The new correlation id, or None when the transport is unsupported
            (reported immediately as failed with transport_error)
        """
        if not self._link.status.supported:
            self._cancel_outstanding()
            self._set_report(LivenessReport(state=ProbeState.FAILED, reason=ProbeFailure.TRANSPORT_ERROR, note="no session"))
            return None

        self._cancel_outstanding()
        correlation_id = self._id_factory()
        handle = self._scheduler.call_later(self._timeout, self._on_timeout, correlation_id)
        probe = PingProbe(correlation_id=correlation_id, issued_at=self._scheduler.now(), timeout_handle=handle)
        self._outstanding = probe
        self._set_report(LivenessReport(state=ProbeState.PROBING, probe_id=correlation_id, note="waiting for reply"))
        logger.debug(f"Ping {correlation_id} issued")

        self._link.activate()
        if not self._link.status.is_activated:
            probe.pending = True
            self._note(probe, "waiting for activation")
            return correlation_id

        self._transmit(probe)
        return correlation_id

    def handle_pong(self, payload: Mapping[str, Any] | PongMessage) -> bool:
        """Resolve the outstanding probe from a pong (direct reply or relayed).

        Returns:
            True if the pong matched the outstanding probe and resolved it
        """
        message = payload if isinstance(payload, PongMessage) else parse_message(payload)
        if not isinstance(message, PongMessage):
            return False

        probe = self._outstanding
        if probe is None or message.ping_id is None or message.ping_id != probe.correlation_id:
            logger.debug(f"Ignoring stale pong {message.ping_id}")
            return False

        if message.pong:
            self._finish(ProbeState.SUCCEEDED)
        else:
            self._finish(ProbeState.FAILED, ProbeFailure.INVALID_REPLY)
        return True

    # ----- transmission -----

    def _transmit(self, probe: PingProbe) -> None:
        self._send_direct(probe)
        self._link.send_durable(PingMessage(ping_id=probe.correlation_id).to_payload())

    def _send_direct(self, probe: PingProbe) -> None:
        if not self._link.status.reachable:
            probe.pending = True
            self._note(probe, "waiting for reachability")
            return
        probe.pending = False
        correlation_id = probe.correlation_id

        def on_error(error: TransportError) -> None:
            self._on_direct_error(correlation_id, error)

        self._link.send_direct(
            PingMessage(ping_id=correlation_id).to_payload(),
            reply_handler=self.handle_pong,
            error_handler=on_error,
        )

    def _on_direct_error(self, correlation_id: str, error: TransportError) -> None:
        probe = self._outstanding
        if probe is None or probe.correlation_id != correlation_id:
            return
        logger.debug(f"Ping {correlation_id} direct send failed: {error}")
        probe.pending = True
        self._note(probe, "waiting for reachability")

    def _on_link_status(self, status: LinkStatus, previous: LinkStatus) -> None:
        probe = self._outstanding
        if probe is None or not probe.pending:
            return
        if status.is_activated and not previous.is_activated:
            self._transmit(probe)
        elif status.reachable and not previous.reachable:
            self._send_direct(probe)

    # ----- completion -----

    def _on_timeout(self, correlation_id: str) -> None:
        probe = self._outstanding
        if probe is None or probe.correlation_id != correlation_id:
            return
        self._finish(ProbeState.FAILED, ProbeFailure.TIMEOUT)

    def _finish(self, state: ProbeState, reason: ProbeFailure | None = None) -> None:
        probe = self._outstanding
        if probe is None:
            return
        probe.timeout_handle.cancel()
        self._outstanding = None
        elapsed = self._scheduler.now() - probe.issued_at
        log = logger.bind(probe_id=probe.correlation_id, elapsed=round(elapsed, 3))
        if state is ProbeState.SUCCEEDED:
            log.info(f"Ping succeeded after {elapsed:.1f}s")
        else:
            log.bind(reason=str(reason)).warning(f"Ping failed ({reason}) after {elapsed:.1f}s")
        self._set_report(LivenessReport(state=state, probe_id=probe.correlation_id, reason=reason))

    def _cancel_outstanding(self) -> None:
        if self._outstanding is not None:
            self._outstanding.timeout_handle.cancel()
            logger.debug(f"Ping {self._outstanding.correlation_id} superseded")
            self._outstanding = None

    def _note(self, probe: PingProbe, note: str) -> None:
        self._set_report(LivenessReport(state=ProbeState.PROBING, probe_id=probe.correlation_id, note=note))

    def _set_report(self, report: LivenessReport) -> None:
        if report.reported_at is None:
            report = replace(report, reported_at=self._scheduler.now())
        self._report = report
        for callback in list(self._subscribers):
            callback(report)
