"""In-memory transport pair.

InMemoryLink joins two InMemoryTransport endpoints through a simulated
medium with the same delivery semantics as the platform transport:

- direct messages fail with PeerUnreachableError unless the medium is
  reachable and both ends are activated
- queued transfers are kept in FIFO order and flushed once reachable
- context updates keep only the latest undelivered payload

Deliveries are scheduled on the medium's scheduler, never called inline.
Used by the simulator and by the integration tests.
"""

from collections import deque

from loguru import logger

from timerlink.link.errors import PeerUnreachableError
from timerlink.link.transport import ErrorHandler, Payload, ReplyHandler, TransportListener
from timerlink.link.types import ActivationState, Channel
from timerlink.runtime.scheduler import Scheduler


class InMemoryTransport:
    """One endpoint of an InMemoryLink."""

    def __init__(self, link: "InMemoryLink", name: str, supported: bool = True) -> None:
        self._link = link
        self.name = name
        self._supported = supported
        self._listener: TransportListener | None = None
        self.activated = False
        self._queue: deque[Payload] = deque()
        self._context: Payload | None = None
        self.sent_direct: list[Payload] = []
        self.sent_queue: list[Payload] = []
        self.sent_context: list[Payload] = []

    @property
    def is_supported(self) -> bool:
        return self._supported

    @property
    def peer(self) -> "InMemoryTransport":
        return self._link.other(self)

    @property
    def pending_queue(self) -> list[Payload]:
        return list(self._queue)

    @property
    def pending_context(self) -> Payload | None:
        return self._context

    def bind(self, listener: TransportListener) -> None:
        self._listener = listener

    def activate(self) -> None:
        if not self._supported:
            return
        self._link.scheduler.call_later(self._link.latency, self._complete_activation)

    def deactivate(self) -> None:
        """Simulate the platform tearing the session down."""
        self.activated = False
        if self._listener is not None:
            self._listener.on_activation_changed(ActivationState.UNACTIVATED)
        self._link.notify_state()

    def _complete_activation(self) -> None:
        self.activated = True
        if self._listener is not None:
            self._listener.on_activation_changed(ActivationState.ACTIVATED)
        self._link.notify_state()
        self._link.flush()

    def send_message(
        self,
        payload: Payload,
        reply_handler: ReplyHandler | None = None,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        self.sent_direct.append(payload)
        if not self._link.can_deliver():
            if error_handler is not None:
                error = PeerUnreachableError(f"{self.peer.name} is not reachable")
                self._link.scheduler.call_soon(error_handler, error)
            return
        if self._link.drop_direct:
            logger.debug(f"[memory] Dropping direct message {self.name} -> {self.peer.name}")
            return

        reply: ReplyHandler | None = None
        if reply_handler is not None:
            reply = self._make_reply(reply_handler)
        self._link.scheduler.call_later(self._link.latency, self.peer._receive, payload, Channel.DIRECT, reply)

    def _make_reply(self, reply_handler: ReplyHandler) -> ReplyHandler:
        def reply(response: Payload) -> None:
            if self._link.can_deliver() and not self._link.drop_direct:
                self._link.scheduler.call_later(self._link.latency, reply_handler, response)

        return reply

    def transfer(self, payload: Payload) -> None:
        self.sent_queue.append(payload)
        self._queue.append(payload)
        self._link.flush()

    def update_context(self, payload: Payload) -> None:
        self.sent_context.append(payload)
        self._context = payload
        self._link.flush()

    def flush(self) -> None:
        """Deliver queued items then the latest context to the peer."""
        while self._queue:
            payload = self._queue.popleft()
            self._link.scheduler.call_later(self._link.latency, self.peer._receive, payload, Channel.QUEUE, None)
        if self._context is not None:
            payload, self._context = self._context, None
            self._link.scheduler.call_later(self._link.latency, self.peer._receive, payload, Channel.CONTEXT, None)

    def notify_state(self, paired: bool, installed: bool, reachable: bool) -> None:
        if self._listener is not None and self.activated:
            self._listener.on_state_changed(paired=paired, companion_app_installed=installed, reachable=reachable)

    def _receive(self, payload: Payload, channel: Channel, reply: ReplyHandler | None) -> None:
        if self._listener is None:
            return
        self._listener.on_payload(payload, channel, reply)


class InMemoryLink:
    """Simulated medium between a primary and a companion endpoint.

    Attributes:
        primary: Endpoint for the primary peer
        companion: Endpoint for the companion peer
        drop_direct: Silently lose direct messages and replies (message loss)
        latency: Delivery delay in scheduler seconds
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        reachable: bool = True,
        paired: bool = True,
        companion_app_installed: bool = True,
        supported: bool = True,
        latency: float = 0.0,
    ) -> None:
        self.scheduler = scheduler
        self.latency = latency
        self.drop_direct = False
        self._reachable = reachable
        self._paired = paired
        self._installed = companion_app_installed
        self.primary = InMemoryTransport(self, "primary", supported=supported)
        self.companion = InMemoryTransport(self, "companion", supported=supported)

    def other(self, endpoint: InMemoryTransport) -> InMemoryTransport:
        return self.companion if endpoint is self.primary else self.primary

    @property
    def reachable(self) -> bool:
        return self._reachable

    def can_deliver(self) -> bool:
        return self._reachable and self.primary.activated and self.companion.activated

    def set_reachable(self, reachable: bool) -> None:
        if reachable == self._reachable:
            return
        self._reachable = reachable
        logger.debug(f"[memory] Medium reachable={reachable}")
        self.notify_state()
        self.flush()

    def set_paired(self, paired: bool, companion_app_installed: bool | None = None) -> None:
        self._paired = paired
        if companion_app_installed is not None:
            self._installed = companion_app_installed
        self.notify_state()

    def notify_state(self) -> None:
        reachable = self.can_deliver()
        self.primary.notify_state(self._paired, self._installed, reachable)
        self.companion.notify_state(self._paired, self._installed, reachable)

    def flush(self) -> None:
        if not self.can_deliver():
            return
        self.primary.flush()
        self.companion.flush()
