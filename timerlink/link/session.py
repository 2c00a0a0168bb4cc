"""Link session: owns the transport to the peer and the LinkStatus.

One LinkSession exists per peer process. It is constructed at startup and
passed to every component that sends or observes link state.

Send pattern used almost everywhere is send_or_fallback(): direct while the
peer is reachable, durable otherwise. Timer-state sync uses the coalescing
context slot; commands, pings, pongs and heart-rate samples use the queue so
none are dropped.
"""

from collections.abc import Callable
from typing import Any

from loguru import logger

from timerlink.link.errors import TransportError
from timerlink.link.transport import ErrorHandler, Payload, ReplyHandler, Transport
from timerlink.link.types import ActivationState, Channel, LinkStatus
from timerlink.runtime.scheduler import Scheduler

StatusCallback = Callable[[LinkStatus, LinkStatus], None]
MessageHandler = Callable[[Payload, Channel, ReplyHandler | None], None]


class LinkSession:
    """Single connection to the peer device.

    Transport events are posted onto the scheduler and applied in arrival
    order; LinkStatus is only ever mutated from there.
    """

    def __init__(self, transport: Transport | None, scheduler: Scheduler, name: str = "link") -> None:
        self._transport = transport
        self._scheduler = scheduler
        self._name = name
        self._subscribers: list[StatusCallback] = []
        self._message_handler: MessageHandler | None = None

        supported = transport is not None and transport.is_supported
        self._status = LinkStatus(supported=supported)
        if transport is not None and supported:
            transport.bind(self)
        else:
            logger.warning(f"[{self._name}] Transport not supported; all sends are no-ops")

    @property
    def name(self) -> str:
        return self._name

    @property
    def status(self) -> LinkStatus:
        return self._status

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    def subscribe(self, callback: StatusCallback) -> Callable[[], None]:
        """Register for status changes.

        Args:
            callback: Called with (new_status, previous_status)

        Returns:
            Callable that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def set_message_handler(self, handler: MessageHandler) -> None:
        self._message_handler = handler

    # ----- activation -----

    def activate(self) -> None:
        """Request activation unless already activated or activating."""
        if not self._status.supported or self._transport is None:
            return
        if self._status.activation is not ActivationState.UNACTIVATED:
            return
        self._set_status(self._status.with_changes(activation=ActivationState.ACTIVATING))
        logger.debug(f"[{self._name}] Requesting activation")
        self._transport.activate()

    # ----- sending -----

    def send_direct(
        self,
        payload: Payload,
        reply_handler: ReplyHandler | None = None,
        error_handler: ErrorHandler | None = None,
    ) -> bool:
        """Send an immediate message to the peer.

        No-op unless activated. Callers check `status.reachable` first; a
        delivery failure is handed to error_handler, never raised.

        Returns:
            True if the payload was handed to the transport
        """
        transport = self._transport
        if transport is None or not self._can_send():
            return False
        try:
            transport.send_message(
                payload,
                reply_handler=self._posted(reply_handler),
                error_handler=self._posted(error_handler),
            )
        except TransportError as e:
            logger.warning(f"[{self._name}] Direct send failed: {e}")
            if error_handler is not None:
                error_handler(e)
            return False
        return True

    def send_durable(self, payload: Payload, coalesce: bool = False) -> bool:
        """Queue a payload for store-and-forward delivery.

        Args:
            payload: Wire payload
            coalesce: Use the single-slot context (latest value wins) instead
                of the FIFO transfer queue

        Returns:
            True if the payload was accepted by the transport
        """
        transport = self._transport
        if transport is None or not self._can_send():
            return False
        try:
            if coalesce:
                transport.update_context(payload)
            else:
                transport.transfer(payload)
        except TransportError as e:
            logger.warning(f"[{self._name}] Durable send failed: {e}")
            return False
        return True

    def send_or_fallback(self, payload: Payload, coalesce: bool = False) -> Channel | None:
        """Send directly when reachable, otherwise through the durable path.

        Returns:
            Channel used, or None when the link is not activated
        """
        if not self._can_send():
            return None
        durable_channel = Channel.CONTEXT if coalesce else Channel.QUEUE
        if not self._status.reachable:
            return durable_channel if self.send_durable(payload, coalesce=coalesce) else None

        accepted: list[bool] = []

        def _fallback(error: TransportError) -> None:
            # Reachability dropped between the check and the send
            logger.debug(f"[{self._name}] Direct send failed ({error}); falling back to {durable_channel}")
            accepted.append(self.send_durable(payload, coalesce=coalesce))

        if self.send_direct(payload, error_handler=_fallback):
            return Channel.DIRECT
        return durable_channel if any(accepted) else None

    def _posted(self, handler: Callable[[Any], None] | None) -> Callable[[Any], None] | None:
        """Wrap a transport callback so it runs on the scheduler."""
        if handler is None:
            return None

        def post(value: Any) -> None:
            self._scheduler.call_soon(handler, value)

        return post

    def _can_send(self) -> bool:
        if self._transport is None or not self._status.supported:
            return False
        if not self._status.is_activated:
            self.activate()
            return False
        return True

    # ----- transport listener (any thread) -----

    def on_activation_changed(self, activation: ActivationState) -> None:
        self._scheduler.call_soon(self._apply_activation, activation)

    def on_state_changed(self, *, paired: bool, companion_app_installed: bool, reachable: bool) -> None:
        self._scheduler.call_soon(self._apply_state, paired, companion_app_installed, reachable)

    def on_payload(self, payload: Payload, channel: Channel, reply: ReplyHandler | None) -> None:
        self._scheduler.call_soon(self._deliver, payload, channel, reply)

    # ----- actor side -----

    def _apply_activation(self, activation: ActivationState) -> None:
        previous = self._status
        changes: dict[str, object] = {"activation": activation}
        if activation is not ActivationState.ACTIVATED:
            changes["reachable"] = False
        self._set_status(previous.with_changes(**changes))
        logger.info(f"[{self._name}] Activation {previous.activation} -> {activation}")

        if previous.activation is ActivationState.ACTIVATED and activation is ActivationState.UNACTIVATED:
            # Session was deactivated by the platform; bring it back
            self.activate()

    def _apply_state(self, paired: bool, companion_app_installed: bool, reachable: bool) -> None:
        previous = self._status
        self._set_status(
            previous.with_changes(
                paired=paired,
                companion_app_installed=companion_app_installed,
                reachable=reachable,
            )
        )
        if previous.reachable != self._status.reachable:
            logger.info(f"[{self._name}] Reachable: {self._status.reachable}")

    def _deliver(self, payload: Payload, channel: Channel, reply: ReplyHandler | None) -> None:
        if self._message_handler is None:
            logger.debug(f"[{self._name}] No message handler; dropping payload from {channel}")
            return
        self._message_handler(payload, channel, reply)

    def _set_status(self, status: LinkStatus) -> None:
        previous = self._status
        if status == previous:
            return
        self._status = status
        for callback in list(self._subscribers):
            callback(status, previous)
