"""Platform transport interface.

A transport wraps the host's device-to-device link. It offers three delivery
primitives and reports events back to a bound listener:

- send_message: direct, low latency, only deliverable while the peer is
  reachable; supports an optional reply
- transfer: durable FIFO queue, every item delivered once connectivity resumes
- update_context: durable single slot, later payloads replace undelivered ones

Listener callbacks may arrive from any thread; the LinkSession posts them onto
its scheduler before touching state.
"""

from collections.abc import Callable
from typing import Any, Protocol

from timerlink.link.errors import TransportError
from timerlink.link.types import ActivationState, Channel

Payload = dict[str, Any]
ReplyHandler = Callable[[Payload], None]
ErrorHandler = Callable[[TransportError], None]


class TransportListener(Protocol):
    def on_activation_changed(self, activation: ActivationState) -> None: ...

    def on_state_changed(self, *, paired: bool, companion_app_installed: bool, reachable: bool) -> None: ...

    def on_payload(self, payload: Payload, channel: Channel, reply: ReplyHandler | None) -> None: ...


class Transport(Protocol):
    @property
    def is_supported(self) -> bool: ...

    def bind(self, listener: TransportListener) -> None: ...

    def activate(self) -> None: ...

    def send_message(
        self,
        payload: Payload,
        reply_handler: ReplyHandler | None = None,
        error_handler: ErrorHandler | None = None,
    ) -> None: ...

    def transfer(self, payload: Payload) -> None: ...

    def update_context(self, payload: Payload) -> None: ...
