"""Primary-side timer state broadcaster.

Called by the timer on every tick and phase transition. Messages go through
send_or_fallback with the coalescing context slot, so a companion that was
unreachable receives only the latest state when it comes back.
"""

from typing import TYPE_CHECKING

from loguru import logger

from timerlink.link.session import LinkSession
from timerlink.link.types import Channel
from timerlink.protocol.messages import TimerMode, TimerPhase, TimerWireMessage

if TYPE_CHECKING:
    from timerlink.timer.state import TimerState

# Phases that always carry every field, so the companion never misses
# terminal context after a dropped message.
FORCE_SEND_PHASES = frozenset({TimerPhase.IDLE, TimerPhase.COUNTDOWN, TimerPhase.COMPLETE})


class StateBroadcaster:
    """Publishes the primary's timer state to the companion.

    Attributes:
        last_sent: Last message handed to the link (None before the first publish)
    """

    def __init__(self, link: LinkSession, dedupe_exercise: bool = False) -> None:
        self._link = link
        self._dedupe_exercise = dedupe_exercise
        self.last_sent: TimerWireMessage | None = None
        self._last_channel: Channel | None = None

    def publish(
        self,
        mode: TimerMode | None,
        phase: TimerPhase,
        display_seconds: int,
        headline: str,
        exercise: str | None = None,
    ) -> Channel | None:
        """Build a TimerWireMessage and push it to the companion.

        Args:
            mode: Timer mode (ignored for idle)
            phase: Current phase
            display_seconds: Seconds shown on the primary, clamped at 0
            headline: Label for the current phase/round
            exercise: Current exercise, if any

        Returns:
            Channel used, or None if the link could not accept it
        """
        if phase is TimerPhase.IDLE:
            return self.publish_idle()

        message = TimerWireMessage(
            mode=mode,
            phase=phase,
            display_seconds=max(0, display_seconds),
            headline=headline,
            exercise=exercise,
        )
        return self._send(message, include_exercise=not self._exercise_unchanged(message))

    def publish_state(self, mode: TimerMode, state: "TimerState") -> Channel | None:
        """Publish one of the timer's state variants."""
        message = state.to_wire(mode)
        if message.is_idle:
            return self.publish_idle()
        return self.publish(message.mode, message.phase, message.display_seconds, message.headline, message.exercise)

    def publish_idle(self) -> Channel | None:
        """Send the explicit "stop following" message."""
        return self._send(TimerWireMessage(phase=TimerPhase.IDLE), include_exercise=True)

    def _exercise_unchanged(self, message: TimerWireMessage) -> bool:
        if not self._dedupe_exercise or message.phase in FORCE_SEND_PHASES:
            return False
        # The context slot holds a single message, so it must always be complete
        if self._last_channel is not Channel.DIRECT or not self._link.status.reachable:
            return False
        last = self.last_sent
        return last is not None and not last.is_idle and last.mode is message.mode and last.exercise == message.exercise

    def _send(self, message: TimerWireMessage, include_exercise: bool) -> Channel | None:
        channel = self._link.send_or_fallback(message.to_payload(include_exercise=include_exercise), coalesce=True)
        if channel is Channel.CONTEXT and not include_exercise:
            logger.debug("Direct send fell back to context; resending with exercise")
            self._link.send_durable(message.to_payload(), coalesce=True)
        if channel is None:
            logger.debug(f"Timer state {message.phase} not sent: link not activated")
        self.last_sent = message
        self._last_channel = channel
        return channel
