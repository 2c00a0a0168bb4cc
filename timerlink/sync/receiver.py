"""Companion-side state receiver and session follower.

Keeps the latest primary timer state (last message wins, no merge) and drives
the local sensor session so it mirrors the primary:

- idle / empty mode: forget the remote state, stop a session started by following
- running with no local session: start one and mark it as following
- any other phase while following: stop it

There are no sequence numbers, so a stale message delivered late by the
durable channel replaces a newer one until the next tick arrives.
"""

from dataclasses import dataclass
from typing import Any, Protocol

from loguru import logger

from timerlink.protocol.messages import (
    CommandMessage,
    TimerMode,
    TimerPhase,
    TimerWireMessage,
    parse_message,
)
from timerlink.runtime.scheduler import Scheduler


class LocalSession(Protocol):
    @property
    def is_running(self) -> bool: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...


@dataclass(frozen=True)
class RemoteTimerState:
    """Latest timer state mirrored from the primary.

    Attributes:
        mode: Timer mode
        phase: Timer phase (never idle)
        display_seconds: Seconds shown on the primary when sent
        headline: Label for the current phase/round
        exercise: Current exercise, if any
        received_at: Scheduler time the message was applied
    """

    mode: TimerMode
    phase: TimerPhase
    display_seconds: int
    headline: str
    exercise: str | None
    received_at: float

    @property
    def counts_up(self) -> bool:
        return self.phase is TimerPhase.RUNNING and self.mode is TimerMode.FOR_TIME

    def display_seconds_at(self, now: float) -> int:
        """Extrapolate the displayed seconds between messages.

        Countdown and EMOM/AMRAP running count down (floored at 0), FOR TIME
        running counts up, complete does not move.
        """
        elapsed = max(0, int(now - self.received_at))
        if self.phase is TimerPhase.RUNNING:
            if self.counts_up:
                return self.display_seconds + elapsed
            return max(0, self.display_seconds - elapsed)
        if self.phase is TimerPhase.COUNTDOWN:
            return max(0, self.display_seconds - elapsed)
        return self.display_seconds


class StateReceiver:
    """Mirrors the primary's timer onto the companion.

    Attributes:
        remote_state: Latest non-idle state, None when not following
        is_following: The local session was started because of remote state
    """

    def __init__(self, session: LocalSession, scheduler: Scheduler) -> None:
        self._session = session
        self._scheduler = scheduler
        self.remote_state: RemoteTimerState | None = None
        self.is_following = False

    def handle_payload(self, payload: Any) -> bool:
        """Parse and apply a raw timer-state payload.

        Returns:
            True if the payload was a valid timer-state message and was applied
        """
        message = parse_message(payload)
        if not isinstance(message, TimerWireMessage):
            return False
        self.handle(message)
        return True

    def handle(self, message: TimerWireMessage) -> None:
        if message.is_idle or message.mode is None:
            self._clear()
            return

        exercise = message.exercise
        previous = self.remote_state
        if not message.carries_exercise and previous is not None and previous.mode is message.mode:
            exercise = previous.exercise

        self.remote_state = RemoteTimerState(
            mode=message.mode,
            phase=message.phase,
            display_seconds=message.display_seconds,
            headline=message.headline,
            exercise=exercise,
            received_at=self._scheduler.now(),
        )

        if message.phase is TimerPhase.RUNNING:
            if not self._session.is_running:
                logger.info(f"Following primary {message.mode} timer; starting local session")
                self._session.start()
                self.is_following = True
        elif self.is_following:
            logger.info(f"Primary timer {message.phase}; stopping followed session")
            self._stop_following()

    def handle_command(self, command: CommandMessage) -> None:
        """Apply an explicit start/stop command from the primary."""
        if command.command == "start":
            self._session.start()
        else:
            self._session.stop()
            self.is_following = False

    def display_seconds(self) -> int | None:
        """Displayed seconds right now, extrapolated from the last message."""
        if self.remote_state is None:
            return None
        return self.remote_state.display_seconds_at(self._scheduler.now())

    def _clear(self) -> None:
        if self.remote_state is not None:
            logger.info("Primary timer idle; clearing remote state")
        self.remote_state = None
        if self.is_following:
            self._stop_following()

    def _stop_following(self) -> None:
        self._session.stop()
        self.is_following = False
