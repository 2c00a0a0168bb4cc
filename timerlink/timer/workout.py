"""Reference workout timer.

Drives the StateBroadcaster the way the primary's timer screens do: a
countdown, one running message per tick, a complete message at the end and an
idle message on stop/reset. Heart-rate collection starts with the running
phase and stops on complete or stop.

Modes:
- EMOM: displays seconds to the next beep; headline is the minute/round label
- AMRAP: displays remaining seconds; headline is the completed round count
- FOR TIME: displays elapsed seconds up to the time cap
"""

from loguru import logger

from timerlink.heart_rate.monitor import HeartRateMonitor
from timerlink.protocol.messages import TimerMode
from timerlink.runtime.scheduler import Handle, Scheduler
from timerlink.sync.broadcaster import StateBroadcaster
from timerlink.timer.state import Complete, Countdown, Idle, Running, TimerState

DEFAULT_COUNTDOWN_SECONDS = 5


class WorkoutTimer:
    def __init__(
        self,
        broadcaster: StateBroadcaster,
        scheduler: Scheduler,
        mode: TimerMode,
        total_minutes: int,
        interval_minutes: int = 1,
        exercises: list[str] | None = None,
        heart_rate: HeartRateMonitor | None = None,
        countdown_seconds: int = DEFAULT_COUNTDOWN_SECONDS,
        tick_interval: float = 1.0,
    ) -> None:
        if total_minutes <= 0:
            raise ValueError("total_minutes must be positive")
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        self._broadcaster = broadcaster
        self._scheduler = scheduler
        self._mode = mode
        self._total_seconds = total_minutes * 60
        self._interval_seconds = interval_minutes * 60
        self._exercises = list(exercises or [])
        self._heart_rate = heart_rate
        self._countdown_seconds = countdown_seconds
        self._tick_interval = tick_interval

        self._state: TimerState = Idle()
        self._handle: Handle | None = None
        self._remaining = 0
        self._elapsed = 0
        self._next_beep = 0
        self.rounds = 0

    @property
    def mode(self) -> TimerMode:
        return self._mode

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def is_active(self) -> bool:
        return isinstance(self._state, Countdown | Running)

    def start(self) -> None:
        """Begin the countdown. No-op while a countdown or workout is active."""
        if self.is_active:
            return
        logger.info(f"{self._mode} timer: countdown {self._countdown_seconds}s")
        self._set_state(Countdown(self._countdown_seconds))
        self._schedule(self._countdown_tick)

    def stop(self) -> None:
        """Abort the workout and tell the companion to stop following."""
        if isinstance(self._state, Idle):
            return
        self._cancel()
        if self._heart_rate is not None and self._heart_rate.is_collecting:
            self._heart_rate.stop()
        self.rounds = 0
        logger.info(f"{self._mode} timer stopped")
        self._set_state(Idle())

    def reset(self) -> None:
        """Return to idle, ending the companion session and clearing heart-rate metrics."""
        self._cancel()
        if self._heart_rate is not None:
            if self._heart_rate.is_collecting:
                self._heart_rate.stop()
            self._heart_rate.reset()
        self.rounds = 0
        self._remaining = self._elapsed = self._next_beep = 0
        self._set_state(Idle())

    def add_round(self) -> None:
        """Count a completed AMRAP round."""
        if self._mode is TimerMode.AMRAP and isinstance(self._state, Running):
            self.rounds += 1
            self._publish_running()

    def finish(self) -> None:
        """Finish a FOR TIME workout before the time cap."""
        if self._mode is TimerMode.FOR_TIME and isinstance(self._state, Running):
            self._complete(Complete(self._elapsed, "Finished"))

    # ----- ticks -----

    def _countdown_tick(self) -> None:
        state = self._state
        if not isinstance(state, Countdown):
            return
        if state.seconds > 1:
            self._set_state(Countdown(state.seconds - 1))
            self._schedule(self._countdown_tick)
            return
        self._begin_running()

    def _begin_running(self) -> None:
        self._remaining = self._total_seconds
        self._elapsed = 0
        self._next_beep = self._interval_seconds
        self.rounds = 0
        if self._heart_rate is not None:
            self._heart_rate.start()
        logger.info(f"{self._mode} timer running ({self._total_seconds}s)")
        self._publish_running()
        self._schedule(self._running_tick)

    def _running_tick(self) -> None:
        if not isinstance(self._state, Running):
            return
        if self._mode is TimerMode.FOR_TIME:
            self._elapsed += 1
            if self._elapsed >= self._total_seconds:
                self._complete(Complete(self._elapsed, "Time cap"))
                return
        else:
            self._remaining -= 1
            if self._remaining <= 0:
                headline = f"{self.rounds} rounds" if self._mode is TimerMode.AMRAP else "Complete"
                self._complete(Complete(0, headline))
                return
            if self._mode is TimerMode.EMOM:
                self._next_beep -= 1
                if self._next_beep <= 0:
                    self._next_beep = self._interval_seconds
        self._publish_running()
        self._schedule(self._running_tick)

    def _publish_running(self) -> None:
        if self._mode is TimerMode.EMOM:
            round_number = max(1, (self._total_seconds - self._remaining) // self._interval_seconds + 1)
            label = f"Minute {round_number}" if self._interval_seconds == 60 else f"Round {round_number}"
            exercise = self._exercises[(round_number - 1) % len(self._exercises)] if self._exercises else None
            self._set_state(Running(self._next_beep, label, exercise))
        elif self._mode is TimerMode.AMRAP:
            summary = " / ".join(self._exercises) if self._exercises else None
            self._set_state(Running(self._remaining, f"Round {self.rounds}", summary))
        else:
            summary = " / ".join(self._exercises) if self._exercises else None
            self._set_state(Running(self._elapsed, "Elapsed", summary))

    def _complete(self, state: Complete) -> None:
        self._cancel()
        if self._heart_rate is not None:
            self._heart_rate.stop()
        logger.info(f"{self._mode} timer complete: {state.headline}")
        self._set_state(state)

    # ----- helpers -----

    def _set_state(self, state: TimerState) -> None:
        self._state = state
        self._broadcaster.publish_state(self._mode, state)

    def _schedule(self, callback) -> None:
        self._handle = self._scheduler.call_later(self._tick_interval, callback)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
