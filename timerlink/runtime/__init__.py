from timerlink.runtime.scheduler import AsyncioScheduler, Handle, ManualScheduler, Scheduler

__all__ = [
    "AsyncioScheduler",
    "Handle",
    "ManualScheduler",
    "Scheduler",
]
