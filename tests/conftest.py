"""Root conftest for all tests.

Shared fixtures: a virtual clock, the in-memory link between the two
devices, and fully assembled primary/companion peers on top of it.
"""

import random

import pytest
from loguru import logger

from timerlink.config.settings import Settings
from timerlink.heart_rate.sensor import SyntheticSensorSession
from timerlink.heart_rate.synthetic import RandomWalkHeartRate
from timerlink.link.memory import InMemoryLink
from timerlink.peers.companion import CompanionPeer
from timerlink.peers.primary import PrimaryPeer
from timerlink.runtime.scheduler import ManualScheduler


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Virtual clock starting at t=0."""
    return ManualScheduler()


@pytest.fixture
def medium(scheduler: ManualScheduler) -> InMemoryLink:
    """Reachable, paired in-memory link with zero latency."""
    return InMemoryLink(scheduler)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with package defaults, ignoring the environment's .env file."""
    return Settings(
        _env_file=None,
        ping_timeout_seconds=10.0,
        tick_interval_seconds=1.0,
        synthetic_heart_rate=False,
        dedupe_exercise=False,
        auto_connect=False,
        countdown_seconds=5,
    )


@pytest.fixture
def primary(medium: InMemoryLink, scheduler: ManualScheduler, test_settings: Settings) -> PrimaryPeer:
    return PrimaryPeer(medium.primary, scheduler, settings=test_settings, walk=RandomWalkHeartRate(random.Random(1)))


@pytest.fixture
def companion(medium: InMemoryLink, scheduler: ManualScheduler) -> CompanionPeer:
    sensor = SyntheticSensorSession(scheduler, walk=RandomWalkHeartRate(random.Random(7)))
    return CompanionPeer(medium.companion, scheduler, sensor=sensor)


@pytest.fixture
def connected(primary: PrimaryPeer, companion: CompanionPeer, scheduler: ManualScheduler) -> tuple[PrimaryPeer, CompanionPeer]:
    """Both peers activated and reachable."""
    primary.start()
    companion.start()
    scheduler.run_ready()
    assert primary.link.status.reachable
    assert companion.link.status.reachable
    return primary, companion


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
