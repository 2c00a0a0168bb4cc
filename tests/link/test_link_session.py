"""Tests for LinkSession activation, status tracking and send fallback."""

import pytest

from timerlink.link.memory import InMemoryLink
from timerlink.link.session import LinkSession
from timerlink.link.types import ActivationState, Channel, LinkStatus
from timerlink.runtime.scheduler import ManualScheduler


@pytest.fixture
def sessions(medium: InMemoryLink, scheduler: ManualScheduler) -> tuple[LinkSession, LinkSession]:
    return LinkSession(medium.primary, scheduler, name="primary"), LinkSession(medium.companion, scheduler, name="companion")


@pytest.fixture
def received(sessions: tuple[LinkSession, LinkSession]) -> list[tuple[dict, Channel]]:
    """Payloads delivered to the companion session."""
    items: list[tuple[dict, Channel]] = []
    sessions[1].set_message_handler(lambda payload, channel, reply: items.append((payload, channel)))
    return items


@pytest.fixture
def activated(sessions: tuple[LinkSession, LinkSession], scheduler: ManualScheduler) -> tuple[LinkSession, LinkSession]:
    primary, companion = sessions
    primary.activate()
    companion.activate()
    scheduler.run_ready()
    return primary, companion


class TestLinkStatus:
    """LinkStatus normalizes reachability."""

    def test_reachable_requires_activation(self) -> None:
        status = LinkStatus(supported=True, reachable=True, activation=ActivationState.ACTIVATING)
        assert status.reachable is False

    def test_reachable_kept_when_activated(self) -> None:
        status = LinkStatus(supported=True, reachable=True, activation=ActivationState.ACTIVATED)
        assert status.reachable is True

    def test_ready_for_companion(self) -> None:
        status = LinkStatus(supported=True, paired=True, companion_app_installed=True)
        assert status.is_ready_for_companion
        assert not status.with_changes(companion_app_installed=False).is_ready_for_companion


class TestActivation:
    """Activation lifecycle of a session."""

    def test_initial_status(self, sessions: tuple[LinkSession, LinkSession]) -> None:
        status = sessions[0].status
        assert status.supported
        assert status.activation is ActivationState.UNACTIVATED
        assert not status.reachable

    def test_activation_completes_and_reports_state(self, activated: tuple[LinkSession, LinkSession]) -> None:
        for session in activated:
            assert session.status.is_activated
            assert session.status.reachable
            assert session.status.paired
            assert session.status.companion_app_installed

    def test_activate_is_idempotent(self, sessions: tuple[LinkSession, LinkSession], scheduler: ManualScheduler) -> None:
        primary, _ = sessions
        primary.activate()
        primary.activate()

        assert primary.status.activation is ActivationState.ACTIVATING
        assert scheduler.pending == 1

    def test_unsupported_transport_is_noop(self, scheduler: ManualScheduler) -> None:
        session = LinkSession(None, scheduler)

        session.activate()

        assert not session.status.supported
        assert session.status.activation is ActivationState.UNACTIVATED
        assert session.send_or_fallback({"command": "start"}) is None
        assert session.send_direct({"command": "start"}) is False
        assert session.send_durable({"command": "start"}) is False
        assert scheduler.pending == 0

    def test_unsupported_in_memory_endpoint(self, scheduler: ManualScheduler) -> None:
        medium = InMemoryLink(scheduler, supported=False)
        session = LinkSession(medium.primary, scheduler)
        assert not session.status.supported

    def test_send_before_activation_requests_it(self, sessions: tuple[LinkSession, LinkSession]) -> None:
        primary, _ = sessions
        assert primary.send_or_fallback({"command": "start"}) is None
        assert primary.status.activation is ActivationState.ACTIVATING

    def test_deactivation_reactivates(
        self,
        activated: tuple[LinkSession, LinkSession],
        medium: InMemoryLink,
        scheduler: ManualScheduler,
    ) -> None:
        primary, _ = activated
        seen: list[ActivationState] = []
        primary.subscribe(lambda new, prev: seen.append(new.activation))

        medium.primary.deactivate()
        scheduler.run_ready()

        assert ActivationState.UNACTIVATED in seen
        assert primary.status.is_activated
        assert primary.status.reachable


class TestSubscriptions:
    """Status subscribers see only real changes."""

    def test_notified_with_new_and_previous(self, sessions: tuple[LinkSession, LinkSession], scheduler: ManualScheduler) -> None:
        primary, companion = sessions
        changes: list[tuple[LinkStatus, LinkStatus]] = []
        primary.subscribe(lambda new, prev: changes.append((new, prev)))

        primary.activate()
        companion.activate()
        scheduler.run_ready()

        assert changes
        assert all(new != prev for new, prev in changes)
        assert changes[0][1].activation is ActivationState.UNACTIVATED
        assert changes[-1][0].reachable

    def test_unsubscribe(self, sessions: tuple[LinkSession, LinkSession]) -> None:
        primary, _ = sessions
        changes: list[LinkStatus] = []
        unsubscribe = primary.subscribe(lambda new, prev: changes.append(new))

        unsubscribe()
        primary.activate()

        assert changes == []


class TestSendOrFallback:
    """Direct while reachable, durable otherwise."""

    def test_direct_when_reachable(
        self,
        activated: tuple[LinkSession, LinkSession],
        received: list[tuple[dict, Channel]],
        scheduler: ManualScheduler,
    ) -> None:
        primary, _ = activated
        channel = primary.send_or_fallback({"heartRate": 120.0})
        scheduler.run_ready()

        assert channel is Channel.DIRECT
        assert received == [({"heartRate": 120.0}, Channel.DIRECT)]

    def test_queue_when_unreachable(
        self,
        activated: tuple[LinkSession, LinkSession],
        received: list[tuple[dict, Channel]],
        medium: InMemoryLink,
        scheduler: ManualScheduler,
    ) -> None:
        primary, _ = activated
        medium.set_reachable(False)
        scheduler.run_ready()

        channel = primary.send_or_fallback({"command": "stop"})
        scheduler.run_ready()
        assert channel is Channel.QUEUE
        assert received == []

        medium.set_reachable(True)
        scheduler.run_ready()
        assert received == [({"command": "stop"}, Channel.QUEUE)]

    def test_queue_preserves_order(
        self,
        activated: tuple[LinkSession, LinkSession],
        received: list[tuple[dict, Channel]],
        medium: InMemoryLink,
        scheduler: ManualScheduler,
    ) -> None:
        primary, _ = activated
        medium.set_reachable(False)
        scheduler.run_ready()

        for bpm in (100.0, 101.0, 102.0):
            primary.send_or_fallback({"heartRate": bpm})
        medium.set_reachable(True)
        scheduler.run_ready()

        assert [payload["heartRate"] for payload, _ in received] == [100.0, 101.0, 102.0]

    def test_context_keeps_latest_only(
        self,
        activated: tuple[LinkSession, LinkSession],
        received: list[tuple[dict, Channel]],
        medium: InMemoryLink,
        scheduler: ManualScheduler,
    ) -> None:
        primary, _ = activated
        medium.set_reachable(False)
        scheduler.run_ready()

        for n in (1, 2, 3):
            assert primary.send_or_fallback({"n": n}, coalesce=True) is Channel.CONTEXT
        medium.set_reachable(True)
        scheduler.run_ready()

        assert received == [({"n": 3}, Channel.CONTEXT)]

    def test_direct_failure_falls_back_to_durable(
        self,
        activated: tuple[LinkSession, LinkSession],
        received: list[tuple[dict, Channel]],
        medium: InMemoryLink,
        scheduler: ManualScheduler,
    ) -> None:
        """Reachability drops after the session last saw it; the direct send fails."""
        primary, _ = activated
        medium.set_reachable(False)
        assert primary.status.reachable  # state change not yet applied

        channel = primary.send_or_fallback({"command": "start"})
        scheduler.run_ready()

        assert channel is Channel.DIRECT
        assert medium.primary.pending_queue == [{"command": "start"}]
        assert received == []

        medium.set_reachable(True)
        scheduler.run_ready()
        assert received == [({"command": "start"}, Channel.QUEUE)]

    def test_reply_handler_runs_on_scheduler(
        self,
        activated: tuple[LinkSession, LinkSession],
        scheduler: ManualScheduler,
    ) -> None:
        primary, companion = activated
        companion.set_message_handler(lambda payload, channel, reply: reply({"pong": True}) if reply else None)
        replies: list[dict] = []

        assert primary.send_direct({"command": "ping"}, reply_handler=replies.append)
        assert replies == []
        scheduler.run_ready()

        assert replies == [{"pong": True}]
