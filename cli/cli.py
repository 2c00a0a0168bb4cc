"""Developer CLI for timerlink.

Runs a primary and a companion peer in one process, joined by the in-memory
link and driven by the virtual clock, so protocol behavior (fallback,
coalescing, liveness) can be watched without devices.
"""

import random

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from timerlink.config.settings import settings
from timerlink.core.logger import setup_logger
from timerlink.heart_rate.sensor import SyntheticSensorSession
from timerlink.heart_rate.synthetic import RandomWalkHeartRate
from timerlink.link.memory import InMemoryLink
from timerlink.liveness.prober import ProbeState
from timerlink.peers.companion import CompanionPeer
from timerlink.peers.primary import PrimaryPeer
from timerlink.protocol.messages import TimerMode
from timerlink.runtime.scheduler import ManualScheduler
from timerlink.timer.state import Complete, Countdown, Running, TimerState
from timerlink.timer.utils import format_time, parse_exercises

# Initialize Rich console for output
console = Console()

# Initialize Typer app
app = typer.Typer(
    name="timerlink",
    help="timerlink CLI - offline Timer-Link simulation",
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
) -> None:
    """Configure logging for every command."""
    setup_logger(level="DEBUG" if verbose else settings.log_level, log_file=settings.log_file)


def _parse_mode(value: str) -> TimerMode:
    normalized = value.strip().upper().replace("-", " ").replace("_", " ")
    try:
        return TimerMode(normalized)
    except ValueError as e:
        valid = ", ".join(mode.value for mode in TimerMode)
        console.print(f"[red]Error:[/red] unknown mode '{value}'. Valid modes: {valid}")
        raise typer.Exit(2) from e


def _build_peers(
    scheduler: ManualScheduler,
    link: InMemoryLink,
    synthetic: bool,
    auto_connect: bool,
    seed: int | None,
) -> tuple[PrimaryPeer, CompanionPeer]:
    sim_settings = settings.model_copy(update={"synthetic_heart_rate": synthetic, "auto_connect": auto_connect})
    interval = sim_settings.tick_interval_seconds
    primary = PrimaryPeer(
        link.primary,
        scheduler,
        settings=sim_settings,
        walk=RandomWalkHeartRate(random.Random(seed)),
    )
    sensor = SyntheticSensorSession(scheduler, interval, walk=RandomWalkHeartRate(random.Random(seed)))
    companion = CompanionPeer(link.companion, scheduler, sensor=sensor)
    return primary, companion


def _display_seconds(state: TimerState) -> int | None:
    if isinstance(state, Countdown):
        return state.seconds
    if isinstance(state, Running | Complete):
        return state.display_seconds
    return None


@app.command()
def simulate(
    mode: str = typer.Option("EMOM", "--mode", "-m", help="EMOM, AMRAP or FOR TIME"),
    minutes: int = typer.Option(2, "--minutes", min=1, help="Workout length (time cap for FOR TIME)"),
    interval: int = typer.Option(1, "--interval", min=1, help="EMOM interval in minutes"),
    exercises: str = typer.Option("", "--exercises", "-e", help="Comma-separated exercise list"),
    drop_at: float | None = typer.Option(None, "--drop-at", help="Seconds after start when the companion becomes unreachable"),
    restore_at: float | None = typer.Option(None, "--restore-at", help="Seconds after start when reachability returns"),
    synthetic: bool = typer.Option(False, "--synthetic/--no-synthetic", help="Use synthetic heart rate on the primary"),
    auto_connect: bool = typer.Option(True, "--auto-connect/--no-auto-connect", help="Start heart-rate collection on connect"),
    every: int = typer.Option(10, "--every", min=1, help="Print a row every N ticks"),
    seed: int | None = typer.Option(None, "--seed", help="Seed for the synthetic heart-rate walk"),
) -> None:
    """Run a workout on the primary and show what the companion sees."""
    timer_mode = _parse_mode(mode)
    scheduler = ManualScheduler()
    link = InMemoryLink(scheduler)
    primary, companion = _build_peers(scheduler, link, synthetic, auto_connect, seed)
    primary.start()
    companion.start()
    scheduler.run_ready()

    timer = primary.create_timer(timer_mode, minutes, interval_minutes=interval, exercises=parse_exercises(exercises))
    tick = primary.settings.tick_interval_seconds
    total_ticks = primary.settings.countdown_seconds + minutes * 60 + 2
    logger.info(f"Simulating {timer_mode} for {minutes} min ({total_ticks} ticks)")

    table = Table(title=f"{timer_mode} {minutes} min", show_lines=False)
    table.add_column("t", justify="right")
    table.add_column("link")
    table.add_column("primary")
    table.add_column("companion")
    table.add_column("bpm", justify="right")

    timer.start()
    scheduler.run_ready()
    last_phase = None
    for step in range(1, total_ticks + 1):
        elapsed = step * tick
        if drop_at is not None and elapsed == drop_at:
            link.set_reachable(False)
        if restore_at is not None and elapsed == restore_at:
            link.set_reachable(True)
        scheduler.advance(tick)

        phase = timer.state.phase
        if step % every and phase == last_phase and elapsed not in (drop_at, restore_at):
            continue
        last_phase = phase
        remote = companion.receiver.remote_state
        remote_view = "-"
        if remote is not None:
            remote_view = f"{remote.phase} {format_time(companion.receiver.display_seconds() or 0)}"
            if remote.exercise:
                remote_view += f" {remote.exercise}"
        primary_view = str(phase)
        display = _display_seconds(timer.state)
        if display is not None:
            primary_view += f" {format_time(display)}"
        average = primary.heart_rate.accumulator.average_bpm
        table.add_row(
            f"{elapsed:.0f}",
            "up" if link.can_deliver() else "down",
            primary_view,
            remote_view,
            "-" if average is None else str(average),
        )

    console.print(table)
    metrics = primary.heart_rate.accumulator
    summary = (
        f"Samples: {metrics.sample_count}\n"
        f"Average bpm: {metrics.average_bpm if metrics.average_bpm is not None else '-'}\n"
        f"Companion following: {companion.receiver.is_following}"
    )
    console.print(Panel(Text(summary), title="Result", border_style="green"))


@app.command()
def ping(
    reachable: bool = typer.Option(True, "--reachable/--unreachable", help="Whether the companion is reachable"),
    drop_pongs: bool = typer.Option(False, "--drop-pongs", help="Companion receives pings but never answers"),
    timeout: float | None = typer.Option(None, "--timeout", help="Probe timeout in seconds"),
    latency: float = typer.Option(0.5, "--latency", min=0.0, help="Simulated one-way latency in seconds"),
) -> None:
    """Run one liveness probe against a simulated companion."""
    scheduler = ManualScheduler()
    link = InMemoryLink(scheduler, reachable=reachable, latency=latency)
    ping_settings = settings if timeout is None else settings.model_copy(update={"ping_timeout_seconds": timeout})
    primary = PrimaryPeer(link.primary, scheduler, settings=ping_settings)
    companion = CompanionPeer(link.companion, scheduler)
    companion.responder.muted = drop_pongs
    companion.start()
    scheduler.run_ready()

    probe_id = primary.ping()
    scheduler.advance(ping_settings.ping_timeout_seconds + 1)
    report = primary.prober.report

    succeeded = report.state is ProbeState.SUCCEEDED
    elapsed = report.reported_at or 0.0
    lines = [f"Probe: {probe_id or '-'}", f"State: {report.state}"]
    if report.reason is not None:
        lines.append(f"Reason: {report.reason}")
    lines.append(f"Reported at: t={elapsed:.1f}s")
    console.print(
        Panel(
            Text("Companion is alive" if succeeded else "Companion did not answer", style="bold green" if succeeded else "bold red"),
            subtitle=" | ".join(lines),
            border_style="green" if succeeded else "red",
        )
    )
    if not succeeded:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
