"""Rich console meter for live loudness levels."""

import time
import logging
from typing import Optional

from pubsub import pub
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..levels.bands import LoudnessBand, classify
from ..models.events import LevelEvent, SessionEvent
from ..models.levels import StopResult

logger = logging.getLogger(__name__)


BAND_STYLES = {
    LoudnessBand.QUIET: "yellow",
    LoudnessBand.NORMAL: "green",
    LoudnessBand.LOUD: "red",
}


def render_meter(event: LevelEvent, max_display: float = 100.0, width: int = 40) -> Text:
    """Build a one-line meter: bar for the current level plus numeric readouts."""
    snapshot = event.snapshot
    band = LoudnessBand(event.band)
    filled = int(round(min(max(snapshot.current_level / max_display, 0.0), 1.0) * width))

    text = Text()
    text.append("🔴 " if event.is_active else "⏹️  ")
    text.append("█" * filled, style=BAND_STYLES[band])
    text.append("░" * (width - filled), style="dim")
    text.append(f" {snapshot.current_level:5.1f} dB", style="bold")
    text.append(f" | avg {snapshot.running_average:5.1f} dB")
    text.append(f" | speech {snapshot.active_duration_seconds:5.1f}s")
    text.append(f" | {snapshot.elapsed_seconds:5.1f}s")
    text.append(f" [{band.value.upper()}]", style=BAND_STYLES[band])
    return text


def render_summary(result: StopResult, quiet_max: float = 25.0, normal_max: float = 50.0) -> Panel:
    """Build the end-of-session summary panel."""
    band = classify(result.final_average, quiet_max, normal_max)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    table.add_row("Average level", Text(f"{result.final_average:.1f} dB", style=BAND_STYLES[band]))
    table.add_row("Loudness", Text(band.value.capitalize(), style=BAND_STYLES[band]))
    table.add_row("Speech time", f"{result.active_duration_seconds:.2f}s")
    table.add_row("Session length", f"{result.elapsed_seconds:.2f}s")

    return Panel(table, title="Session summary", border_style="blue")


class LevelDisplay:
    """Subscribes to level updates and redraws a live console meter."""

    def __init__(
        self,
        level_topic: str = "level.update",
        session_topic: str = "level.session",
        console: Optional[Console] = None,
        refresh_interval_seconds: float = 0.1,
        max_display: float = 100.0,
        quiet_max: float = 25.0,
        normal_max: float = 50.0,
    ):
        self.console = console or Console()
        self.level_topic = level_topic
        self.session_topic = session_topic
        self.refresh_interval_seconds = refresh_interval_seconds
        self.max_display = max_display
        self.quiet_max = quiet_max
        self.normal_max = normal_max

        self.live: Optional[Live] = None
        self.last_refresh: Optional[float] = None

        pub.subscribe(self._on_level, level_topic)
        pub.subscribe(self._on_session, session_topic)

    def start(self) -> None:
        self.live = Live(Text("Waiting for audio..."), console=self.console, auto_refresh=False)
        self.live.start()

    def stop(self) -> None:
        if self.live:
            self.live.stop()
            self.live = None
        for listener, topic in ((self._on_level, self.level_topic),
                                (self._on_session, self.session_topic)):
            if pub.isSubscribed(listener, topic):
                pub.unsubscribe(listener, topic)

    def _on_level(self, event: LevelEvent) -> None:
        if not self.live:
            return
        now = time.monotonic()
        if self.last_refresh is not None and now - self.last_refresh < self.refresh_interval_seconds:
            return
        self.last_refresh = now
        self.live.update(render_meter(event, self.max_display), refresh=True)

    def _on_session(self, event: SessionEvent) -> None:
        if event.event_type == "stopped" and event.result is not None:
            self.console.print(render_summary(event.result, self.quiet_max, self.normal_max))
        elif event.event_type == "cleared":
            logger.debug("Level history cleared")
