"""Full-screen countdown display for timing an agenda item."""

import time
from collections.abc import Callable
from datetime import datetime

from rich.align import Align
from rich.console import Console, Group
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from speechtimer_cli.models.agenda import CompletionRecord
from speechtimer_cli.models.timer.coordinator import TimerCoordinator
from speechtimer_cli.models.timer.engine import PhaseChanged, TimerInstance
from speechtimer_cli.models.timer.notifier import PhaseCue
from speechtimer_cli.models.timer.personal import PersonalSubTimer
from speechtimer_cli.utils.duration import format_clock

PHASE_COLORS = {
    "normal": "cyan",
    "green": "green",
    "yellow": "yellow",
    "red": "red",
    "white": "white",
}


def _now() -> datetime:
    return datetime.now().astimezone()


class TimerDisplay:
    """Manages the fullscreen timer display."""

    def __init__(self, console: Console | None = None, compact: bool = False):
        self.console = console or Console()
        self.compact = compact
        self.message = ""

    def show_cue(self, cue: PhaseCue, event: PhaseChanged) -> None:
        """Cue sink: ring the bell and flash the cue in the header."""
        self.console.bell()
        self.message = cue.message

    def create_layout(
        self,
        timer: TimerInstance,
        personal: list[PersonalSubTimer] | None = None,
    ) -> Layout:
        """Create the timer layout with all components."""
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=3),
        )

        phase = timer.phase
        color = PHASE_COLORS[phase]
        if timer.status == "paused":
            title = "PAUSED"
        elif timer.status == "stopped":
            title = "STOPPED"
        elif timer.status == "not_started":
            title = "READY"
        else:
            title = phase.upper() if phase != "normal" else "RUNNING"
        if self.message:
            title = f"{title}  ·  {self.message}"

        header_text = Text(title, style=f"bold {color}", justify="center")
        layout["header"].update(Align.center(header_text, vertical="middle"))

        body = self._create_body_content(timer, personal)
        layout["body"].update(Align.center(body, vertical="middle"))

        footer = self._create_footer_text(timer.status, personal is not None)
        layout["footer"].update(Align.center(footer, vertical="middle"))
        return layout

    def _create_body_content(
        self, timer: TimerInstance, personal: list[PersonalSubTimer] | None
    ) -> Group:
        components = []

        if timer.title:
            components.append(Text(timer.title[:50], style="bold white", justify="center"))
            components.append(Text(timer.category.label, style="dim", justify="center"))
            components.append(Text(""))

        color = PHASE_COLORS[timer.phase]
        if timer.status == "paused":
            color = "yellow"
        components.append(
            Text(format_clock(timer.remaining), style=f"bold {color}", justify="center")
        )

        if timer.is_overtime:
            components.append(
                Text(
                    f"Overtime +{format_clock(timer.overtime_amount)}",
                    style="bold red",
                    justify="center",
                )
            )
        components.append(Text(""))

        target = timer.target_duration
        progress_pct = min(100, int(timer.elapsed / target * 100)) if target > 0 else 100
        bar_width = 40
        filled = int(bar_width * progress_pct / 100)
        progress_bar = "▓" * filled + "░" * (bar_width - filled)
        components.append(
            Text(f"{progress_bar}  {progress_pct}%", style="dim", justify="center")
        )

        if not self.compact:
            rules = timer.rules
            thresholds = f"green {rules.green}s  yellow {rules.yellow}s  red {rules.red}s"
            if rules.white is not None:
                thresholds += f"  white {rules.white}s"
            components.append(Text(thresholds, style="dim", justify="center"))

        if personal:
            components.append(Text(""))
            for sub in personal:
                marker = "▶" if sub.running else "·"
                components.append(
                    Text(
                        f"{marker} {sub.name}  {format_clock(sub.elapsed)}",
                        style="bold" if sub.running else "dim",
                        justify="center",
                    )
                )

        return Group(*components)

    def _create_footer_text(self, status: str, has_personal: bool) -> Text:
        """Create footer with keyboard hints."""
        if status == "running":
            hints = "space pause  •  s stop  •  r reset  •  q close"
        else:
            hints = "space start  •  s stop  •  r reset  •  q close"
        if has_personal:
            hints += "  •  a add speaker  •  n next speaker"
        return Text(hints, style="dim", justify="center")

    def run_timer(
        self,
        coordinator: TimerCoordinator,
        item_id: str,
        tick_interval: float = 1.0,
        keyboard=None,
        clock: Callable[[], datetime] = _now,
        poll_interval: float = 0.25,
    ) -> str:
        """
        Run the fullscreen timer for an open item.

        Returns how the run ended: 'stopped', 'closed' or 'interrupted'.
        """
        from .keyboard import KeyboardHandler

        timer = coordinator.get(item_id)
        if timer is None:
            raise ValueError(f"No open timer for item {item_id}")

        keyboard = keyboard or KeyboardHandler()
        last_tick = time.monotonic()

        try:
            with Live(
                self.create_layout(timer, coordinator.personal_timers(item_id)),
                console=self.console,
                refresh_per_second=4,
                screen=True,
            ) as live:
                while True:
                    key = keyboard.get_key()

                    if key in (" ", "p"):
                        self.message = ""
                        if timer.is_running:
                            coordinator.pause(item_id, clock())
                        else:
                            coordinator.start(item_id, clock())
                            last_tick = time.monotonic()
                    elif key == "s":
                        result = coordinator.stop(item_id, clock())
                        if result.accepted:
                            live.update(
                                self.create_layout(timer, coordinator.personal_timers(item_id))
                            )
                            return "stopped"
                    elif key == "r":
                        self.message = ""
                        coordinator.reset(item_id, clock())
                    elif key == "q":
                        coordinator.close(item_id, now=clock())
                        return "closed"
                    elif key == "a":
                        count = len(coordinator.personal_timers(item_id) or [])
                        coordinator.add_personal_timer(item_id, f"Speaker {count + 1}")
                    elif key == "n":
                        advance_personal_timers(coordinator, item_id)

                    delta = time.monotonic() - last_tick
                    if delta >= tick_interval:
                        seconds = int(delta)
                        last_tick += seconds
                        coordinator.tick(clock(), seconds)

                    live.update(self.create_layout(timer, coordinator.personal_timers(item_id)))
                    time.sleep(poll_interval)

        except KeyboardInterrupt:
            coordinator.close(item_id, now=clock())
            return "interrupted"
        finally:
            keyboard.stop()


def advance_personal_timers(coordinator: TimerCoordinator, item_id: str) -> PersonalSubTimer | None:
    """Stop the running speaker's sub-timer and start the next speaker's.

    With nothing running, the first sub-timer that has not been used starts.
    """
    timers = coordinator.personal_timers(item_id)
    if not timers:
        return None

    running = [index for index, sub in enumerate(timers) if sub.running]
    if running:
        current = running[0]
        for index in running:
            coordinator.toggle_personal_timer(item_id, timers[index].id)
        if current + 1 < len(timers):
            return coordinator.toggle_personal_timer(item_id, timers[current + 1].id)
        return None

    for sub in timers:
        if sub.elapsed == 0:
            return coordinator.toggle_personal_timer(item_id, sub.id)
    return None


def show_completion_message(
    record: CompletionRecord, title: str = "", console: Console | None = None
):
    """Show a summary after an item's timer is stopped."""
    console = console or Console()

    if record.is_overtime:
        verdict = f"[bold red]Overtime by {format_clock(record.overtime_amount)}[/bold red]"
        border = "red"
    else:
        verdict = "[bold green]Within time[/bold green]"
        border = "green"

    panel = Panel(
        f"""{verdict}

Item: {title or record.item_id}
Planned: {format_clock(record.planned_duration)}
Actual: {format_clock(record.actual_duration)}

Record saved.""",
        border_style=border,
        padding=(1, 2),
    )
    console.print(panel)


def show_closed_message(timer: TimerInstance, console: Console | None = None):
    """Show a message when the display is closed without stopping."""
    console = console or Console()

    panel = Panel(
        f"""[yellow]Timer closed[/yellow]

Item: {timer.title or timer.item_id}
Elapsed: {format_clock(timer.elapsed)}
Status: {timer.status}

Progress kept; run the timer again to continue.""",
        border_style="yellow",
        padding=(1, 2),
    )
    console.print(panel)
