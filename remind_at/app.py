"""
Terminal shell around the reminder engine

Owns the one scheduler instance for the process, feeds it input lines and
renders its countdown rows.
"""

import asyncio
import sys
import threading
from datetime import datetime
from typing import Callable, List, Optional, TextIO

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import Config
from .notifier import Notifier, create_notifier
from .parser import ReminderParseError, TimeParser
from .scheduler import Reminder, ReminderScheduler, ReminderView, format_countdown


QUIT_COMMANDS = {"quit", "exit", "q"}
LIST_COMMANDS = {"list", "ls"}


def render_table(views: List[ReminderView]) -> Table:
    """Countdown table for the given rows"""
    table = Table(title="Reminders", show_lines=False)
    table.add_column("Reminder", style="bold")
    table.add_column("Due in", justify="right", style="dim")
    for view in views:
        table.add_row(escape(view.label), view.remaining)
    return table


class RemindAtApp:
    """Interactive reminder shell"""

    def __init__(self, config: Config = None, console: Console = None,
                 notifier: Notifier = None,
                 clock: Callable[[], datetime] = datetime.now):
        """
        Args:
            config: configuration (defaults to Config.load())
            console: rich console for output
            notifier: notifier override (defaults to the configured backend)
            clock: returns the current local time
        """
        self.config = config or Config.load()
        self.console = console or Console()
        self._clock = clock
        self._notifier = notifier
        self._stop_reading = threading.Event()

        self.scheduler = ReminderScheduler(
            notifier=notifier,
            clock=clock,
            tick_interval=self.config.scheduler.tick_interval,
            notification_title=self.config.notifier.title,
        )

    def submit(self, text: str) -> Reminder:
        """Parse a reminder phrase and add it

        Raises:
            ReminderParseError: the phrase was rejected
        """
        parser = TimeParser(
            base_time=self._clock(),
            roll_past_to_tomorrow=self.config.parser.roll_past_to_tomorrow,
            split_on_last=self.config.parser.split_on_last,
        )
        label, due_at = parser.parse(text)
        return self.scheduler.add_reminder(label, due_at)

    def handle_line(self, line: str) -> bool:
        """Handle one input line

        Returns:
            False when the shell should exit
        """
        text = line.strip()
        if not text:
            return True

        command = text.lower()
        if command in QUIT_COMMANDS:
            return False

        if command in LIST_COMMANDS:
            views = self.scheduler.views()
            if views:
                self.console.print(render_table(views))
            else:
                self.console.print("[dim]No reminders[/dim]")
            return True

        try:
            reminder = self.submit(text)
        except ReminderParseError as e:
            logger.debug(f"Rejected input: {e}")
            self.console.print(f"[red]Could not parse reminder: {escape(e.reason)}[/red]")
            self.console.print("[dim]Try: buy milk at 5:30pm[/dim]")
            return True

        countdown = format_countdown(reminder.due_at, self._clock())
        self.console.print(
            f"[green]✓ {escape(reminder.text)}[/green] at "
            f"{reminder.due_at.strftime('%I:%M %p').lstrip('0')} "
            f"[dim](due in {countdown})[/dim]"
        )
        return True

    async def run(self, input_stream: TextIO = None):
        """Run until quit or end of input

        Args:
            input_stream: where lines come from (defaults to stdin)
        """
        loop = asyncio.get_running_loop()

        if self._notifier is None:
            self._notifier = create_notifier(self.config.notifier, loop=loop)
            self.scheduler.register_notifier(self._notifier)

        self._stop_reading.clear()
        lines: asyncio.Queue = asyncio.Queue()
        # daemon: a blocked stdin read must not hold up shutdown
        reader = threading.Thread(
            target=self._read_lines,
            args=(input_stream or sys.stdin, loop, lines),
            daemon=True,
        )

        self.scheduler.start()
        reader.start()
        logger.info(f"{self.config.name} started with {self._notifier.name} notifications")

        self.console.print("[bold]Remind me about x at y[/bold] "
                           "[dim](e.g. 'walk dog at 6:05pm', 'list', 'quit')[/dim]")
        try:
            while True:
                line = await lines.get()
                if line is None or not self.handle_line(line):
                    break
        finally:
            await self.shutdown()

    async def shutdown(self):
        """Stop ticking, stop reading input and drop alerts that have not fired"""
        self._stop_reading.set()
        await self.scheduler.stop()
        if self._notifier is not None:
            self._notifier.cancel_all()
        logger.info(f"{self.config.name} stopped")

    def _read_lines(self, stream: TextIO, loop: asyncio.AbstractEventLoop,
                    lines: "asyncio.Queue[Optional[str]]"):
        """Blocking reader; runs in its own daemon thread until input ends
        or the shell stops"""
        try:
            for line in stream:
                if not self._forward(loop, lines, line):
                    return
        except Exception as e:
            logger.error(f"Input reader error: {e}")
        self._forward(loop, lines, None)

    def _forward(self, loop: asyncio.AbstractEventLoop,
                 lines: "asyncio.Queue[Optional[str]]", line: Optional[str]) -> bool:
        """Hand a line to the loop; False once nobody is listening"""
        if self._stop_reading.is_set() or loop.is_closed():
            return False
        try:
            loop.call_soon_threadsafe(lines.put_nowait, line)
        except RuntimeError:
            # loop closed after the check
            return False
        return True
