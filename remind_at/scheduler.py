"""
Reminder scheduler

Keeps the active reminders, recomputes countdowns on every tick and
drops reminders once they are due.
"""

import asyncio
import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from .notifier import Notifier


NOW_DISPLAY = "Now"


@dataclass(frozen=True)
class Reminder:
    """A label with the moment it is due"""
    text: str
    due_at: datetime
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["due_at"] = self.due_at.isoformat()
        data["created_at"] = self.created_at.isoformat()
        return data


@dataclass(frozen=True)
class ReminderView:
    """One renderer row"""
    id: str
    label: str
    remaining: str


TickListener = Callable[[List[ReminderView]], Any]


def format_countdown(due_at: datetime, now: datetime) -> str:
    """Format the time left as HH:MM:SS, or "Now" once due

    Args:
        due_at: reminder due time
        now: current time

    Returns:
        countdown string
    """
    remaining = (due_at - now).total_seconds()
    if remaining <= 0:
        return NOW_DISPLAY

    total = int(remaining)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


class ReminderScheduler:
    """Active reminder set plus the periodic tick"""

    def __init__(self, notifier: Notifier = None,
                 clock: Callable[[], datetime] = datetime.now,
                 tick_interval: float = 1.0,
                 notification_title: str = "Reminder"):
        """
        Args:
            notifier: receives one notify() per added reminder
            clock: returns the current local time
            tick_interval: seconds between ticks when started
            notification_title: title passed to the notifier
        """
        self._notifier = notifier
        self._clock = clock
        self.tick_interval = tick_interval
        self.notification_title = notification_title

        self._reminders: List[Reminder] = []
        self._views: List[ReminderView] = []
        self._listeners: List[TickListener] = []
        self._lock = threading.RLock()

        self._running = False
        self._task: Optional[asyncio.Task] = None

    def register_notifier(self, notifier: Notifier):
        """Set the notifier used by subsequent add_reminder() calls"""
        self._notifier = notifier

    def add_tick_listener(self, listener: TickListener):
        """Call ``listener(rows)`` after every tick"""
        self._listeners.append(listener)

    def add_reminder(self, label: str, due_at: datetime) -> Reminder:
        """Add a reminder and schedule its notification

        Args:
            label: reminder text
            due_at: when the reminder is due

        Returns:
            the created reminder
        """
        reminder = Reminder(text=label, due_at=due_at, created_at=self._clock())

        with self._lock:
            self._reminders.append(reminder)

        logger.info(f"Reminder added: {reminder.id} at {due_at}")
        self._dispatch(reminder)
        return reminder

    def _dispatch(self, reminder: Reminder):
        """Hand the reminder to the notifier exactly once"""
        if self._notifier is None:
            logger.warning(f"No notifier registered, {reminder.id} will not alert")
            return

        try:
            self._notifier.notify(self.notification_title, reminder.text, reminder.due_at)
        except Exception as e:
            logger.error(f"Failed to schedule notification for {reminder.id}: {e}")

    def tick(self, now: datetime = None) -> List[ReminderView]:
        """Recompute countdowns, then drop every reminder that is due

        Rows are computed before the sweep, so a reminder reaching its due
        time is reported once as "Now" and is gone afterwards.

        Args:
            now: current time (defaults to the clock)

        Returns:
            rows for this tick, in insertion order
        """
        now = now or self._clock()

        with self._lock:
            views = [
                ReminderView(r.id, r.text, format_countdown(r.due_at, now))
                for r in self._reminders
            ]
            expired = [r for r in self._reminders if r.due_at <= now]
            if expired:
                self._reminders = [r for r in self._reminders if r.due_at > now]
            self._views = views

        for reminder in expired:
            logger.info(f"Reminder expired: {reminder.id} - {reminder.text}")

        for listener in list(self._listeners):
            try:
                listener(views)
            except Exception as e:
                logger.error(f"Tick listener error: {e}")

        return views

    def list_reminders(self) -> List[Reminder]:
        """Active reminders in the order they were added"""
        with self._lock:
            return list(self._reminders)

    def views(self) -> List[ReminderView]:
        """Rows computed by the most recent tick"""
        with self._lock:
            return list(self._views)

    def __len__(self) -> int:
        with self._lock:
            return len(self._reminders)

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        """Start ticking on the running event loop"""
        if not self._running:
            self._running = True
            self._task = asyncio.create_task(self._tick_loop())
            logger.info("Reminder scheduler started")

    async def stop(self):
        """Stop ticking; an in-progress tick always completes"""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Reminder scheduler stopped")

    async def _tick_loop(self):
        """Tick loop"""
        while self._running:
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Scheduler error: {e}")
            await asyncio.sleep(self.tick_interval)
