"""
Notifiers

A notifier takes (title, body, fire_at) and makes sure an alert shows up at
fire_at. It knows nothing about reminders beyond that triple.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional, Set

from loguru import logger
from plyer import notification
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel


class Notifier(ABC):
    """Notifier base class"""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name"""
        pass

    @abstractmethod
    def notify(self, title: str, body: str, fire_at: datetime) -> None:
        """Schedule one alert; fire-and-forget

        Args:
            title: alert title
            body: alert text
            fire_at: when to show it (local time)
        """
        pass

    def cancel_all(self) -> int:
        """Drop alerts that have not fired yet

        Returns:
            number of cancelled alerts
        """
        return 0


class ScheduledNotifier(Notifier):
    """Arms a one-shot event loop timer per notify() call

    Subclasses only implement ``deliver``. Backends whose delivery blocks set
    ``blocking = True`` and are delivered on the loop's default executor.
    """

    blocking = False

    def __init__(self, loop: asyncio.AbstractEventLoop = None,
                 clock: Callable[[], datetime] = datetime.now):
        """
        Args:
            loop: event loop for the timers (defaults to the running loop)
            clock: returns the current local time
        """
        self._loop = loop
        self._clock = clock
        self._handles: Set[asyncio.TimerHandle] = set()

    @classmethod
    def from_config(cls, config, loop: asyncio.AbstractEventLoop = None) -> "ScheduledNotifier":
        """Build from a NotifierConfig"""
        return cls(loop=loop)

    @property
    def pending(self) -> int:
        """Alerts armed but not yet fired"""
        return len(self._handles)

    def notify(self, title: str, body: str, fire_at: datetime) -> None:
        loop = self._loop or asyncio.get_running_loop()
        delay = max(0.0, (fire_at - self._clock()).total_seconds())

        handle: Optional[asyncio.TimerHandle] = None

        def fire():
            self._handles.discard(handle)
            if self.blocking:
                loop.run_in_executor(None, self._deliver, title, body)
            else:
                self._deliver(title, body)

        handle = loop.call_later(delay, fire)
        self._handles.add(handle)
        logger.info(f"Notification scheduled for: {body} at {fire_at}")

    def _deliver(self, title: str, body: str):
        try:
            self.deliver(title, body)
            logger.info(f"Notification delivered: {body}")
        except Exception as e:
            logger.error(f"Failed to deliver notification '{body}' via {self.name}: {e}")

    @abstractmethod
    def deliver(self, title: str, body: str) -> None:
        """Show the alert now"""
        pass

    def cancel_all(self) -> int:
        count = len(self._handles)
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()
        if count:
            logger.info(f"Cancelled {count} pending notifications")
        return count


class ConsoleNotifier(ScheduledNotifier):
    """Prints alerts to the terminal"""

    def __init__(self, console: Console = None, bell: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.console = console or Console()
        self.bell = bell

    @property
    def name(self) -> str:
        return "console"

    def deliver(self, title: str, body: str) -> None:
        if self.bell:
            self.console.bell()
        self.console.print(Panel.fit(f"🔔 {escape(body)}", title=escape(title),
                                     border_style="yellow"))


class DesktopNotifier(ScheduledNotifier):
    """Native desktop alerts through plyer"""

    # plyer talks to dbus / the notification center synchronously
    blocking = True

    def __init__(self, app_name: str = "Remind me At", timeout: int = 10,
                 app_icon: str = None, **kwargs):
        super().__init__(**kwargs)
        self.app_name = app_name
        self.timeout = timeout
        self.app_icon = app_icon

    @classmethod
    def from_config(cls, config, loop: asyncio.AbstractEventLoop = None) -> "DesktopNotifier":
        return cls(
            app_name=config.app_name,
            timeout=config.timeout,
            app_icon=config.app_icon,
            loop=loop,
        )

    @property
    def name(self) -> str:
        return "desktop"

    def deliver(self, title: str, body: str) -> None:
        notification.notify(
            title=title,
            message=body,
            app_name=self.app_name,
            app_icon=self.app_icon or "",
            timeout=self.timeout,
        )


NOTIFIER_BACKENDS = {
    "console": ConsoleNotifier,
    "desktop": DesktopNotifier,
}


def create_notifier(config, loop: asyncio.AbstractEventLoop = None) -> Notifier:
    """Build the notifier selected by a NotifierConfig

    Args:
        config: NotifierConfig
        loop: event loop for the timers

    Returns:
        notifier instance
    """
    backend = NOTIFIER_BACKENDS.get(config.backend)
    if backend is None:
        raise ValueError(
            f"Unknown notifier backend: {config.backend}. "
            f"Must be one of {sorted(NOTIFIER_BACKENDS)}"
        )
    return backend.from_config(config, loop=loop)
