"""
Notifier tests
"""

import asyncio
import io
import threading
from datetime import datetime, timedelta
from unittest.mock import Mock, patch

import pytest
from rich.console import Console

from remind_at.config import NotifierConfig
from remind_at.notifier import (
    ConsoleNotifier,
    DesktopNotifier,
    NOTIFIER_BACKENDS,
    ScheduledNotifier,
    create_notifier,
)
from remind_at.scheduler import ReminderScheduler


class RecordingNotifier(ScheduledNotifier):
    """Collects delivered alerts"""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.delivered = []

    @property
    def name(self) -> str:
        return "recording"

    def deliver(self, title: str, body: str) -> None:
        self.delivered.append((title, body))


class TestScheduledNotifier:
    """One-shot timers on the event loop"""

    @pytest.mark.asyncio
    async def test_past_instant_fires_immediately(self):
        notifier = RecordingNotifier()
        notifier.notify("Reminder", "walk dog", datetime.now() - timedelta(minutes=1))

        await asyncio.sleep(0.01)

        assert notifier.delivered == [("Reminder", "walk dog")]
        assert notifier.pending == 0

    @pytest.mark.asyncio
    async def test_fires_after_delay(self):
        notifier = RecordingNotifier()
        notifier.notify("Reminder", "soon", datetime.now() + timedelta(seconds=0.05))

        assert notifier.pending == 1
        assert notifier.delivered == []

        await asyncio.sleep(0.2)

        assert notifier.delivered == [("Reminder", "soon")]
        assert notifier.pending == 0

    @pytest.mark.asyncio
    async def test_fires_once(self):
        notifier = RecordingNotifier()
        notifier.notify("Reminder", "once", datetime.now())

        await asyncio.sleep(0.05)

        assert notifier.delivered == [("Reminder", "once")]

    @pytest.mark.asyncio
    async def test_cancel_all(self):
        notifier = RecordingNotifier()
        notifier.notify("Reminder", "a", datetime.now() + timedelta(hours=1))
        notifier.notify("Reminder", "b", datetime.now() + timedelta(hours=2))

        assert notifier.cancel_all() == 2
        assert notifier.pending == 0
        await asyncio.sleep(0.01)
        assert notifier.delivered == []

    @pytest.mark.asyncio
    async def test_delivery_failure_is_logged_not_raised(self):
        notifier = RecordingNotifier()
        notifier.deliver = Mock(side_effect=OSError("no display"))

        notifier.notify("Reminder", "walk dog", datetime.now())
        await asyncio.sleep(0.01)

        notifier.deliver.assert_called_once_with("Reminder", "walk dog")

    def test_notify_without_loop_raises(self):
        notifier = RecordingNotifier()
        with pytest.raises(RuntimeError):
            notifier.notify("Reminder", "walk dog", datetime.now())

    def test_scheduler_survives_notifier_without_loop(self):
        scheduler = ReminderScheduler(notifier=RecordingNotifier())
        reminder = scheduler.add_reminder("walk dog", datetime.now() + timedelta(minutes=5))

        assert scheduler.list_reminders() == [reminder]

    @pytest.mark.asyncio
    async def test_explicit_loop(self):
        loop = asyncio.get_running_loop()
        notifier = RecordingNotifier(loop=loop)
        notifier.notify("Reminder", "walk dog", datetime.now())

        await asyncio.sleep(0.01)

        assert notifier.delivered == [("Reminder", "walk dog")]


class TestConsoleNotifier:
    """Terminal alerts"""

    def test_deliver_prints_panel(self):
        output = io.StringIO()
        notifier = ConsoleNotifier(console=Console(file=output, width=60), bell=False)

        notifier.deliver("Reminder", "walk dog")

        text = output.getvalue()
        assert "walk dog" in text
        assert "Reminder" in text

    def test_bracketed_body_printed_verbatim(self):
        output = io.StringIO()
        notifier = ConsoleNotifier(console=Console(file=output, width=60), bell=False)

        notifier.deliver("Reminder", "fix [/] bug")

        assert "fix [/] bug" in output.getvalue()

    def test_name(self):
        assert ConsoleNotifier(console=Console(file=io.StringIO())).name == "console"


async def wait_for(predicate, timeout: float = 1.0):
    """Poll until predicate() is true or timeout passes"""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate() and asyncio.get_running_loop().time() < deadline:
        await asyncio.sleep(0.01)


class TestDesktopNotifier:
    """plyer alerts"""

    def test_deliver_calls_plyer(self):
        notifier = DesktopNotifier(app_name="Remind me At", timeout=7)

        with patch("remind_at.notifier.notification") as mock_notification:
            notifier.deliver("Reminder", "walk dog")

        mock_notification.notify.assert_called_once_with(
            title="Reminder",
            message="walk dog",
            app_name="Remind me At",
            app_icon="",
            timeout=7,
        )

    def test_deliver_with_icon(self):
        notifier = DesktopNotifier(app_icon="/opt/remind-at/logo.png")

        with patch("remind_at.notifier.notification") as mock_notification:
            notifier.deliver("Reminder", "walk dog")

        assert mock_notification.notify.call_args.kwargs["app_icon"] == "/opt/remind-at/logo.png"

    @pytest.mark.asyncio
    async def test_delivered_off_the_event_loop_thread(self):
        notifier = DesktopNotifier()
        delivered_on = []

        with patch("remind_at.notifier.notification") as mock_notification:
            mock_notification.notify.side_effect = lambda **kwargs: delivered_on.append(
                threading.get_ident()
            )
            notifier.notify("Reminder", "walk dog", datetime.now())
            await wait_for(lambda: delivered_on)

        assert len(delivered_on) == 1
        assert delivered_on[0] != threading.get_ident()

    @pytest.mark.asyncio
    async def test_plyer_failure_is_isolated(self):
        notifier = DesktopNotifier()

        with patch("remind_at.notifier.notification") as mock_notification:
            mock_notification.notify.side_effect = NotImplementedError("no backend")
            notifier.notify("Reminder", "walk dog", datetime.now())
            await wait_for(lambda: mock_notification.notify.called)
            await asyncio.sleep(0.01)

        mock_notification.notify.assert_called_once()
        assert notifier.pending == 0


class TestCreateNotifier:
    """Backend selection"""

    def test_desktop(self):
        notifier = create_notifier(NotifierConfig(backend="desktop", app_name="X", timeout=3))
        assert isinstance(notifier, DesktopNotifier)
        assert notifier.app_name == "X"
        assert notifier.timeout == 3

    def test_console(self):
        notifier = create_notifier(NotifierConfig(backend="console"))
        assert isinstance(notifier, ConsoleNotifier)

    def test_unknown_backend(self):
        config = Mock(backend="pager")
        with pytest.raises(ValueError):
            create_notifier(config)

    def test_desktop_icon_from_config(self):
        notifier = create_notifier(NotifierConfig(app_icon="logo.png"))
        assert notifier.app_icon == "logo.png"

    def test_backend_looked_up_in_registry(self):
        with patch.dict(NOTIFIER_BACKENDS, {"recording": RecordingNotifier}):
            notifier = create_notifier(Mock(backend="recording"))

        assert isinstance(notifier, RecordingNotifier)
