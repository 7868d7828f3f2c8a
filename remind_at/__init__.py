"""
remind-at - "remind me about x at y"

Parses a reminder phrase, counts down to it and alerts once when it is due
"""

__version__ = "0.1.0"

from .config import Config
from .notifier import ConsoleNotifier, DesktopNotifier, Notifier
from .parser import (
    AmbiguousSeparator,
    MalformedTimeExpression,
    ReminderParseError,
    SeparatorNotFound,
    TimeParser,
    parse_reminder,
)
from .scheduler import Reminder, ReminderScheduler, ReminderView, format_countdown

__all__ = [
    "Config",
    "Notifier",
    "ConsoleNotifier",
    "DesktopNotifier",
    "TimeParser",
    "parse_reminder",
    "ReminderParseError",
    "SeparatorNotFound",
    "AmbiguousSeparator",
    "MalformedTimeExpression",
    "Reminder",
    "ReminderScheduler",
    "ReminderView",
    "format_countdown",
]
