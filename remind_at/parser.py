"""
Reminder phrase parsing

Turns "<label> at <h:mm><am|pm>" into a label and a local datetime.
"""

import re
from datetime import datetime, time, timedelta
from typing import Tuple

from loguru import logger


class ReminderParseError(ValueError):
    """Base class for rejected reminder phrases"""

    def __init__(self, text: str, reason: str):
        self.text = text
        self.reason = reason
        super().__init__(f"{reason}: '{text}'")


class SeparatorNotFound(ReminderParseError):
    """No usable ' at ' between a label and a time"""


class AmbiguousSeparator(ReminderParseError):
    """More than one ' at ' in the phrase"""


class MalformedTimeExpression(ReminderParseError):
    """The time part is not H:MMam / H:MMpm"""


class TimeParser:
    """Reminder phrase parser

    Only clock times of the form ``H:MMam`` / ``H:MMpm`` are understood. The
    result is always placed on the calendar day of ``base_time``.
    """

    SEPARATOR = " at "
    SEPARATOR_PATTERN = re.compile(re.escape(SEPARATOR), re.IGNORECASE)

    # after whitespace removal and uppercasing: 5:30PM, 05:30AM
    TIME_PATTERN = re.compile(r'^(\d{1,2}):(\d{2})(AM|PM)$')

    def __init__(self, base_time: datetime = None,
                 roll_past_to_tomorrow: bool = False,
                 split_on_last: bool = False):
        """
        Args:
            base_time: reference time (defaults to now)
            roll_past_to_tomorrow: move times already past today to tomorrow
            split_on_last: split on the last ' at ' instead of rejecting
                phrases that contain several
        """
        self.base_time = base_time or datetime.now()
        self.roll_past_to_tomorrow = roll_past_to_tomorrow
        self.split_on_last = split_on_last

    def parse(self, text: str) -> Tuple[str, datetime]:
        """Parse a reminder phrase

        Args:
            text: raw user input, e.g. "buy milk at 5:30pm"

        Returns:
            (label, due datetime)

        Raises:
            SeparatorNotFound: no ' at ', or an empty label/time around it
            AmbiguousSeparator: several ' at ' occurrences
            MalformedTimeExpression: the time part does not parse
        """
        label, time_expr = self._split(text)
        hour, minute = self._parse_clock(text, time_expr)

        due_at = datetime.combine(self.base_time.date(), time(hour, minute))
        if self.roll_past_to_tomorrow and due_at <= self.base_time:
            due_at += timedelta(days=1)

        logger.debug(f"Parsed '{text}' -> {label!r} at {due_at.isoformat()}")
        return label, due_at

    def _split(self, text: str) -> Tuple[str, str]:
        """Split into (label, time expression)"""
        stripped = (text or "").strip()
        matches = list(self.SEPARATOR_PATTERN.finditer(stripped))

        if not matches:
            raise SeparatorNotFound(text, "Expected '<label> at <time>'")

        if len(matches) > 1 and not self.split_on_last:
            raise AmbiguousSeparator(
                text, f"Found {len(matches)} occurrences of ' at '"
            )

        match = matches[-1]
        label = stripped[:match.start()].strip()
        time_expr = stripped[match.end():].strip()

        if not label or not time_expr:
            raise SeparatorNotFound(text, "Expected '<label> at <time>'")

        return label, time_expr

    def _parse_clock(self, text: str, time_expr: str) -> Tuple[int, int]:
        """Parse 'h:mm am/pm' into 24h (hour, minute)"""
        normalized = re.sub(r'\s+', '', time_expr).upper()
        match = self.TIME_PATTERN.match(normalized)
        if not match:
            raise MalformedTimeExpression(
                text, f"Cannot read time '{time_expr}', expected e.g. 5:30pm"
            )

        hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3)
        if not 1 <= hour <= 12 or minute > 59:
            raise MalformedTimeExpression(
                text, f"Time out of range: '{time_expr}'"
            )

        # 12:xxAM is just after midnight, 12:xxPM just after noon
        hour %= 12
        if meridiem == "PM":
            hour += 12

        return hour, minute


def parse_reminder(text: str, base_time: datetime = None,
                   roll_past_to_tomorrow: bool = False,
                   split_on_last: bool = False) -> Tuple[str, datetime]:
    """Shortcut for ``TimeParser(...).parse(text)``"""
    parser = TimeParser(
        base_time,
        roll_past_to_tomorrow=roll_past_to_tomorrow,
        split_on_last=split_on_last,
    )
    return parser.parse(text)
