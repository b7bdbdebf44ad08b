"""
iCalendar feed generation for birthdays
"""

from datetime import date
from typing import List, Sequence

from bdayfeed.birthday import Birthday

CRLF = '\r\n'

CALENDAR_HEADER = [
    'BEGIN:VCALENDAR',
    'VERSION:2.0',
    'PRODID:-//CardDAV Birthdays//EN',
    'CALSCALE:GREGORIAN',
]
CALENDAR_FOOTER = ['END:VCALENDAR']


def birthday_event_uid(birthday: Birthday) -> str:
    return f"{birthday.full_name.replace(' ', '')}-birthday-{birthday.date.year}"


def birthday_event_lines(birthday: Birthday) -> List[str]:
    """Lines of a yearly recurring all-day VEVENT for one birthday"""
    # Text values are written unescaped
    return [
        'BEGIN:VEVENT',
        f"UID:{birthday_event_uid(birthday)}",
        f"DTSTART;VALUE=DATE:{birthday.date:%Y%m%d}",
        'RRULE:FREQ=YEARLY',
        f"SUMMARY:{birthday.full_name}'s Birthday",
        f"DESCRIPTION:{birthday.full_name} born on {birthday.date.isoformat()}",
        'TRANSP:TRANSPARENT',
        'END:VEVENT',
    ]


def generate_birthday_ics(birthdays: Sequence[Birthday], today: date) -> str:
    """
    Render birthdays as an iCalendar document.

    Events keep the order of ``birthdays``. ``today`` is accepted for
    callers that pass the request date but does not affect the output.
    """
    lines = list(CALENDAR_HEADER)
    for birthday in birthdays:
        lines.extend(birthday_event_lines(birthday))
    lines.extend(CALENDAR_FOOTER)

    return ''.join(line + CRLF for line in lines)
