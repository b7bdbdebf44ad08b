"""
Birthday extraction from raw vCard text
"""

import re
import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

TYPED_BDAY_MARKER = ';VALUE=date:'

# Tried in order, first match wins
DATE_FORMATS = [
    ('compact', re.compile(r'([0-9]{4})([0-9]{2})([0-9]{2})')),
    ('hyphenated', re.compile(r'([0-9]{4})-([0-9]{2})-([0-9]{2})')),
    ('slashed', re.compile(r'([0-9]{4})/([0-9]{2})/([0-9]{2})')),
]


@dataclass(frozen=True)
class Birthday:
    """A contact's birthday as shown in the feed"""
    uid: str
    full_name: str
    date: date


def parse_birthday_date(value: str) -> Optional[date]:
    """Parse a BDAY value, ignoring any time component after 'T'"""
    value = value.split('T')[0]

    for _, pattern in DATE_FORMATS:
        match = pattern.fullmatch(value)
        if not match:
            continue
        year, month, day = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return None


def _bday_value(line: str) -> str:
    """Extract the raw value of a BDAY line in either bare or typed form"""
    if TYPED_BDAY_MARKER in line:
        parts = line.split(TYPED_BDAY_MARKER)
        if len(parts) == 2:
            return parts[1]
        return ''
    if line.startswith('BDAY:'):
        return line[len('BDAY:'):]
    return ''


def parse_birthday_vcard(vcard: str) -> Optional[Birthday]:
    """
    Extract a birthday from a single vCard.

    Returns None unless the card has a parseable BDAY and either an FN or
    an N value. FN is preferred as the display name. Repeated properties
    are resolved by the last line seen.
    """
    name = ''
    full_name = ''
    uid = ''
    birthday_date = None

    for line in vcard.split('\n'):
        line = line.strip()

        if line.startswith('N:'):
            name = line[len('N:'):]

        if line.startswith('FN:'):
            full_name = line[len('FN:'):]

        if line.startswith('UID:'):
            uid = line[len('UID:'):]

        if line.startswith('BDAY'):
            bday_str = _bday_value(line)
            if not bday_str:
                continue

            parsed = parse_birthday_date(bday_str)
            if parsed is not None:
                birthday_date = parsed
            else:
                logger.warning(f"failed to parse birthday date: {bday_str}")

    if birthday_date is None or not (name or full_name):
        return None

    return Birthday(uid=uid, full_name=full_name or name, date=birthday_date)


def parse_birthdays(vcards: Iterable[str]) -> List[Birthday]:
    """Extract birthdays from a batch of vCards, keeping input order"""
    birthdays = []
    skipped = 0

    for vcard in vcards:
        birthday = parse_birthday_vcard(vcard)
        if birthday is None:
            skipped += 1
            continue
        birthdays.append(birthday)

    logger.debug(f"Extracted {len(birthdays)} birthdays, skipped {skipped} contacts")
    return birthdays
