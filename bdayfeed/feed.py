"""
Fetch-parse-serialize pipeline for one address book
"""

import logging
from datetime import date
from typing import Optional

from bdayfeed.cardav_client import CardDAVClient
from bdayfeed.config import AddressBook, DEFAULT_REQUEST_TIMEOUT
from bdayfeed.ics import generate_birthday_ics

logger = logging.getLogger(__name__)


def get_birthdays_and_generate_ics(book: AddressBook, today: Optional[date] = None,
                                   timeout: float = DEFAULT_REQUEST_TIMEOUT) -> str:
    """Build the birthday calendar for an address book from a fresh fetch"""
    if today is None:
        today = date.today()

    client = CardDAVClient(book.url, book.username, book.password, timeout=timeout)
    birthdays = client.get_birthdays()
    logger.info(f"Generating feed for '{book.name}' with {len(birthdays)} birthdays")
    return generate_birthday_ics(birthdays, today)
