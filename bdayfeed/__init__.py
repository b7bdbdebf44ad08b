"""
Birthday Feed Package
CardDAV birthdays served as a subscribable iCalendar feed
"""

__version__ = "1.0.0"
__description__ = "Serves CardDAV contact birthdays as a yearly recurring iCalendar feed"

from bdayfeed.birthday import Birthday, parse_birthday_vcard, parse_birthdays
from bdayfeed.ics import generate_birthday_ics
from bdayfeed.cardav_client import CardDAVClient, CardDAVError
from bdayfeed.config import (AddressBook, ConfigError, ServerConfig, setup_logging,
                             load_address_books, get_server_config, validate_config)

__all__ = [
    'Birthday',
    'parse_birthday_vcard',
    'parse_birthdays',
    'generate_birthday_ics',
    'CardDAVClient',
    'CardDAVError',
    'AddressBook',
    'ConfigError',
    'ServerConfig',
    'setup_logging',
    'load_address_books',
    'get_server_config',
    'validate_config'
]
