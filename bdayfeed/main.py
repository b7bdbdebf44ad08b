#!/usr/bin/env python3
"""
CardDAV Birthday Feed
Main entry point with argument parsing
"""

import os
import sys
import logging
import argparse
from datetime import datetime

from bdayfeed import __version__
from bdayfeed.birthday import parse_birthdays
from bdayfeed.cardav_client import CardDAVClient, CardDAVError
from bdayfeed.config import (DEFAULT_REQUEST_TIMEOUT, ConfigError, get_server_config, load_address_books,
                             setup_logging, validate_config)
from bdayfeed.feed import get_birthdays_and_generate_ics
from bdayfeed.server import create_app

BANNER = """
╔══════════════════════════════════════════════════════════════╗
║                                                              ║
║              🎂 Birthday Feed Service 🎂                     ║
║          CardDAV birthdays as an iCalendar feed              ║
║                                                              ║
╚══════════════════════════════════════════════════════════════╝
"""


def print_banner():
    """Print the ASCII art banner"""
    print(BANNER)
    print(f"Version: {os.getenv('VERSION', __version__)}")
    print(f"Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("─" * 62)
    print()


def diagnose_cardav(address_books, name=None, timeout=DEFAULT_REQUEST_TIMEOUT):
    """Fetch every configured address book (or just one) and list its birthdays"""
    if name is not None:
        if name not in address_books:
            print(f"✗ Address book '{name}' is not configured")
            return False
        books = [address_books[name]]
    else:
        books = list(address_books.values())

    ok = True
    for book in books:
        print(f"Testing address book '{book.name}':")
        print(f"URL: {book.url}")
        print(f"Username: {book.username}")
        print("-" * 60)

        try:
            client = CardDAVClient(book.url, book.username, book.password, timeout=timeout)
            vcards = client.get_vcards()
            print(f"✓ Fetched {len(vcards)} contacts")
            birthdays = parse_birthdays(vcards)
            print(f"✓ Contacts with birthdays: {len(birthdays)}")
            for birthday in birthdays:
                print(f"  - {birthday.full_name} ({birthday.date.isoformat()})")
        except CardDAVError as e:
            print(f"✗ Error: {e}")
            ok = False
        print()

    return ok


def health_check(config):
    """Health check function"""
    logger = logging.getLogger(__name__)

    if not validate_config(config):
        return False

    try:
        load_address_books(config.address_books_file)
    except ConfigError as e:
        logger.error(f"Health check failed: {e}")
        return False

    logger.info("Health check passed")
    return True


def print_feed(address_books, name, timeout):
    """Write the calendar for one address book to stdout"""
    logger = logging.getLogger(__name__)

    book = address_books.get(name)
    if book is None:
        logger.error(f"Address book {name} not found")
        return False

    try:
        calendar = get_birthdays_and_generate_ics(book, timeout=timeout)
    except CardDAVError as e:
        logger.error(f"Failed to get birthdays: {e}")
        return False

    sys.stdout.write(calendar)
    sys.stdout.flush()
    return True


def build_parser():
    parser = argparse.ArgumentParser(description='Serve CardDAV birthdays as an iCalendar feed')
    parser.add_argument('--addr', help='Listen address as host:port (env: BDAYFEED_ADDR)')
    parser.add_argument('--address-books-file', dest='address_books_file',
                        help='JSON file describing the address books (env: BDAYFEED_ADDRESS_BOOKS_FILE)')
    parser.add_argument('--api-key', dest='api_key', help='Key callers must pass as apiKey (env: BDAYFEED_API_KEY)')
    parser.add_argument('--request-timeout', dest='request_timeout', type=float,
                        help='CardDAV request timeout in seconds (env: BDAYFEED_REQUEST_TIMEOUT)')
    parser.add_argument('--diagnose', nargs='?', const='', default=None, metavar='NAME',
                        help='Fetch all address books (or NAME) and list birthdays')
    parser.add_argument('--health-check', action='store_true', help='Run health check')
    parser.add_argument('--once', metavar='NAME', help='Print the feed for NAME and exit')
    parser.add_argument('--no-banner', action='store_true', help='Skip ASCII art banner')
    return parser


def main(argv=None):
    """Main function with argument parsing"""
    args = build_parser().parse_args(argv)

    setup_logging()
    logger = logging.getLogger(__name__)

    config = get_server_config({
        'addr': args.addr,
        'address_books_file': args.address_books_file,
        'api_key': args.api_key,
        'request_timeout': args.request_timeout
    })

    if args.health_check:
        sys.exit(0 if health_check(config) else 1)

    try:
        address_books = load_address_books(config.address_books_file)
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)

    if args.diagnose is not None:
        sys.exit(0 if diagnose_cardav(address_books, args.diagnose or None, config.request_timeout) else 1)

    if args.once:
        sys.exit(0 if print_feed(address_books, args.once, config.request_timeout) else 1)

    if not args.no_banner:
        print_banner()

    if not validate_config(config):
        sys.exit(1)

    app = create_app(address_books, config.api_key, timeout=config.request_timeout)
    logger.info(f"Starting carddav birthdays server, listening on {config.addr}")
    try:
        app.run(host=config.host, port=config.port)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    sys.exit(0)


if __name__ == "__main__":
    main()
