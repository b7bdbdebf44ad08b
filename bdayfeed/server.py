"""
HTTP endpoint serving birthday calendars per address book
"""

import hmac
import time
import logging
from typing import Dict

from flask import Flask, Response, g, jsonify, request
from flask_compress import Compress

from bdayfeed import feed
from bdayfeed.cardav_client import CardDAVError
from bdayfeed.config import AddressBook, ConfigError, DEFAULT_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

CALENDAR_CONTENT_TYPE = 'text/calendar; charset=utf-8'
COMPRESS_MIMETYPES = ['text/calendar', 'text/plain', 'application/json']


def _error(message: str, status: int) -> Response:
    return Response(message + '\n', status=status, mimetype='text/plain')


def create_app(address_books: Dict[str, AddressBook], api_key: str,
               timeout: float = DEFAULT_REQUEST_TIMEOUT) -> Flask:
    """Create the feed application for a fixed set of address books"""
    if not api_key:
        raise ConfigError("an API key is required to serve birthday feeds")

    app = Flask(__name__)
    app.config['ADDRESS_BOOKS'] = dict(address_books)
    app.config['REQUEST_TIMEOUT'] = timeout
    app.config['COMPRESS_MIMETYPES'] = COMPRESS_MIMETYPES
    Compress(app)

    @app.before_request
    def _start_timer():
        g.request_started = time.monotonic()

    @app.after_request
    def _log_request(response):
        elapsed_ms = (time.monotonic() - g.get('request_started', time.monotonic())) * 1000
        logger.info(f"{request.method} {request.path} {response.status_code} {elapsed_ms:.1f}ms")
        return response

    @app.route('/healthz')
    def healthz():
        return jsonify(status='ok', address_books=len(app.config['ADDRESS_BOOKS']))

    @app.route('/<address_book>', methods=['GET', 'POST'])
    def birthdays(address_book):
        key = request.values.get('apiKey', '')
        if not hmac.compare_digest(key.encode('utf-8'), api_key.encode('utf-8')):
            logger.warning(f"Rejected request for '{address_book}': invalid api key")
            return _error('invalid api key', 401)

        book = app.config['ADDRESS_BOOKS'].get(address_book)
        if book is None:
            logger.warning(f"Address book '{address_book}' not found")
            return _error(f"address book {address_book} not found", 404)

        try:
            calendar = feed.get_birthdays_and_generate_ics(book, timeout=app.config['REQUEST_TIMEOUT'])
        except CardDAVError as e:
            logger.error(f"Failed to get birthdays for '{address_book}': {e}")
            return _error(f"failed to get birthdays: {e}", 502)

        response = Response(calendar, status=200, content_type=CALENDAR_CONTENT_TYPE)
        response.headers['Content-Disposition'] = f"filename={address_book}-birthdays.ics"
        return response

    return app
