"""
Configuration management and environment validation
"""

import os
import json
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

DEFAULT_ADDR = '0.0.0.0:8080'
DEFAULT_ADDRESS_BOOKS_FILE = '/cfg/config.json'
DEFAULT_REQUEST_TIMEOUT = 30.0


class ConfigError(Exception):
    """Raised when the address book file cannot be loaded"""


@dataclass(frozen=True)
class AddressBook:
    name: str
    url: str
    username: str = ''
    password: str = ''


@dataclass
class ServerConfig:
    addr: str = DEFAULT_ADDR
    address_books_file: str = DEFAULT_ADDRESS_BOOKS_FILE
    api_key: str = ''
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @property
    def host(self) -> str:
        host, _, _ = self.addr.rpartition(':')
        return host or '0.0.0.0'

    @property
    def port(self) -> int:
        _, _, port = self.addr.rpartition(':')
        return int(port)


def setup_logging():
    """Setup logging configuration from environment variables"""
    log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
    log_to_file = os.getenv('LOG_TO_FILE', 'false').lower() == 'true'
    log_dir = os.getenv('LOG_DIR', '/var/log/bdayfeed')
    debug_mode = os.getenv('DEBUG', 'false').lower() == 'true'

    if debug_mode:
        log_level = 'DEBUG'

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    simple_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    )

    handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(simple_formatter)
    handlers.append(console_handler)

    if log_to_file:
        try:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(os.path.join(log_dir, 'bdayfeed.log'))
            file_handler.setFormatter(detailed_formatter)
            handlers.append(file_handler)
        except OSError as e:
            print(f"Warning: Could not create log file: {e}")

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        handlers=handlers,
        force=True
    )

    # Suppress some noisy third-party loggers unless in debug mode
    if not debug_mode:
        logging.getLogger('requests').setLevel(logging.WARNING)
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('werkzeug').setLevel(logging.WARNING)


def _field(entry: Dict, key: str) -> str:
    value = entry.get(key)
    if value is None:
        value = entry.get(key.lower(), '')
    return str(value)


def load_address_books(path: str) -> Dict[str, AddressBook]:
    """Load the JSON list of address books, keyed by name"""
    try:
        with open(path, encoding='utf-8') as f:
            entries = json.load(f)
    except OSError as e:
        raise ConfigError(f"failed to open address books file: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"failed to decode address books: {e}") from e

    if not isinstance(entries, list):
        raise ConfigError("failed to decode address books: expected a JSON list")

    books = {}
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ConfigError(f"address book entry {i} is not an object")
        book = AddressBook(
            name=_field(entry, 'Name'),
            url=_field(entry, 'URL'),
            username=_field(entry, 'Username'),
            password=_field(entry, 'Password')
        )
        if not book.name or not book.url:
            raise ConfigError(f"address book entry {i} needs a name and a URL")
        books[book.name] = book

    logging.getLogger(__name__).info(f"Loaded {len(books)} address books from {path}")
    return books


def get_server_config(overrides: Optional[Dict] = None) -> ServerConfig:
    """Get server configuration from environment, with explicit overrides on top"""
    config = {
        'addr': os.getenv('BDAYFEED_ADDR', DEFAULT_ADDR),
        'address_books_file': os.getenv('BDAYFEED_ADDRESS_BOOKS_FILE', DEFAULT_ADDRESS_BOOKS_FILE),
        'api_key': os.getenv('BDAYFEED_API_KEY', ''),
        'request_timeout': float(os.getenv('BDAYFEED_REQUEST_TIMEOUT', str(DEFAULT_REQUEST_TIMEOUT)))
    }
    for key, value in (overrides or {}).items():
        if value is not None:
            config[key] = value
    return ServerConfig(**config)


def validate_config(config: ServerConfig) -> bool:
    """Validate the settings required to serve feeds"""
    logger = logging.getLogger(__name__)

    problems: List[str] = []
    if not config.api_key:
        problems.append('API key is not set (BDAYFEED_API_KEY or --api-key)')
    if not os.path.isfile(config.address_books_file):
        problems.append(f"address books file not found: {config.address_books_file}")
    try:
        if not 0 < config.port < 65536:
            problems.append(f"invalid listen port: {config.addr}")
    except ValueError:
        problems.append(f"invalid listen address: {config.addr}")

    if problems:
        for problem in problems:
            logger.error(problem)
        return False

    logger.info("Configuration validation passed")
    return True
