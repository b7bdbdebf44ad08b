"""
WSGI entry point, e.g. ``gunicorn bdayfeed.wsgi:app``
"""

from bdayfeed.config import ConfigError, get_server_config, load_address_books, setup_logging, validate_config
from bdayfeed.server import create_app

setup_logging()
config = get_server_config()

if not validate_config(config):
    raise ConfigError("invalid configuration, refusing to start")

app = create_app(load_address_books(config.address_books_file), config.api_key,
                 timeout=config.request_timeout)
