"""Settings, feed configuration and logging setup."""

from .settings import Settings, get_settings
from .feeds import DEFAULT_FEEDS, load_feeds
from .logging_setup import configure_logging

__all__ = ["Settings", "get_settings", "DEFAULT_FEEDS", "load_feeds", "configure_logging"]
