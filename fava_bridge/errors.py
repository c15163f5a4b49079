# fava_bridge/errors.py
"""Error kinds raised while talking to the upstream and scraping its pages.

Everything except ``ConfigurationError`` is turned into a
``{"success": false, "error": ...}`` body by the routes in ``main``.
"""


class FavaBridgeError(Exception):
    """Base error; ``str(exc)`` is what ends up in the response envelope."""


class UpstreamTransportError(FavaBridgeError):
    """Network failure, timeout, non-2xx status or an unreadable response body."""


class UpstreamLogicalError(FavaBridgeError):
    """The upstream answered with ``success: false``."""


class MarkupParseError(FavaBridgeError):
    """A journal line is missing a cell or holds an amount that is not a number."""


class ConfigurationError(FavaBridgeError):
    """Startup cannot proceed, e.g. the upstream URL is missing."""
