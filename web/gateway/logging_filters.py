"""Logging filter that stamps records with the current request id.

Wired into ``settings.LOGGING`` so every handler can reference
``%(request_id)s`` (or get a ``request_id`` key in JSON output) without
individual log calls passing it explicitly.
"""

from logging import Filter, LogRecord

from .middleware import REQUEST_ID_CTX


class RequestIdFilter(Filter):
    """Attach a ``request_id`` attribute to log records.

    Outside a request the ContextVar default ("-") is used so formatters
    can always rely on the attribute.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = REQUEST_ID_CTX.get()
        return True
