"""
Per-session logging: every message carries a reference to the polling session.

The references are used both for prefixing the text messages (``[recipe]``)
and as a structured field in the JSON logs, so that the log parsers can group
the messages of one session (the same path can be polled by many sessions).

The library never configures the logging by itself; :func:`configure` is only
a helper for the applications and scripts that have no logging of their own.
"""
import copy
import enum
import logging
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, TextIO

# Luckily, we do not mock these ones in tests, so we can import them into our namespace.
try:
    # python-json-logger>=3.1.0
    from pythonjsonlogger.core import RESERVED_ATTRS as _pjl_RESERVED_ATTRS
    from pythonjsonlogger.json import JsonFormatter as _pjl_JsonFormatter
except ImportError:
    # python-json-logger<3.1.0
    from pythonjsonlogger.jsonlogger import JsonFormatter as _pjl_JsonFormatter  # type: ignore
    from pythonjsonlogger.jsonlogger import RESERVED_ATTRS as _pjl_RESERVED_ATTRS  # type: ignore

from cloudpoll._cogs.helpers import typedefs

logger = logging.getLogger('cloudpoll.sessions')

# A key for session references in JSON logs, as seen by the log parsers.
DEFAULT_JSON_REFKEY = 'poll'


class LogFormat(enum.Enum):
    PLAIN = '%(message)s'
    FULL = '[%(asctime)s] %(name)-20.20s [%(levelname)-8.8s] %(message)s'
    JSON = '-json-'  # not used for formatting, only for detection


class SessionFormatter(logging.Formatter):
    pass


class SessionTextFormatter(SessionFormatter, logging.Formatter):
    pass


class SessionJsonFormatter(SessionFormatter, _pjl_JsonFormatter):
    def __init__(
            self,
            *args: Any,
            refkey: str | None = None,
            **kwargs: Any,
    ) -> None:
        # Avoid type checking, as the args are not in the parent consructor.
        reserved_attrs = kwargs.pop('reserved_attrs', _pjl_RESERVED_ATTRS)
        reserved_attrs = set(reserved_attrs)
        reserved_attrs |= {'poll_ref'}
        kwargs |= dict(reserved_attrs=reserved_attrs)
        kwargs.setdefault('timestamp', True)
        super().__init__(*args, **kwargs)
        self._refkey: str = refkey or DEFAULT_JSON_REFKEY

    def add_fields(
            self,
            log_record: dict[str, object],
            record: logging.LogRecord,
            message_dict: dict[str, object],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if self._refkey and hasattr(record, 'poll_ref'):
            ref = getattr(record, 'poll_ref')
            log_record[self._refkey] = ref

        if 'severity' not in log_record:
            log_record['severity'] = (
                "debug" if record.levelno <= logging.DEBUG else
                "info" if record.levelno <= logging.INFO else
                "warn" if record.levelno <= logging.WARNING else
                "error" if record.levelno <= logging.ERROR else
                "fatal")


class SessionPrefixingMixin(SessionFormatter):
    def format(self, record: logging.LogRecord) -> str:
        if hasattr(record, 'poll_ref'):
            ref = getattr(record, 'poll_ref')
            recipe = ref.get('recipe')
            request = f"{ref.get('method', '').upper()} {ref.get('path', '')}".strip()
            prefix = f"[{recipe}]" if recipe else f"[{request}]"
            record = copy.copy(record)  # shallow
            record.msg = f"{prefix} {record.msg}"
        return super().format(record)


class SessionPrefixingTextFormatter(SessionPrefixingMixin, SessionTextFormatter):
    pass


class SessionPrefixingJsonFormatter(SessionPrefixingMixin, SessionJsonFormatter):
    pass


class SessionLogger(typedefs.LoggerAdapter):
    """
    A logger/adapter to carry the session identifiers for formatting.

    Constructed for each individual polling session. As little information
    is carried as possible: the recipe's name and the polled request,
    but never the request's body (it can contain the secrets).
    """

    def __init__(
            self,
            *,
            method: str,
            path: str,
            recipe: str | None = None,
            base: typedefs.Logger | None = None,
    ) -> None:
        super().__init__(base if base is not None else logger, dict(
            poll_ref=dict(
                recipe=recipe,
                method=method,
                path=path,
            ),
        ))

    def process(
            self,
            msg: str,
            kwargs: MutableMapping[str, Any],
    ) -> tuple[str, MutableMapping[str, Any]]:
        # Native logging overwrites the message's extra with the adapter's extra.
        # We merge them, so that both message's & adapter's extras are available.
        kwargs["extra"] = (self.extra or {}) | kwargs.get('extra', {})
        return msg, kwargs


# Used to identify and remove our own handlers on re-configuration. Every re-configuration
# adds a new handler, but the previous handlers can have their streams closed (e.g. in tests).
if TYPE_CHECKING:
    class _CloudpollStreamHandler(logging.StreamHandler[TextIO]):
        pass
else:
    class _CloudpollStreamHandler(logging.StreamHandler):
        pass


def configure(
        debug: bool | None = None,
        verbose: bool | None = None,
        quiet: bool | None = None,
        log_format: LogFormat = LogFormat.FULL,
        log_prefix: bool | None = None,
        log_refkey: str | None = None,
) -> None:
    """ Install one stream handler on the root logger, replacing the previously installed one. """
    log_level = 'DEBUG' if debug or verbose else 'WARNING' if quiet else 'INFO'
    formatter = make_formatter(log_format=log_format, log_prefix=log_prefix, log_refkey=log_refkey)
    handler = _CloudpollStreamHandler()
    handler.setFormatter(formatter)
    logger = logging.getLogger()
    logger.handlers[:] = [h for h in logger.handlers if not isinstance(h, _CloudpollStreamHandler)]
    logger.addHandler(handler)
    logger.setLevel(log_level)

    # Prevent the low-level logging unless in the debug mode. Keep only the sessions' messages.
    # For no-propagation loggers, add a dummy null handler to prevent printing the messages.
    for name in ['asyncio', 'aiohttp']:
        logger = logging.getLogger(name)
        logger.propagate = bool(debug)
        if not debug:
            logger.handlers[:] = [logging.NullHandler()]


def make_formatter(
        log_format: LogFormat = LogFormat.FULL,
        log_prefix: bool | None = None,
        log_refkey: str | None = None,
) -> SessionFormatter:
    log_prefix = log_prefix if log_prefix is not None else bool(log_format is not LogFormat.JSON)
    match log_format:
        case LogFormat.JSON:
            if log_prefix:
                return SessionPrefixingJsonFormatter(refkey=log_refkey)
            else:
                return SessionJsonFormatter(refkey=log_refkey)
        case LogFormat():
            if log_prefix:
                return SessionPrefixingTextFormatter(log_format.value)
            else:
                return SessionTextFormatter(log_format.value)
        case _:
            raise ValueError(f"Unsupported log format: {log_format!r}")
