import logging
from typing import Collection

import pytest

from cloudpoll._core.actions.loggers import LogFormat, SessionFormatter, SessionJsonFormatter, \
                                            SessionPrefixingJsonFormatter, \
                                            SessionPrefixingTextFormatter, SessionTextFormatter, \
                                            configure, make_formatter


@pytest.fixture(autouse=True)
def _restore_logging():
    names = ['asyncio', 'aiohttp']
    root = logging.getLogger()
    original_level = root.level
    original_handlers = root.handlers[:]
    original_libs = {name: (logging.getLogger(name).propagate, logging.getLogger(name).handlers[:])
                     for name in names}
    yield
    root.setLevel(original_level)
    root.handlers[:] = original_handlers
    for name, (propagate, handlers) in original_libs.items():
        logging.getLogger(name).propagate = propagate
        logging.getLogger(name).handlers[:] = handlers


def _get_own_handlers(logger: logging.Logger) -> Collection[logging.Handler]:
    return [
        handler for handler in logger.handlers
        if isinstance(handler, logging.StreamHandler) and
           isinstance(handler.formatter, SessionFormatter)
    ]


def test_own_formatter_is_used():
    configure()
    own_handlers = _get_own_handlers(logging.getLogger())
    assert len(own_handlers) == 1


def test_reconfiguration_replaces_the_own_handler():
    configure()
    configure(log_format=LogFormat.JSON)
    own_handlers = _get_own_handlers(logging.getLogger())
    assert len(own_handlers) == 1
    assert type(own_handlers[0].formatter) is SessionJsonFormatter


@pytest.mark.parametrize('log_format', [LogFormat.FULL, LogFormat.PLAIN])
def test_formatter_nonprefixed_text(log_format):
    configure(log_format=log_format, log_prefix=False)
    own_handlers = _get_own_handlers(logging.getLogger())
    assert type(own_handlers[0].formatter) is SessionTextFormatter


@pytest.mark.parametrize('log_format', [LogFormat.FULL, LogFormat.PLAIN])
def test_formatter_prefixed_text(log_format):
    configure(log_format=log_format, log_prefix=True)
    own_handlers = _get_own_handlers(logging.getLogger())
    assert type(own_handlers[0].formatter) is SessionPrefixingTextFormatter


@pytest.mark.parametrize('log_format', [LogFormat.FULL, LogFormat.PLAIN])
def test_text_has_prefixes_by_default(log_format):
    configure(log_format=log_format, log_prefix=None)
    own_handlers = _get_own_handlers(logging.getLogger())
    assert type(own_handlers[0].formatter) is SessionPrefixingTextFormatter


def test_formatter_prefixed_json():
    configure(log_format=LogFormat.JSON, log_prefix=True)
    own_handlers = _get_own_handlers(logging.getLogger())
    assert type(own_handlers[0].formatter) is SessionPrefixingJsonFormatter


def test_json_has_no_prefix_by_default():
    configure(log_format=LogFormat.JSON, log_prefix=None)
    own_handlers = _get_own_handlers(logging.getLogger())
    assert type(own_handlers[0].formatter) is SessionJsonFormatter


@pytest.mark.parametrize('kwargs, level', [
    pytest.param(dict(), logging.INFO, id='default'),
    pytest.param(dict(verbose=True), logging.DEBUG, id='verbose'),
    pytest.param(dict(debug=True), logging.DEBUG, id='debug'),
    pytest.param(dict(quiet=True), logging.WARNING, id='quiet'),
])
def test_levels(kwargs, level):
    configure(**kwargs)
    assert logging.getLogger().level == level


def test_libraries_are_silenced_unless_debugging():
    configure(verbose=True)
    assert not logging.getLogger('asyncio').propagate
    assert not logging.getLogger('aiohttp').propagate


def test_libraries_are_heard_when_debugging():
    configure(debug=True)
    assert logging.getLogger('asyncio').propagate
    assert logging.getLogger('aiohttp').propagate


def test_unsupported_formats():
    with pytest.raises(ValueError, match=r"Unsupported log format"):
        make_formatter(log_format=123)  # type: ignore
