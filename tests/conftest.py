import asyncio
import logging
import re
from typing import Any, Callable, Optional

import pytest
from aresponses import ResponsesMockServer

from cloudpoll._cogs.clients.api import Response
from cloudpoll._cogs.clients.auth import APIContext
from cloudpoll._cogs.configs.configuration import ClientSettings
from cloudpoll._cogs.structs.credentials import ConnectionInfo
from cloudpoll._core.actions.loggers import SessionLogger
from cloudpoll._core.actions.operations import OperationRequest


@pytest.fixture()
def settings():
    return ClientSettings()


@pytest.fixture()
def logger():
    return SessionLogger(method='get', path='/api/fake', recipe='fake-recipe')


@pytest.fixture()
def stopper():
    return asyncio.Event()


#
# Scripted operations: no HTTP, only the pre-defined responses in a sequence.
#


class FakeOperation:
    """
    An operation that returns the scripted responses (or raises the scripted errors).

    The last item is repeated forever once the script is over, so that the budgets
    (not the scripts) decide when the polling ends. The loop time of every call
    is remembered for the assertions on the sleeps between the calls.
    """

    def __init__(
            self,
            *script: Response | BaseException,
            decoder: Optional[Callable[[Any], Any]] = None,
            request: Optional[OperationRequest] = None,
    ) -> None:
        super().__init__()
        self.request = request if request is not None else OperationRequest('get', '/api/fake')
        self.script = list(script)
        self.decoder = decoder
        self.times: list[float] = []

    @property
    def calls(self) -> int:
        return len(self.times)

    @property
    def pauses(self) -> list[float]:
        return [b - a for a, b in zip(self.times, self.times[1:])]

    async def __call__(self) -> Response:
        self.times.append(asyncio.get_running_loop().time())
        item = self.script[min(len(self.times), len(self.script)) - 1]
        if isinstance(item, BaseException):
            raise item
        return item

    def decode(self, data: Any) -> Any:
        return self.decoder(data) if self.decoder is not None else data


@pytest.fixture()
def fake_operation():
    """ A factory of the scripted operations, e.g. ``fake_operation(resp1, resp2)``. """
    return FakeOperation


#
# HTTP-level fixtures: a real aiohttp session against the `aresponses` server.
#


@pytest.fixture()
def hostname():
    """ A fake hostname to be used in URLs, and in the `aresponses` mocks. """
    return 'fake-host'


@pytest.fixture()
async def aresponses():
    """ A mock server for all hostnames, with no dependency on the deprecated loop fixtures. """
    async with ResponsesMockServer() as server:
        yield server


@pytest.fixture()
def connection_info(hostname):
    return ConnectionInfo(server=f'http://{hostname}', api_key='fake-key')


@pytest.fixture()
async def api_context(connection_info):
    async with APIContext(connection_info) as context:
        yield context


#
# Helpers for the logging checks.
#


@pytest.fixture()
def assert_logs(caplog):
    """
    A function to assert the logs are present (by pattern).

    The listed message patterns MUST be present, in the order specified.
    Some other log messages can also be present, but they are ignored.
    """
    caplog.set_level(logging.DEBUG)

    def assert_logs_fn(patterns, prohibited=[], strict=False):
        __traceback_hide__ = True
        remaining_patterns = list(patterns)
        for message in caplog.messages:
            # The expected pattern is at position 0.
            # Looking-ahead: if one of the following patterns matches, while the
            # 0th does not, then the log message is missing, and we fail the test.
            for idx, pattern in enumerate(remaining_patterns):
                m = re.search(pattern, message)
                if m:
                    if idx == 0:
                        remaining_patterns[:1] = []
                        break  # out of `remaining_patterns` cycle
                    else:
                        skipped_patterns = remaining_patterns[:idx]
                        raise AssertionError(f"Few patterns were skipped: {skipped_patterns!r}")
                elif strict:
                    raise AssertionError(f"Unexpected log message: {message!r}")

            # Check that the prohibited patterns do not appear in any message.
            for pattern in prohibited:
                m = re.search(pattern, message)
                if m:
                    raise AssertionError(f"Prohibited log pattern found: {message!r} ~ {pattern!r}")

        # If all patterns have been matched in order, we are done.
        # if some are left, but the messages are over, then we fail.
        if remaining_patterns:
            raise AssertionError(f"Few patterns were missed: {remaining_patterns!r}")

    return assert_logs_fn
