"""
Control-plane errors, as seen by the callers of the polling sessions.

The underlying client library (now, ``aiohttp``) can be replaced in the future.
We cannot rely on embedding its exceptions all over the code in the library.
Hence, we have our own hierarchy of exceptions for the remote outcomes.

Low-level errors, such as the network connectivity issues, SSL/HTTPS issues,
request timeouts, etc, are escalated from the client library as is, since they
are related not to the domain of the control plane, but rather to networking.
They are never retried by the polling sessions.

Unlike the underlying client library's errors, the remote errors contain more
information about the reasons -- as provided by the control plane in its
failure bodies, not guessed only by HTTP statuses alone.

Every error here means one thing for the caller: the desired state
was NOT confirmed as achieved. The classes only tell why.
"""
import collections.abc
import json
from typing import Optional

import aiohttp
from typing_extensions import TypedDict


class RawFailure(TypedDict, total=False):
    error: str
    message: str
    error_code: int


class PollingError(Exception):
    """ A base for all the remote outcomes that end a polling session. """


class FatalRemoteError(PollingError):
    """ An unexpected or explicitly non-retryable status or failure body. """

    def __init__(
            self,
            reason: str,
            *,
            status: Optional[int] = None,
            failure: Optional[RawFailure] = None,
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status = status
        self.failure = failure

    @property
    def code(self) -> Optional[int]:
        return self.failure.get('error_code') if self.failure else None

    @property
    def message(self) -> Optional[str]:
        return self.failure.get('message') if self.failure else None


class SnapshotError(FatalRemoteError):
    """ A successful response of a shape that cannot be decoded into a state. """


class BusinessFailureError(PollingError):
    """ The tracked entity reports its own terminal failure (e.g. a job has failed). """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TimeoutExceededError(PollingError):
    """ The budget is exhausted while the state was still pending or failing transiently. """

    def __init__(self, message: str, *, attempts: int, elapsed: float) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.elapsed = elapsed


class PollCancelledError(PollingError):
    """ The session was stopped from outside while waiting for the next attempt. """

    def __init__(self, message: str, *, attempts: int, elapsed: float) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.elapsed = elapsed


async def read_failure(
        response: aiohttp.ClientResponse,
) -> Optional[RawFailure]:
    """
    Read the failure body of an erroneous response, if it is readable at all.

    Better be safe: the failure bodies are only used for classification,
    so anything that is not a JSON object is considered as no body at all.
    """
    payload: Optional[RawFailure]
    try:
        payload = await response.json(content_type=None)
    except (json.JSONDecodeError, UnicodeDecodeError, aiohttp.ClientConnectionError):
        payload = None

    if not isinstance(payload, collections.abc.Mapping):
        payload = None

    return payload
