"""
Operations: the single remote calls that the polling sessions repeat.

An operation is either a read of the current state (a GET), or the call
that triggers the change (a POST/PUT/DELETE). Either way, it is expected to be
idempotent to invoke: the session can call it as many times as its budget
allows, and every call must give a fresh observation of the remote side.

The engine only depends on the :class:`Operation` protocol. The library
provides one implementation over the HTTP client (:class:`APIOperation`);
the tests and the callers can provide their own ones.
"""
import dataclasses
import logging
from typing import Any, Optional

from typing_extensions import Protocol

from cloudpoll._cogs.clients import api, auth
from cloudpoll._cogs.configs import configuration
from cloudpoll._cogs.helpers import typedefs
from cloudpoll._cogs.structs import snapshots

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class OperationRequest:
    """ What to call: immutable for the whole polling session. """
    verb: str
    path: str
    body: Optional[object] = None

    def __str__(self) -> str:
        return f"{self.verb.upper()} {self.path}"


class Operation(Protocol):
    """ A callback type for the remote calls of a polling session. """
    request: OperationRequest

    async def __call__(self) -> api.Response: ...

    def decode(self, data: Any) -> Any: ...


@dataclasses.dataclass(frozen=True)
class APIOperation:
    """
    An operation performed via the HTTP client in the explicitly given context.
    """
    request: OperationRequest
    context: auth.APIContext
    decoder: snapshots.Decoder = snapshots.as_is
    settings: configuration.ClientSettings = dataclasses.field(
        default_factory=configuration.ClientSettings)
    logger: typedefs.Logger = logger

    async def __call__(self) -> api.Response:
        return await api.request(
            method=self.request.verb,
            url=self.request.path,
            payload=self.request.body,
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )

    def decode(self, data: Any) -> Any:
        return self.decoder(data)
