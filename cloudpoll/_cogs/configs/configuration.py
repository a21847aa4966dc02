"""
All configuration flags, options, settings to fine-tune the polling sessions.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

Some of the settings are flags, some are scalars, some are optional,
some are not (but all of them have reasonable defaults).

The settings are passed explicitly to every session or request that needs
them. There are no global settings: if none are passed, the defaults are used.
"""
import dataclasses
from typing import Collection, Optional

DEFAULT_TRANSIENT_MARKER = "Timeout talking to backend"


@dataclasses.dataclass
class NetworkingSettings:

    request_timeout: Optional[float] = 5 * 60  # == aiohttp.client.DEFAULT_TIMEOUT
    """
    A timeout for one individual request to the control plane (in seconds).
    It covers the whole request-response cycle, including the body reading.

    A request that times out is a transport error: it is not retried
    by the polling sessions, but escalated to the caller as is.
    """

    connect_timeout: Optional[float] = None
    """
    A timeout for the connection establishment (in seconds).
    If ``None``, it is limited by the ``request_timeout`` only.
    """


@dataclasses.dataclass
class PollingSettings:

    transient_marker: str = DEFAULT_TRANSIENT_MARKER
    """
    The exact error message by which the control plane reports that it failed
    to talk to its own internal dependency, and that the request is worth
    repeating. Only the responses with this marker in the ``error`` field
    are treated as transient failures; all other failures are fatal.
    """

    business_codes: Collection[int] = (40002,)
    """
    Numeric error codes (the ``error_code`` field of the failure body)
    which mean a definitive refusal of the control plane to perform
    the requested change, e.g. a disk resize to a too small size.

    Such failures are fatal and skip the convergence polling entirely.
    """

    retry_rate_limits: bool = False
    """
    Should the "Too Many Requests" (HTTP 429) responses be treated
    as transient failures and retried within the session's budget?

    By default, they are not: they are fatal as any other unexpected status.
    """

    max_retry_after: float = 60
    """
    The maximal delay (in seconds) to obey from the ``Retry-After`` header
    of the rate-limited responses. Longer server-suggested delays are capped.
    The budget's own delay is used if it is longer than the suggested one.
    """


@dataclasses.dataclass
class ClientSettings:
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    polling: PollingSettings = dataclasses.field(default_factory=PollingSettings)
