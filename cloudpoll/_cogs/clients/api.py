import dataclasses
import datetime
import email.utils
from typing import Any, Mapping, Optional

import aiohttp

from cloudpoll._cogs.clients import auth, errors
from cloudpoll._cogs.configs import configuration
from cloudpoll._cogs.helpers import typedefs


@dataclasses.dataclass(frozen=True)
class Response:
    """
    A raw outcome of one request: the status and the decoded bodies.

    Either ``data`` (for successful responses) or ``failure`` (for the erroneous
    ones) is populated, never both. Both can be ``None`` for empty bodies.
    The response is fully read and released when this object is constructed.
    """
    status: int
    data: Any = None
    failure: Optional[errors.RawFailure] = None
    retry_after: Optional[float] = None  # seconds, as suggested by the server

    @property
    def error(self) -> Optional[str]:
        return self.failure.get('error') if self.failure else None

    @property
    def message(self) -> Optional[str]:
        return self.failure.get('message') if self.failure else None

    @property
    def error_code(self) -> Optional[int]:
        return self.failure.get('error_code') if self.failure else None


async def request(
        method: str,
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> Response:
    """
    Perform one single request, with no retries, and read its outcome.

    The HTTP statuses are not interpreted here, neither as errors nor as
    successes: it is the classifiers' job. Only the transport-level errors
    (connectivity, timeouts, unparseable success bodies) are raised, as is.
    """
    if '://' not in url:
        url = context.server.rstrip('/') + '/' + url.lstrip('/')

    if timeout is None:
        timeout = aiohttp.ClientTimeout(
            total=settings.networking.request_timeout,
            sock_connect=settings.networking.connect_timeout,
        )

    logger.debug(f"Requesting: {method.upper()} {url}")
    async with context.session.request(
        method=method,
        url=url,
        json=payload,
        headers=headers,
        timeout=timeout,
    ) as response:
        data: Any = None
        failure: Optional[errors.RawFailure] = None
        if response.status < 400:
            data = await response.json(content_type=None)  # None for empty bodies.
        else:
            failure = await errors.read_failure(response)
        retry_after = parse_retry_after(response.headers.get('Retry-After'))

    logger.debug(f"Responded: {method.upper()} {url} -> {response.status}")
    return Response(
        status=response.status,
        data=data,
        failure=failure,
        retry_after=retry_after,
    )


def parse_retry_after(
        value: Optional[str],
        *,
        now: Optional[datetime.datetime] = None,
) -> Optional[float]:
    """
    Parse the ``Retry-After`` header: either as seconds, or as an HTTP-date.

    Unparseable values are ignored, as if there was no header at all.
    The dates in the past are the same as no delay at all (zero seconds).
    """
    if not value:
        return None

    value = value.strip()
    if value.isdigit():
        return float(value)

    try:
        moment = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None

    if moment.tzinfo is None:  # "-0000" means "UTC, but the source is unknown".
        moment = moment.replace(tzinfo=datetime.timezone.utc)

    now = now if now is not None else datetime.datetime.now(datetime.timezone.utc)
    return max(0.0, (moment - now).total_seconds())
