import ssl

import aiohttp

from cloudpoll._cogs.helpers import versions
from cloudpoll._cogs.structs import credentials


class APIContext:
    """
    A container for an aiohttp session and the connection info of the control plane.

    The context is constructed by the caller and passed explicitly into every
    operation. There is no implicit global session: the sessions of different
    callers (and of different tests) are fully independent of each other.

    If the aiohttp session is given by the caller, it is borrowed and
    not closed when the context is closed; otherwise, the context owns it.
    """

    # The main contained object used by the API methods.
    session: aiohttp.ClientSession

    # Contextual information for URL building.
    server: str

    def __init__(
            self,
            info: credentials.ConnectionInfo,
            *,
            session: aiohttp.ClientSession | None = None,
    ) -> None:
        super().__init__()

        self._owned = session is None
        self.session = session if session is not None else self.make_aiohttp_session(info)
        self.server = info.server

    async def __aenter__(self) -> "APIContext":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    def make_aiohttp_session(self, info: credentials.ConnectionInfo) -> aiohttp.ClientSession:

        # The SSL part: only the CA verification; no client certificates are used.
        context = ssl.create_default_context(cafile=info.ca_path)
        if info.insecure:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE

        # Self-identify a bit. The borrowed sessions are never modified, only the own ones.
        user_agent = info.user_agent or f'cloudpoll/{versions.version or "unknown"}'

        # The basic auth part: the API key is the password of an anonymous user.
        auth: aiohttp.BasicAuth | None
        if info.api_key:
            auth = aiohttp.BasicAuth('', info.api_key)
        else:
            auth = None

        return aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(
                limit=0,
                ssl=context,
            ),
            auth=auth,
            headers={'User-Agent': user_agent},
        )

    async def close(self) -> None:
        if self._owned:
            await self.session.close()
