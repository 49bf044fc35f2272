import base64
import functools
import inspect
import os.path
import ssl
from typing import Any, Callable, Dict, Optional, TypeVar, Union, cast

import aiohttp

from aurorakube._cogs.configs import configuration
from aurorakube._cogs.helpers import versions
from aurorakube._cogs.structs import credentials

# A typevar to show that we return a function with the same signature as given.
_F = TypeVar('_F', bound=Callable[..., Any])


def authenticated(fn: _F) -> _F:
    """
    A decorator to attach the bearer token to the headers of a requesting routine.

    An explicitly passed ``token=`` wins; otherwise, the context's token fetcher
    is asked for a token for the ``audience=`` (if any). If there is no token,
    the request is sent anonymously: it is not an error on the client side.
    """
    @functools.wraps(fn)
    async def wrapper(
            *args: Any,
            context: "APIContext",
            token: Optional[str] = None,
            audience: Optional[str] = None,
            headers: Optional[Dict[str, str]] = None,
            **kwargs: Any,
    ) -> Any:
        if token is None:
            token = await context.fetch_token(audience)

        headers = dict(headers or {})
        if token:
            headers['Authorization'] = f'Bearer {token}'

        return await fn(*args, context=context, headers=headers, **kwargs)

    return cast(_F, wrapper)


class APIContext:
    """
    A container for an aiohttp session and the credentials-related info.

    The container is constructed only once per client, inside of the event
    loop where the requests are going to be performed (it is an aiohttp's
    limitation: a session cannot be used across event loops).
    """

    # The main contained object used by the API methods.
    session: aiohttp.ClientSession

    # Contextual information for URL building.
    server: str

    def __init__(
            self,
            info: credentials.ConnectionInfo,
            *,
            settings: configuration.ClientSettings,
            token_fetcher: Optional[credentials.TokenFetcher] = None,
            session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__()
        self.token_fetcher = token_fetcher if token_fetcher is not None else credentials.NoopTokenFetcher()
        self.session = session if session is not None else self.make_aiohttp_session(info, settings)
        self._owned = session is None

        # Self-identify unless the provided session already does.
        if self.session.headers.get('User-Agent') is None:
            user_agent = settings.networking.user_agent or f'aurorakube/{versions.version or "unknown"}'
            self.session.headers['User-Agent'] = user_agent

        self.server = info.server

    def make_aiohttp_session(
            self,
            info: credentials.ConnectionInfo,
            settings: configuration.ClientSettings,
    ) -> aiohttp.ClientSession:

        # The SSL part: the CA verification only; the auth is by the tokens.
        ca_path = info.ca_path if info.ca_path and os.path.exists(info.ca_path) else None
        context = ssl.create_default_context(
            cafile=ca_path,
            cadata=decode_to_pem(info.ca_data) if info.ca_data is not None else None,
        )

        if info.insecure:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE

        # Only override the aiohttp's default keep-alive if explicitly configured.
        connector_kwargs: Dict[str, Any] = {}
        if settings.networking.keepalive_timeout is not None:
            connector_kwargs['keepalive_timeout'] = settings.networking.keepalive_timeout

        return aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(
                limit=settings.networking.max_connections,
                ssl=context,
                **connector_kwargs,
            ),
            timeout=make_timeout(settings),
        )

    async def fetch_token(self, audience: Optional[str] = None) -> Optional[str]:
        # The fetchers can be either plain or async: both are supported.
        token = self.token_fetcher.token(audience)
        if inspect.isawaitable(token):
            token = await token
        return cast(Optional[str], token)

    async def close(self) -> None:
        # Externally provided sessions are closed by their owners.
        if self._owned:
            await self.session.close()


def make_timeout(settings: configuration.ClientSettings) -> aiohttp.ClientTimeout:
    return aiohttp.ClientTimeout(
        total=settings.timeout.total,
        sock_connect=settings.timeout.connect,
        sock_read=settings.timeout.read,
    )


def decode_to_pem(data: Union[str, bytes]) -> str:
    if isinstance(data, str) and data.startswith('-----BEGIN '):
        return data
    elif isinstance(data, bytes) and data.startswith(b'-----BEGIN '):
        return data.decode('ascii')
    else:
        return base64.b64decode(data).decode('ascii')
