"""
Authentication-related structures.

The client handles some rudimentary authentication directly, and exposes
the ways to implement custom token retrieval (via token fetchers).

The "rudimentary" is defined as the information passed to the HTTP protocol
and TCP/SSL connection only, i.e. everything usable in a generic HTTP client,
and nothing more than that:

* The API server's URL.
* SSL verification/ignorance flag.
* SSL certificate authority.
* HTTP ``Authorization: Bearer token``.
* URL's default namespace for the cases when this is implied.

The tokens are not stored in the connection info, but are fetched
by the token fetchers for every request, optionally for a specific
audience (e.g. for the projected service-account tokens, PSAT).
"""
import dataclasses
import logging
import os.path
import threading
from typing import Any, Awaitable, Dict, Optional, Union

import yaml
from typing_extensions import Protocol

logger = logging.getLogger(__name__)


class LoginError(Exception):
    """ Raised when the client cannot get the credentials to the API. """


@dataclasses.dataclass(frozen=True)
class ConnectionInfo:
    """
    A single endpoint with specific connection flags to use.
    """
    server: str  # e.g. "https://localhost:443"
    ca_path: Optional[str] = None
    ca_data: Optional[bytes] = None
    insecure: Optional[bool] = None


class TokenFetcher(Protocol):
    """
    The source of the tokens: either a plain function or a coroutine function.

    ``None`` means no token: the requests are sent anonymously.
    """

    def token(self, audience: Optional[str] = None) -> Union[Optional[str], Awaitable[Optional[str]]]: ...


class NoopTokenFetcher:
    """ No tokens at all: for the anonymous access or the explicit per-call tokens. """

    def token(self, audience: Optional[str] = None) -> Optional[str]:
        logger.debug("No token fetcher is configured and no token is sent in.")
        return None


@dataclasses.dataclass(frozen=True)
class StaticTokenFetcher:
    """ The same token for all audiences: e.g. a user's token. """
    value: str

    def token(self, audience: Optional[str] = None) -> Optional[str]:
        return self.value


class FileTokenFetcher:
    """
    The service-account's token as mounted into the pod.

    If the token file is absent (e.g. when running locally), the token of
    the current user of the current context in ``~/.kube/config`` is used.
    The token is read on every call, so the rotated tokens are picked up.
    """

    def __init__(
            self,
            path: str,
            *,
            kubeconfig: str = '~/.kube/config',
    ) -> None:
        super().__init__()
        self.path = path
        self.kubeconfig = kubeconfig

    def token(self, audience: Optional[str] = None) -> Optional[str]:
        if os.path.exists(self.path):
            with open(self.path, encoding='utf-8') as f:
                return f.read().strip()
        logger.debug(f"Token file {self.path!r} is absent. Falling back to the kubeconfig.")
        return read_kubeconfig_token(os.path.expanduser(self.kubeconfig))


class ProjectedTokenFetcher:
    """
    The projected service-account tokens (PSAT): one file per audience.

    The tokens are cached per audience once read. The audience is mandatory.
    """

    def __init__(self, mount: str) -> None:
        super().__init__()
        self.mount = mount
        self._cache: Dict[str, str] = {}
        self._lock = threading.Lock()

    def token(self, audience: Optional[str] = None) -> Optional[str]:
        if not audience:
            raise LoginError("The audience is required for the projected service-account tokens.")
        with self._lock:
            if audience not in self._cache:
                path = os.path.join(self.mount, audience)
                try:
                    with open(path, encoding='utf-8') as f:
                        self._cache[audience] = f.read().strip()
                except OSError as e:
                    raise LoginError(f"Cannot read the projected token for {audience!r}: {e}") from e
            return self._cache[audience]

    def invalidate(self, audience: Optional[str] = None) -> None:
        with self._lock:
            if audience is None:
                self._cache.clear()
            else:
                self._cache.pop(audience, None)


def read_kubeconfig_token(path: str) -> str:
    """
    Get the token of the current user from a kubeconfig file.

    The OpenShift's contexts are named as ``namespace/cluster/user``;
    the user is searched by the ``cluster/user`` key in the users' names.
    If not found, the user named after the current OS user is used.
    """
    if not os.path.exists(path):
        raise LoginError(f"Cannot get the token: neither the token file, nor {path!r} exist.")

    with open(path, encoding='utf-8') as f:
        config: Dict[str, Any] = yaml.safe_load(f.read()) or {}

    current_context: str = config.get('current-context') or ''
    key = current_context[current_context.find('/') + 1:current_context.rfind('/')] if '/' in current_context else ''
    users = {item.get('name', ''): item.get('user') or {} for item in config.get('users') or []}
    fallback_name = os.path.basename(os.path.expanduser('~'))

    user = None
    if key:
        user = next((user for name, user in users.items() if name.endswith(key)), None)
    if user is None:
        user = users.get(fallback_name)
    if user is None or not user.get('token'):
        raise LoginError(f"Cannot find the token of the current user in {path!r}.")
    return str(user['token'])
