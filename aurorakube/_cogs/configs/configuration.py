"""
All configuration flags, options, settings to fine-tune the client.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

Some of the settings are flags, some are scalars, some are optional,
some are not (but all of them have reasonable defaults): the defaults
are good for a client running inside a cluster's pod with a service account.

The settings object is created once per client and is treated as immutable
by the client itself: it is never modified after the client is constructed.
"""
import dataclasses
from typing import List, Optional


@dataclasses.dataclass
class ClusterSettings:
    """
    Where the cluster API is and where its credentials are located.
    """

    url: str = 'https://kubernetes.default.svc.cluster.local'
    """
    The base URL of the cluster API. All resource URLs are relative to it.
    """

    token_location: str = '/var/run/secrets/kubernetes.io/serviceaccount/token'
    """
    The service-account token file. If it is absent (e.g. when running
    locally), the token of the current user in ``~/.kube/config`` is used.
    """

    ca_location: Optional[str] = '/var/run/secrets/kubernetes.io/serviceaccount/ca.crt'
    """
    The CA certificate to trust in addition to the system's default ones.
    Ignored if the file does not exist.
    """

    psat_location: str = '/var/run/secrets/tokens'
    """
    The directory with the projected service-account tokens (PSAT),
    one file per audience, named after the audience.
    """

    insecure: bool = False
    """
    Skip the TLS verification of the cluster API. Never use it in production.
    """


@dataclasses.dataclass
class RetrySettings:
    """
    How the failed requests are retried.

    Only the retryable errors are retried: server errors (HTTP 5xx),
    connection errors, and timeouts. Client errors (HTTP 4xx) never are.
    """

    times: int = 3
    """
    How many times a failed request is retried (not counting the first attempt).
    ``0`` disables the retries completely: the first failure is escalated.
    """

    min_delay: float = 0.1
    """
    The first backoff in seconds. Every next one is twice as long.
    """

    max_delay: float = 1.0
    """
    The maximum backoff in seconds: the exponential growth stops there.
    """

    @property
    def backoffs(self) -> List[float]:
        return [min(self.min_delay * 2 ** idx, self.max_delay) for idx in range(self.times)]


@dataclasses.dataclass
class TimeoutSettings:
    """
    Timeouts of individual HTTP requests, in seconds.

    There is no per-write timeout in ``aiohttp``, so the write timeout only
    extends the total timeout of a request: connect + read + write.
    """

    connect: Optional[float] = 2.0
    read: Optional[float] = 5.0
    write: Optional[float] = 5.0

    @property
    def total(self) -> Optional[float]:
        parts = [self.connect, self.read, self.write]
        return None if any(part is None for part in parts) else sum(part or 0 for part in parts)


@dataclasses.dataclass
class NetworkingSettings:

    max_connections: int = 16
    """
    The size of the connection pool to the cluster API.
    ``0`` means unlimited.
    """

    keepalive_timeout: Optional[float] = None
    """
    For how long an idle connection is kept in the pool, in seconds.
    ``None`` means the ``aiohttp``'s default.
    """

    user_agent: Optional[str] = None
    """
    The ``User-Agent`` header of all requests.
    By default, it is ``aurorakube/{version}``.
    """


@dataclasses.dataclass
class WatchingSettings:

    reconnect_backoff: float = 0.1
    """
    A pause between the watch-stream reconnections, in seconds.
    """

    server_timeout: Optional[float] = None
    """
    The maximum duration of one watch request, as communicated to the server.
    ``None`` means the server's default.
    """

    client_timeout: Optional[float] = None
    """
    The maximum duration of one watch request as limited by the client.
    """

    connect_timeout: Optional[float] = None
    """
    The maximum duration of connecting to the server for a watch request.
    """


@dataclasses.dataclass
class ClientSettings:
    cluster: ClusterSettings = dataclasses.field(default_factory=ClusterSettings)
    retry: RetrySettings = dataclasses.field(default_factory=RetrySettings)
    timeout: TimeoutSettings = dataclasses.field(default_factory=TimeoutSettings)
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    watching: WatchingSettings = dataclasses.field(default_factory=WatchingSettings)
