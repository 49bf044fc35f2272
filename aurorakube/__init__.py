"""
The main aurorakube module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the library's top-level interface,
# as it is seen by the users. So, we export the individual functions.

from aurorakube._cogs.clients.errors import (
    APIError,
    APIClientError,
    APIServerError,
    APIUnauthorizedError,
    APIForbiddenError,
    APINotFoundError,
    APIConflictError,
    ResourceNotFoundError,
    WatchingError,
)
from aurorakube._cogs.configs.configuration import (
    ClientSettings,
    ClusterSettings,
    RetrySettings,
    TimeoutSettings,
    NetworkingSettings,
    WatchingSettings,
)
from aurorakube._cogs.helpers.typedefs import (
    Logger,
)
from aurorakube._cogs.helpers.versions import (
    version as __version__,
)
from aurorakube._cogs.structs.bodies import (
    RawEventType,
    RawEvent,
    RawBody,
    Body,
    Labels,
    ObjectReference,
    PropagationPolicy,
    build_object_reference,
)
from aurorakube._cogs.structs.credentials import (
    LoginError,
    ConnectionInfo,
    TokenFetcher,
    NoopTokenFetcher,
    StaticTokenFetcher,
    FileTokenFetcher,
    ProjectedTokenFetcher,
)
from aurorakube._cogs.structs.references import (
    HasIdentity,
    Descriptor,
    UriTemplate,
    ApiGroup,
    identify,
    resolve,
    build_url,
    pluralize,
    label_selector,
)
from aurorakube._core.loggers import (
    LogFormat,
    ResourceLogger,
    configure,
    make_formatter,
)
from aurorakube._kits.clients import (
    KubernetesClient,
)
from aurorakube._kits.blocking import (
    BlockingKubernetesClient,
)

__all__ = [
    'APIError',
    'APIClientError',
    'APIServerError',
    'APIUnauthorizedError',
    'APIForbiddenError',
    'APINotFoundError',
    'APIConflictError',
    'ResourceNotFoundError',
    'WatchingError',
    'ClientSettings',
    'ClusterSettings',
    'RetrySettings',
    'TimeoutSettings',
    'NetworkingSettings',
    'WatchingSettings',
    'Logger',
    'RawEventType',
    'RawEvent',
    'RawBody',
    'Body',
    'Labels',
    'ObjectReference',
    'PropagationPolicy',
    'build_object_reference',
    'LoginError',
    'ConnectionInfo',
    'TokenFetcher',
    'NoopTokenFetcher',
    'StaticTokenFetcher',
    'FileTokenFetcher',
    'ProjectedTokenFetcher',
    'HasIdentity',
    'Descriptor',
    'UriTemplate',
    'ApiGroup',
    'identify',
    'resolve',
    'build_url',
    'pluralize',
    'label_selector',
    'LogFormat',
    'ResourceLogger',
    'configure',
    'make_formatter',
    'KubernetesClient',
    'BlockingKubernetesClient',
]
