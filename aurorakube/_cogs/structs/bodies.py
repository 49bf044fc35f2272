"""
All the structures coming from/to the Kubernetes API.

For strict type-checking, the raw structures are detailed to the per-field
level (e.g. `TypedDict` instead of just ``Mapping[Any, Any]``) -- as used
by the client itself. The callers can use arbitrary fields at runtime,
which are not declared in the type definitions at type-checking time.

.. note::

    There is a strict separation of objects coming from/to the Kubernetes API
    and from (but not to) the callers:

    The Kubernetes-originated objects are dicts, wrapped into `Body` by default,
    or decoded into any other classes by the callers' decoders.

    The caller-originated objects can be either dicts/dict-like,
    or 3rd-party classes with ``to_dict()`` (e.g. from the ``kubernetes`` client),
    or dataclasses -- as long as they can be converted to a JSON payload.
"""
import dataclasses
import enum
from typing import Any, Callable, Iterator, List, Mapping, Optional, TypeVar, Union, cast

from typing_extensions import Literal, TypedDict

from aurorakube._cogs.structs import references

Labels = Mapping[str, str]
Annotations = Mapping[str, str]

#
# Everything marked "raw" is a plain unwrapped unprocessed data as JSON-decoded
# from Kubernetes API, usually as retrieved in watching or fetching API calls.
# "Input" is a parsed JSON as is, while "event" is an "input" without "errors".
# All non-used payload falls into `Any`, and is not type-checked.
#

RawInputType = Literal['ADDED', 'MODIFIED', 'DELETED', 'ERROR', 'BOOKMARK']
RawEventType = Literal['ADDED', 'MODIFIED', 'DELETED', 'BOOKMARK']


class RawMeta(TypedDict, total=False):
    uid: str
    name: str
    namespace: str
    labels: Labels
    annotations: Annotations
    resourceVersion: str
    creationTimestamp: str
    selfLink: str


class RawBody(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawMeta
    spec: Mapping[str, Any]
    status: Mapping[str, Any]


# A special payload for type==ERROR (this is not a connection or client error).
class RawError(TypedDict, total=False):
    apiVersion: str     # usually: Literal['v1']
    kind: str           # usually: Literal['Status']
    metadata: Mapping[Any, Any]
    code: int
    reason: str
    status: str
    message: str


# As received from the stream before processing the errors and special cases.
class RawInput(TypedDict, total=True):
    type: RawInputType
    object: Union[RawBody, RawError]


# As passed to the handlers after processing the errors and special cases.
class RawEvent(TypedDict, total=True):
    type: RawEventType
    object: RawBody


class Body(Mapping[str, Any]):
    """
    A read-only view of a raw body, with typed access to its identity.

    It is a mapping itself, so it compares equal to the raw dict it wraps,
    and can be passed wherever a raw body is expected (e.g. as a payload).
    """

    def __init__(self, __src: Mapping[str, Any]) -> None:
        super().__init__()
        self._src = __src

    def __repr__(self) -> str:
        return repr(self._src)

    def __len__(self) -> int:
        return len(self._src)

    def __iter__(self) -> Iterator[str]:
        return iter(self._src)

    def __getitem__(self, item: str) -> Any:
        return self._src[item]

    @property
    def kind(self) -> str:
        return cast(str, self.get('kind', ''))

    @property
    def api_version(self) -> str:
        return cast(str, self.get('apiVersion', ''))

    @property
    def metadata(self) -> Mapping[str, Any]:
        return cast(Mapping[str, Any], self.get('metadata') or {})

    @property
    def meta(self) -> Mapping[str, Any]:
        return self.metadata

    @property
    def spec(self) -> Mapping[str, Any]:
        return cast(Mapping[str, Any], self.get('spec') or {})

    @property
    def status(self) -> Mapping[str, Any]:
        return cast(Mapping[str, Any], self.get('status') or {})

    @property
    def name(self) -> Optional[str]:
        return cast(Optional[str], self.metadata.get('name'))

    @property
    def namespace(self) -> references.Namespace:
        return cast(references.Namespace, self.metadata.get('namespace'))

    @property
    def labels(self) -> Labels:
        return cast(Labels, self.metadata.get('labels') or {})


T = TypeVar('T')

# Anything that makes a caller-side object from a raw body: e.g. `Body` itself.
Decoder = Callable[[RawBody], T]


def decode(raw: RawBody, decoder: Optional[Callable[[RawBody], Any]] = None) -> Any:
    return (decoder or Body)(raw)


def as_payload(obj: Any) -> Mapping[str, Any]:
    """
    Convert a caller-side object to a JSON-serialisable payload.
    """
    if isinstance(obj, Mapping):
        return obj
    elif hasattr(obj, 'to_dict') and callable(obj.to_dict):
        return cast(Mapping[str, Any], obj.to_dict())
    elif dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    else:
        raise TypeError(f"Cannot convert to a JSON payload: {obj!r}")


def list_items(raw: Mapping[str, Any]) -> List[RawBody]:
    """
    Extract the items of a list, and restore their identities.

    The list's items have no ``kind``/``apiVersion`` of their own
    in some versions of K8s, so the list's ones are used as the defaults.
    """
    kind = cast(str, raw.get('kind', ''))
    item_kind = kind[:-4] if kind.endswith('List') else kind
    api_version = raw.get('apiVersion')
    items: List[RawBody] = []
    for item in raw.get('items') or []:
        if 'kind' not in item:
            item = dict(item, kind=item_kind)
        if 'apiVersion' not in item:
            item = dict(item, apiVersion=api_version)
        items.append(cast(RawBody, item))
    return items


class PropagationPolicy(str, enum.Enum):
    FOREGROUND = 'Foreground'
    BACKGROUND = 'Background'
    ORPHAN = 'Orphan'


class DeleteOptions(TypedDict, total=False):
    apiVersion: str
    kind: str
    propagationPolicy: str
    gracePeriodSeconds: int
    preconditions: Mapping[str, str]


def build_delete_options(
        policy: PropagationPolicy,
        options: Optional[Mapping[str, Any]] = None,
) -> DeleteOptions:
    """
    Construct the deletion options; the propagation policy always wins.
    """
    body = dict(options or {})
    body.setdefault('apiVersion', 'v1')
    body.setdefault('kind', 'DeleteOptions')
    body['propagationPolicy'] = policy.value
    return cast(DeleteOptions, body)


def build_scale(namespace: str, name: str, replicas: int) -> RawBody:
    return {
        'apiVersion': 'extensions/v1beta1',
        'kind': 'Scale',
        'metadata': {'namespace': namespace, 'name': name},
        'spec': {'replicas': replicas},
    }


def build_deployment_request(name: str) -> Mapping[str, Any]:
    return {
        'kind': 'DeploymentRequest',
        'apiVersion': 'apps.openshift.io/v1',
        'name': name,
        'latest': True,
        'force': True,
    }


class ObjectReference(TypedDict, total=False):
    apiVersion: str
    kind: str
    namespace: Optional[str]
    name: str


def build_object_reference(
        resource: references.Identifiable,
) -> ObjectReference:
    """
    Construct an object reference for the logs.

    Keep in mind that some fields can be absent: e.g. ``namespace``
    for cluster resources, or ``name`` for the lists.
    """
    identity = references.identify(resource)
    ref = dict(
        apiVersion=identity.api_version,
        kind=identity.kind,
        name=identity.name,
        namespace=identity.namespace,
    )
    return cast(ObjectReference, {key: val for key, val in ref.items() if val})
