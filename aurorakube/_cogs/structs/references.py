"""
Addressing of the resources in K8s API: from a resource's identity to a URL.

Any object that exposes its identity (kind, API version, namespace, name,
labels) can be addressed -- see :class:`HasIdentity`. The client never looks
into the business fields of the resources, only into their identities.
Raw bodies as JSON-decoded from K8s API are also accepted (see `identify`).

The URLs are built in two steps: first, a URL template with placeholders
and a map of variables is resolved (see :class:`UriTemplate`); then,
the template is expanded into a relative URL with the query parameters.
Both steps are pure: they do no i/o and keep no state between the calls.
"""
import collections.abc
import dataclasses
import enum
import urllib.parse
from typing import Any, Mapping, NewType, Optional, Union

from typing_extensions import Protocol, runtime_checkable

# A specific really existing addressable namespace (at least, the one assumed to be so).
NamespaceName = NewType('NamespaceName', str)

# A namespace reference usable in the API calls. `None` means cluster-wide API calls.
Namespace = Optional[NamespaceName]

# The label selectors as accepted in the calls. `None` or empty values mean "the key exists".
Labels = Mapping[str, Optional[str]]

# The characters kept as is in the expanded URL variables: e.g. "name:tag" or proxied paths.
SAFE_CHARS = ':/'


@runtime_checkable
class HasIdentity(Protocol):
    """
    The capability of a resource to be addressed in K8s API.

    ``kind`` and ``api_version`` are always present.
    ``namespace`` and ``name`` are independently optional, which gives
    four shapes of URLs: cluster-wide or namespaced, lists or individual items.
    """

    @property
    def kind(self) -> str: ...

    @property
    def api_version(self) -> str: ...

    @property
    def namespace(self) -> Optional[str]: ...

    @property
    def name(self) -> Optional[str]: ...

    @property
    def labels(self) -> Labels: ...


@dataclasses.dataclass(frozen=True)
class Descriptor:
    """
    A minimal identity of a resource, when the resource itself is not at hand.

    Usage::

        Descriptor('Project', 'project.openshift.io/v1', name='aurora')
        Descriptor('Pod', 'v1', namespace='ns1', labels={'app': 'web'})
    """
    kind: str
    api_version: str
    namespace: Optional[str] = None
    name: Optional[str] = None
    labels: Labels = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.kind:
            raise ValueError("The resource kind must be specified.")
        if not self.api_version:
            raise ValueError("The resource API version must be specified.")


Identifiable = Union[HasIdentity, Mapping[str, Any]]


def identify(resource: Identifiable) -> HasIdentity:
    """
    Get the identity of either a resource object or its raw body.

    The raw bodies are the mappings as JSON-decoded from/to K8s API,
    with the identity in ``apiVersion``, ``kind``, and ``metadata``.
    """
    if isinstance(resource, collections.abc.Mapping):
        metadata = resource.get('metadata') or {}
        return Descriptor(
            kind=resource.get('kind') or '',
            api_version=resource.get('apiVersion') or '',
            namespace=metadata.get('namespace'),
            name=metadata.get('name'),
            labels=dict(metadata.get('labels') or {}),
        )
    elif isinstance(resource, HasIdentity):
        return resource
    else:
        raise TypeError(f"The resource has no identity to be addressed with: {resource!r}")


def describe(identity: HasIdentity) -> str:
    """ A human-readable identity for the logs: e.g. ``Pod ns1/pod1`` or ``Project aurora``. """
    path = '/'.join(part for part in [identity.namespace, identity.name] if part)
    return f'{identity.kind} {path}' if path else identity.kind


def pluralize(word: str) -> str:
    """
    Make a plural form of a word as K8s does for the resource kinds.

    It is not a general-purpose English pluraliser: e.g., "policy" becomes
    "policys", not "policies". It is good enough for the kinds it is used for.
    Irregular kinds should be addressed via the `ApiGroup` table instead.
    """
    return f'{word}es' if word.endswith('s') else f'{word}s'


def label_selector(labels: Optional[Labels]) -> str:
    """
    Render the labels as a selector: ``{a: "", b: "v"}`` becomes ``"a,b=v"``.
    """
    return ','.join(key if not value else f'{key}={value}' for key, value in (labels or {}).items())


@dataclasses.dataclass(frozen=True)
class UriTemplate:
    """
    A URL path with ``{placeholders}`` and the values to put there.

    The template is kept separate from the values so that it can be logged
    and compared regardless of the specific namespaces & names.
    """
    template: str
    variables: Mapping[str, Optional[str]]

    def expand(self) -> str:
        values = {
            key: urllib.parse.quote(str(value), safe=SAFE_CHARS) if value is not None else ''
            for key, value in self.variables.items()
        }
        return self.template.format_map(values)


def resolve(
        resource: Identifiable,
        *,
        suffix: str = '',
        variables: Optional[Mapping[str, str]] = None,
        collection: bool = False,
) -> UriTemplate:
    """
    Resolve a URL template for a resource, as per its identity.

    If the namespace is not set, a cluster-wide URL is returned.
    If the name is not set (or a collection is requested explicitly),
    the URL for the resource list is returned.

    The suffix goes right after the name (e.g. ``/scale``, ``/instantiate``)
    and can contain its own placeholders, expanded from the extra variables.
    """
    identity = identify(resource)
    name = None if collection else identity.name
    namespace = identity.namespace
    root = '/api' if identity.api_version == 'v1' else '/apis'
    ns_part = '/namespaces/{namespace}' if namespace else ''
    name_part = '/{name}' if name else ''
    return UriTemplate(
        template=f'{root}/{identity.api_version}{ns_part}/{{kind}}{name_part}{suffix}',
        variables=dict(
            {'namespace': namespace, 'kind': pluralize(identity.kind.lower()), 'name': name},
            **(variables or {}),
        ),
    )


def build_url(
        uri: UriTemplate,
        *,
        labels: Optional[Labels] = None,
        params: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Expand the URL template into a URL to be used with K8s API.

    Labels go to the ``labelSelector`` query parameter (if not empty);
    params go to the other query parameters (``?param1=value1&...``).
    """
    query_params = dict(params or {})
    if labels:
        query_params['labelSelector'] = label_selector(labels)
    query = urllib.parse.urlencode(query_params, encoding='utf-8') if query_params else ''
    path = uri.expand()
    return path + ('?' if query else '') + query


class ApiGroup(enum.Enum):
    """
    The specially routed API endpoints, which deviate from the generic CRUD.

    Their paths are fixed and cannot be derived from the resource kinds:
    e.g., sub-resources of deployment configs, or "the current user".
    """

    DEPLOYMENTCONFIG_SCALE = ('apps.openshift.io/v1', 'deploymentconfigs', '/scale', None)
    DEPLOYMENT_REQUEST = ('apps.openshift.io/v1', 'deploymentconfigs', '/instantiate', None)
    SELF_SUBJECT_ACCESS_REVIEW = ('authorization.k8s.io/v1', 'selfsubjectaccessreviews', '', None)
    CURRENT_USER = ('user.openshift.io/v1', 'users', '', '~')
    IMAGE_STREAM_TAG = ('image.openshift.io/v1', 'imagestreamtags', '', None)

    def __init__(self, api_version: str, plural: str, suffix: str, fixed_name: Optional[str]) -> None:
        self.api_version = api_version
        self.plural = plural
        self.suffix = suffix
        self.fixed_name = fixed_name

    @property
    def prefix(self) -> str:
        return '/api/v1' if self.api_version == 'v1' else f'/apis/{self.api_version}'

    def uri(self, namespace: Optional[str] = None, name: Optional[str] = None) -> UriTemplate:
        name = self.fixed_name if self.fixed_name is not None else name
        ns_part = '/namespaces/{namespace}' if namespace else ''
        name_part = '/{name}' if name else ''
        return UriTemplate(
            template=f'{self.prefix}{ns_part}/{{kind}}{name_part}{self.suffix}',
            variables={'namespace': namespace, 'kind': self.plural, 'name': name},
        )


def image_stream_tag_name(name: str, tag: str) -> str:
    return f'{name}:{tag}'
