from typing import Any, Callable, List, Optional

from aurorakube._cogs.clients import api, auth, errors
from aurorakube._cogs.configs import configuration
from aurorakube._cogs.helpers import typedefs
from aurorakube._cogs.structs import bodies, references


async def get(
        resource: references.Identifiable,
        *,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        decoder: Optional[Callable[[bodies.RawBody], Any]] = None,
) -> Any:
    """
    Fetch a single resource by its identity; it must exist.
    """
    identity = references.identify(resource)
    try:
        raw_body: bodies.RawBody = await api.get(
            url=references.build_url(references.resolve(identity)),
            purpose=f"get {references.describe(identity)}",
            token=token,
            audience=audience,
            context=context,
            settings=settings,
            logger=logger,
        )
    except errors.APINotFoundError as e:
        raise errors.ResourceNotFoundError(
            kind=identity.kind, namespace=identity.namespace, name=identity.name) from e
    return bodies.decode(raw_body, decoder)


async def get_or_none(
        resource: references.Identifiable,
        *,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        decoder: Optional[Callable[[bodies.RawBody], Any]] = None,
) -> Optional[Any]:
    """
    Fetch a single resource by its identity, or ``None`` if it does not exist.
    """
    try:
        return await get(
            resource,
            token=token,
            audience=audience,
            decoder=decoder,
            context=context,
            settings=settings,
            logger=logger,
        )
    except errors.ResourceNotFoundError:
        return None


async def get_many(
        resource: references.Identifiable,
        *,
        labels: Optional[references.Labels] = None,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        decoder: Optional[Callable[[bodies.RawBody], Any]] = None,
) -> List[Any]:
    """
    List the resources of a specific kind, optionally filtered by labels.

    The cluster-scoped call is used if the namespace is not set;
    otherwise, the namespace-scoped call is used. The name is ignored.
    If the labels are not passed explicitly, the resource's own labels are used.

    A non-existent kind or namespace (HTTP 404) is treated as an empty list.
    """
    identity = references.identify(resource)
    labels = labels if labels is not None else identity.labels
    try:
        rsp = await api.get(
            url=references.build_url(references.resolve(identity, collection=True), labels=labels),
            purpose=f"list {identity.kind} in {identity.namespace or 'all namespaces'}",
            token=token,
            audience=audience,
            context=context,
            settings=settings,
            logger=logger,
        )
    except errors.APINotFoundError:
        return []
    return [bodies.decode(item, decoder) for item in bodies.list_items(rsp)]


async def get_image_stream_tag(
        namespace: str,
        name: str,
        tag: str,
        *,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        decoder: Optional[Callable[[bodies.RawBody], Any]] = None,
) -> Optional[Any]:
    """
    Fetch an image stream tag (``name:tag``), or ``None`` if it does not exist.
    """
    uri = references.ApiGroup.IMAGE_STREAM_TAG.uri(
        namespace=namespace, name=references.image_stream_tag_name(name, tag))
    try:
        raw_body: bodies.RawBody = await api.get(
            url=references.build_url(uri),
            purpose=f"get ImageStreamTag {namespace}/{name}:{tag}",
            token=token,
            audience=audience,
            context=context,
            settings=settings,
            logger=logger,
        )
    except errors.APINotFoundError:
        return None
    return bodies.decode(raw_body, decoder)
