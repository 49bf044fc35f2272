from typing import Any, Callable, Optional

from aurorakube._cogs.clients import api, auth, errors
from aurorakube._cogs.configs import configuration
from aurorakube._cogs.helpers import typedefs
from aurorakube._cogs.structs import bodies, references


async def post(
        resource: references.Identifiable,
        payload: Optional[Any] = None,
        *,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        decoder: Optional[Callable[[bodies.RawBody], Any]] = None,
) -> Any:
    """
    Create a resource in the collection it belongs to.

    The payload is the resource itself unless passed explicitly: e.g.
    when the resource is addressed by a descriptor or a 3rd-party object.
    """
    identity = references.identify(resource)
    body = bodies.as_payload(payload if payload is not None else resource)
    try:
        created_body: bodies.RawBody = await api.post(
            url=references.build_url(references.resolve(identity, collection=True)),
            payload=body,
            purpose=f"create {references.describe(identity)}",
            token=token,
            audience=audience,
            context=context,
            settings=settings,
            logger=logger,
        )
    except errors.APINotFoundError as e:
        raise errors.ResourceNotFoundError(
            kind=identity.kind, namespace=identity.namespace, name=identity.name) from e
    return bodies.decode(created_body, decoder)
