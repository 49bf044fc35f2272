from typing import Any, Callable, Optional

from aurorakube._cogs.clients import api, auth, errors
from aurorakube._cogs.configs import configuration
from aurorakube._cogs.helpers import typedefs
from aurorakube._cogs.structs import bodies, references


async def put(
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
    Replace a resource as a whole (not patch it!).

    The resource version, if present in the payload, is checked by K8s:
    the outdated versions fail with `APIConflictError` (HTTP 409).
    """
    identity = references.identify(resource)
    body = bodies.as_payload(payload if payload is not None else resource)
    try:
        replaced_body: bodies.RawBody = await api.put(
            url=references.build_url(references.resolve(identity)),
            payload=body,
            purpose=f"replace {references.describe(identity)}",
            token=token,
            audience=audience,
            context=context,
            settings=settings,
            logger=logger,
        )
    except errors.APINotFoundError as e:
        raise errors.ResourceNotFoundError(
            kind=identity.kind, namespace=identity.namespace, name=identity.name) from e
    return bodies.decode(replaced_body, decoder)
