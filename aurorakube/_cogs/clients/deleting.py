"""
Deletion of the resources with the explicit propagation policies.

* Foreground: the resource is marked for deletion and stays visible until
  all its dependents are deleted; the resource itself is returned.
* Background: the resource is deleted immediately, the dependents are
  garbage-collected later; the ``Status`` of the deletion is returned.
* Orphan: the resource is deleted, the dependents are kept;
  the resource itself is returned.
"""
from typing import Any, Callable, Mapping, Optional

from aurorakube._cogs.clients import api, auth, errors
from aurorakube._cogs.configs import configuration
from aurorakube._cogs.helpers import typedefs
from aurorakube._cogs.structs import bodies, references


async def delete(
        resource: references.Identifiable,
        *,
        policy: bodies.PropagationPolicy,
        options: Optional[Mapping[str, Any]] = None,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        decoder: Optional[Callable[[bodies.RawBody], Any]] = None,
) -> Any:
    identity = references.identify(resource)
    try:
        rsp: bodies.RawBody = await api.delete(
            url=references.build_url(references.resolve(identity)),
            payload=bodies.build_delete_options(policy, options),
            purpose=f"delete {references.describe(identity)} ({policy.value.lower()})",
            token=token,
            audience=audience,
            context=context,
            settings=settings,
            logger=logger,
        )
    except errors.APINotFoundError as e:
        raise errors.ResourceNotFoundError(
            kind=identity.kind, namespace=identity.namespace, name=identity.name) from e

    # The background deletion reports its status, not the resource: never decode it as such.
    if policy == bodies.PropagationPolicy.BACKGROUND:
        return rsp
    return bodies.decode(rsp, decoder)


async def delete_foreground(
        resource: references.Identifiable,
        *,
        options: Optional[Mapping[str, Any]] = None,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        decoder: Optional[Callable[[bodies.RawBody], Any]] = None,
) -> Any:
    return await delete(
        resource,
        policy=bodies.PropagationPolicy.FOREGROUND,
        options=options,
        token=token,
        audience=audience,
        decoder=decoder,
        context=context,
        settings=settings,
        logger=logger,
    )


async def delete_background(
        resource: references.Identifiable,
        *,
        options: Optional[Mapping[str, Any]] = None,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
) -> Mapping[str, Any]:
    return await delete(
        resource,
        policy=bodies.PropagationPolicy.BACKGROUND,
        options=options,
        token=token,
        audience=audience,
        context=context,
        settings=settings,
        logger=logger,
    )


async def delete_orphan(
        resource: references.Identifiable,
        *,
        options: Optional[Mapping[str, Any]] = None,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        decoder: Optional[Callable[[bodies.RawBody], Any]] = None,
) -> Any:
    return await delete(
        resource,
        policy=bodies.PropagationPolicy.ORPHAN,
        options=options,
        token=token,
        audience=audience,
        decoder=decoder,
        context=context,
        settings=settings,
        logger=logger,
    )
