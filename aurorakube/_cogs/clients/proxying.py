"""
Proxying the HTTP requests to the pods via the K8s API server.

The pods' own endpoints (e.g. the management interfaces of the applications)
are less reliable than K8s API, so all failures except the client-side ones
are retried (see the lenient mode of `api.request`). The pods' responses are
expected to be JSON, but their content types are not enforced.
"""
from typing import Any, Callable, Dict, Mapping, Optional

from aurorakube._cogs.clients import api, auth, errors
from aurorakube._cogs.configs import configuration
from aurorakube._cogs.helpers import typedefs
from aurorakube._cogs.structs import bodies, references

PROXY_SUFFIX = ':{port}/proxy{path}'


def build_proxy_url(
        pod: references.Identifiable,
        port: int,
        path: str,
        params: Optional[Mapping[str, str]] = None,
) -> str:
    path = path if path.startswith('/') else f'/{path}'
    uri = references.resolve(pod, suffix=PROXY_SUFFIX, variables={'port': str(port), 'path': path})
    return references.build_url(uri, params=params)


async def proxy_get(
        pod: references.Identifiable,
        port: int,
        path: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        decoder: Optional[Callable[[Any], Any]] = None,
) -> Any:
    identity = references.identify(pod)
    try:
        rsp = await api.get(
            url=build_proxy_url(identity, port, path, params),
            headers=headers,
            lenient=True,
            purpose=f"proxy GET to {references.describe(identity)}:{port}",
            token=token,
            audience=audience,
            context=context,
            settings=settings,
            logger=logger,
        )
    except errors.APINotFoundError as e:
        raise errors.ResourceNotFoundError(
            kind=identity.kind, namespace=identity.namespace, name=identity.name) from e
    return decoder(rsp) if decoder is not None else rsp


async def proxy_post(
        pod: references.Identifiable,
        port: int,
        path: str,
        payload: Optional[Any] = None,
        *,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        decoder: Optional[Callable[[Any], Any]] = None,
) -> Any:
    identity = references.identify(pod)
    try:
        rsp = await api.post(
            url=build_proxy_url(identity, port, path, params),
            payload=bodies.as_payload(payload) if payload is not None else None,
            headers=headers,
            lenient=True,
            purpose=f"proxy POST to {references.describe(identity)}:{port}",
            token=token,
            audience=audience,
            context=context,
            settings=settings,
            logger=logger,
        )
    except errors.APINotFoundError as e:
        raise errors.ResourceNotFoundError(
            kind=identity.kind, namespace=identity.namespace, name=identity.name) from e
    return decoder(rsp) if decoder is not None else rsp


async def proxy_delete(
        pod: references.Identifiable,
        port: int,
        path: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        decoder: Optional[Callable[[Any], Any]] = None,
) -> Any:
    identity = references.identify(pod)
    try:
        rsp = await api.delete(
            url=build_proxy_url(identity, port, path, params),
            headers=headers,
            lenient=True,
            purpose=f"proxy DELETE to {references.describe(identity)}:{port}",
            token=token,
            audience=audience,
            context=context,
            settings=settings,
            logger=logger,
        )
    except errors.APINotFoundError as e:
        raise errors.ResourceNotFoundError(
            kind=identity.kind, namespace=identity.namespace, name=identity.name) from e
    return decoder(rsp) if decoder is not None else rsp
