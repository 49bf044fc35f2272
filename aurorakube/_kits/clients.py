import asyncio
import dataclasses
from typing import Any, Callable, Collection, Dict, List, Mapping, Optional

import aiohttp

from aurorakube._cogs.clients import access, auth, creating, deleting, deploying, \
                                     fetching, proxying, replacing, watching
from aurorakube._cogs.configs import configuration
from aurorakube._cogs.helpers import typedefs
from aurorakube._cogs.structs import bodies, credentials, references
from aurorakube._core import loggers

Decoder = Optional[Callable[[bodies.RawBody], Any]]


class KubernetesClient:
    """
    The client of K8s API: all the resource operations as coroutines.

    Usage::

        async with KubernetesClient.service_account() as client:
            project = await client.get(Descriptor('Project', 'project.openshift.io/v1', name='aurora'))
            pods = await client.get_many(Descriptor('Pod', 'v1', namespace='aurora'))

    The client's configuration is never modified after the construction.
    The aiohttp session is created on the first request, in the event loop
    of that request; so, the client must be used in one event loop only.
    """

    def __init__(
            self,
            *,
            settings: Optional[configuration.ClientSettings] = None,
            token_fetcher: Optional[credentials.TokenFetcher] = None,
            logger: Optional[typedefs.Logger] = None,
            session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__()
        self.settings = settings if settings is not None else configuration.ClientSettings()
        self.token_fetcher = token_fetcher if token_fetcher is not None else credentials.NoopTokenFetcher()
        self.logger = logger if logger is not None else loggers.logger
        self._session = session
        self._context: Optional[auth.APIContext] = None

    @classmethod
    def for_token(
            cls,
            url: str,
            token: str,
            *,
            settings: Optional[configuration.ClientSettings] = None,
            **kwargs: Any,
    ) -> "KubernetesClient":
        """ A client for a specific user's token, e.g. from a web request. """
        settings = settings if settings is not None else configuration.ClientSettings()
        settings = dataclasses.replace(settings, cluster=dataclasses.replace(settings.cluster, url=url))
        return cls(settings=settings, token_fetcher=credentials.StaticTokenFetcher(token), **kwargs)

    @classmethod
    def service_account(
            cls,
            settings: Optional[configuration.ClientSettings] = None,
            **kwargs: Any,
    ) -> "KubernetesClient":
        """ A client with the pod's service account (or the kubeconfig's user if run locally). """
        settings = settings if settings is not None else configuration.ClientSettings()
        fetcher = credentials.FileTokenFetcher(settings.cluster.token_location)
        return cls(settings=settings, token_fetcher=fetcher, **kwargs)

    @classmethod
    def projected(
            cls,
            settings: Optional[configuration.ClientSettings] = None,
            **kwargs: Any,
    ) -> "KubernetesClient":
        """ A client with the projected service-account tokens: ``audience=`` is required per call. """
        settings = settings if settings is not None else configuration.ClientSettings()
        fetcher = credentials.ProjectedTokenFetcher(settings.cluster.psat_location)
        return cls(settings=settings, token_fetcher=fetcher, **kwargs)

    @property
    def context(self) -> auth.APIContext:
        if self._context is None:
            info = credentials.ConnectionInfo(
                server=self.settings.cluster.url,
                ca_path=self.settings.cluster.ca_location,
                insecure=self.settings.cluster.insecure,
            )
            self._context = auth.APIContext(
                info,
                settings=self.settings,
                token_fetcher=self.token_fetcher,
                session=self._session,
            )
        return self._context

    async def close(self) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None

    async def __aenter__(self) -> "KubernetesClient":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    def _logger(self, resource: references.Identifiable) -> typedefs.Logger:
        return loggers.ResourceLogger(resource, base=self.logger)

    def _kwargs(self, **kwargs: Any) -> Dict[str, Any]:
        return dict(kwargs, settings=self.settings, context=self.context)

    async def get(
            self,
            resource: references.Identifiable,
            *,
            token: Optional[str] = None,
            audience: Optional[str] = None,
            decoder: Decoder = None,
    ) -> Any:
        return await fetching.get(resource, **self._kwargs(
            token=token, audience=audience, decoder=decoder, logger=self._logger(resource)))

    async def get_or_none(
            self,
            resource: references.Identifiable,
            *,
            token: Optional[str] = None,
            audience: Optional[str] = None,
            decoder: Decoder = None,
    ) -> Optional[Any]:
        return await fetching.get_or_none(resource, **self._kwargs(
            token=token, audience=audience, decoder=decoder, logger=self._logger(resource)))

    async def get_many(
            self,
            resource: references.Identifiable,
            *,
            labels: Optional[references.Labels] = None,
            token: Optional[str] = None,
            audience: Optional[str] = None,
            decoder: Decoder = None,
    ) -> List[Any]:
        return await fetching.get_many(resource, labels=labels, **self._kwargs(
            token=token, audience=audience, decoder=decoder, logger=self.logger))

    async def get_image_stream_tag(
            self,
            namespace: str,
            name: str,
            tag: str,
            *,
            token: Optional[str] = None,
            audience: Optional[str] = None,
            decoder: Decoder = None,
    ) -> Optional[Any]:
        return await fetching.get_image_stream_tag(namespace, name, tag, **self._kwargs(
            token=token, audience=audience, decoder=decoder, logger=self.logger))

    async def post(
            self,
            resource: references.Identifiable,
            payload: Optional[Any] = None,
            *,
            token: Optional[str] = None,
            audience: Optional[str] = None,
            decoder: Decoder = None,
    ) -> Any:
        return await creating.post(resource, payload, **self._kwargs(
            token=token, audience=audience, decoder=decoder, logger=self._logger(resource)))

    async def put(
            self,
            resource: references.Identifiable,
            payload: Optional[Any] = None,
            *,
            token: Optional[str] = None,
            audience: Optional[str] = None,
            decoder: Decoder = None,
    ) -> Any:
        return await replacing.put(resource, payload, **self._kwargs(
            token=token, audience=audience, decoder=decoder, logger=self._logger(resource)))

    async def delete_foreground(
            self,
            resource: references.Identifiable,
            options: Optional[Mapping[str, Any]] = None,
            *,
            token: Optional[str] = None,
            audience: Optional[str] = None,
            decoder: Decoder = None,
    ) -> Any:
        return await deleting.delete_foreground(resource, options=options, **self._kwargs(
            token=token, audience=audience, decoder=decoder, logger=self._logger(resource)))

    async def delete_background(
            self,
            resource: references.Identifiable,
            options: Optional[Mapping[str, Any]] = None,
            *,
            token: Optional[str] = None,
            audience: Optional[str] = None,
    ) -> Mapping[str, Any]:
        return await deleting.delete_background(resource, options=options, **self._kwargs(
            token=token, audience=audience, logger=self._logger(resource)))

    async def delete_orphan(
            self,
            resource: references.Identifiable,
            options: Optional[Mapping[str, Any]] = None,
            *,
            token: Optional[str] = None,
            audience: Optional[str] = None,
            decoder: Decoder = None,
    ) -> Any:
        return await deleting.delete_orphan(resource, options=options, **self._kwargs(
            token=token, audience=audience, decoder=decoder, logger=self._logger(resource)))

    async def proxy_get(
            self,
            pod: references.Identifiable,
            port: int,
            path: str,
            *,
            params: Optional[Mapping[str, str]] = None,
            headers: Optional[Dict[str, str]] = None,
            token: Optional[str] = None,
            audience: Optional[str] = None,
            decoder: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        return await proxying.proxy_get(pod, port, path, params=params, headers=headers, **self._kwargs(
            token=token, audience=audience, decoder=decoder, logger=self._logger(pod)))

    async def proxy_post(
            self,
            pod: references.Identifiable,
            port: int,
            path: str,
            payload: Optional[Any] = None,
            *,
            params: Optional[Mapping[str, str]] = None,
            headers: Optional[Dict[str, str]] = None,
            token: Optional[str] = None,
            audience: Optional[str] = None,
            decoder: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        return await proxying.proxy_post(pod, port, path, payload, params=params, headers=headers, **self._kwargs(
            token=token, audience=audience, decoder=decoder, logger=self._logger(pod)))

    async def proxy_delete(
            self,
            pod: references.Identifiable,
            port: int,
            path: str,
            *,
            params: Optional[Mapping[str, str]] = None,
            headers: Optional[Dict[str, str]] = None,
            token: Optional[str] = None,
            audience: Optional[str] = None,
            decoder: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        return await proxying.proxy_delete(pod, port, path, params=params, headers=headers, **self._kwargs(
            token=token, audience=audience, decoder=decoder, logger=self._logger(pod)))

    async def scale_deployment_config(
            self,
            namespace: str,
            name: str,
            replicas: int,
            *,
            token: Optional[str] = None,
            audience: Optional[str] = None,
            decoder: Decoder = None,
    ) -> Any:
        dc = references.Descriptor('DeploymentConfig', 'apps.openshift.io/v1', namespace=namespace, name=name)
        return await deploying.scale_deployment_config(namespace, name, replicas, **self._kwargs(
            token=token, audience=audience, decoder=decoder, logger=self._logger(dc)))

    async def rollout_deployment_config(
            self,
            namespace: str,
            name: str,
            *,
            token: Optional[str] = None,
            audience: Optional[str] = None,
            decoder: Decoder = None,
    ) -> Any:
        dc = references.Descriptor('DeploymentConfig', 'apps.openshift.io/v1', namespace=namespace, name=name)
        return await deploying.rollout_deployment_config(namespace, name, **self._kwargs(
            token=token, audience=audience, decoder=decoder, logger=self._logger(dc)))

    async def current_user(
            self,
            token: str,
            *,
            decoder: Decoder = None,
    ) -> Optional[Any]:
        return await access.current_user(token, **self._kwargs(decoder=decoder, logger=self.logger))

    async def review_access(
            self,
            review: Any,
            *,
            token: Optional[str] = None,
            audience: Optional[str] = None,
            decoder: Decoder = None,
    ) -> Any:
        return await access.review_access(review, **self._kwargs(
            token=token, audience=audience, decoder=decoder, logger=self.logger))

    async def watch(
            self,
            resource: references.Identifiable,
            handler: watching.WatchHandler,
            *,
            types: Collection[str] = (),
            stopper: Optional[asyncio.Future] = None,
            token: Optional[str] = None,
            audience: Optional[str] = None,
    ) -> None:
        await watching.watch(resource, handler, types=types, stopper=stopper, **self._kwargs(
            token=token, audience=audience, logger=self.logger))
