"""
The OpenShift's deployment configs: scaling and rolling out.

Both are the sub-resources of the deployment configs, and both are retried
leniently: the deployment controllers are known to fail intermittently.
"""
from typing import Any, Callable, Optional

from aurorakube._cogs.clients import api, auth, errors
from aurorakube._cogs.configs import configuration
from aurorakube._cogs.helpers import typedefs
from aurorakube._cogs.structs import bodies, references


async def scale_deployment_config(
        namespace: str,
        name: str,
        replicas: int,
        *,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        decoder: Optional[Callable[[bodies.RawBody], Any]] = None,
) -> Any:
    """
    Set the number of replicas of a deployment config; the ``Scale`` is returned.
    """
    uri = references.ApiGroup.DEPLOYMENTCONFIG_SCALE.uri(namespace=namespace, name=name)
    try:
        rsp: bodies.RawBody = await api.put(
            url=references.build_url(uri),
            payload=bodies.build_scale(namespace, name, replicas),
            lenient=True,
            purpose=f"scale DeploymentConfig {namespace}/{name} to {replicas}",
            token=token,
            audience=audience,
            context=context,
            settings=settings,
            logger=logger,
        )
    except errors.APINotFoundError as e:
        raise errors.ResourceNotFoundError(kind='DeploymentConfig', namespace=namespace, name=name) from e
    return bodies.decode(rsp, decoder)


async def rollout_deployment_config(
        namespace: str,
        name: str,
        *,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        decoder: Optional[Callable[[bodies.RawBody], Any]] = None,
) -> Any:
    """
    Trigger a new (forced) deployment of the latest version of a deployment config.
    """
    uri = references.ApiGroup.DEPLOYMENT_REQUEST.uri(namespace=namespace, name=name)
    try:
        rsp: bodies.RawBody = await api.post(
            url=references.build_url(uri),
            payload=bodies.build_deployment_request(name),
            lenient=True,
            purpose=f"rollout DeploymentConfig {namespace}/{name}",
            token=token,
            audience=audience,
            context=context,
            settings=settings,
            logger=logger,
        )
    except errors.APINotFoundError as e:
        raise errors.ResourceNotFoundError(kind='DeploymentConfig', namespace=namespace, name=name) from e
    return bodies.decode(rsp, decoder)
