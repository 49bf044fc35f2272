"""
Who the client is and what it is allowed to do.
"""
from typing import Any, Callable, Optional

from aurorakube._cogs.clients import api, auth, errors
from aurorakube._cogs.configs import configuration
from aurorakube._cogs.helpers import typedefs
from aurorakube._cogs.structs import bodies, references


async def current_user(
        token: str,
        *,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        decoder: Optional[Callable[[bodies.RawBody], Any]] = None,
) -> Optional[Any]:
    """
    Get the user that owns the token, or ``None`` if the token is not valid.
    """
    uri = references.ApiGroup.CURRENT_USER.uri()
    try:
        rsp: bodies.RawBody = await api.get(
            url=references.build_url(uri),
            purpose="get the current user",
            token=token,
            context=context,
            settings=settings,
            logger=logger,
        )
    except (errors.APIUnauthorizedError, errors.APINotFoundError) as e:
        logger.debug(f"The token owner is not found: {e}")
        return None
    return bodies.decode(rsp, decoder)


async def review_access(
        review: Any,
        *,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        decoder: Optional[Callable[[bodies.RawBody], Any]] = None,
) -> Any:
    """
    Check if the client is allowed to perform an action (``SelfSubjectAccessReview``).

    The verdict is in the ``status.allowed`` field of the returned review.
    """
    uri = references.ApiGroup.SELF_SUBJECT_ACCESS_REVIEW.uri()
    rsp: bodies.RawBody = await api.post(
        url=references.build_url(uri),
        payload=bodies.as_payload(review),
        purpose="review the access",
        token=token,
        audience=audience,
        context=context,
        settings=settings,
        logger=logger,
    )
    return bodies.decode(rsp, decoder)
