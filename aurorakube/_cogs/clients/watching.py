"""
Watching and streaming watch-events.

The watch-streams are the long-lived GET requests with ``?watch=true``,
which yield one JSON object per line: ``{"type": ..., "object": ...}``.

The individual watching API calls are disconnected by timeouts even if
the stream is fine; the ``410 Gone`` errors are sent in the stream when
the resource version is too old. In both cases, the stream is restarted.
`watch` hides all of this: it re-connects infinitely and only delivers
the events of the requested types to the handler, one by one.
"""
import asyncio
import inspect
from typing import AsyncIterator, Awaitable, Callable, Collection, Dict, Optional, Union, cast

import aiohttp

from aurorakube._cogs.clients import api, auth, errors
from aurorakube._cogs.configs import configuration
from aurorakube._cogs.helpers import typedefs
from aurorakube._cogs.structs import bodies, references

# A handler of the events: either a plain function or a coroutine function.
WatchHandler = Callable[[bodies.RawEvent], Union[None, Awaitable[None]]]

KNOWN_EVENT_TYPES = frozenset(['ADDED', 'MODIFIED', 'DELETED'])


async def watch(
        resource: references.Identifiable,
        handler: WatchHandler,
        *,
        types: Collection[str] = (),
        stopper: Optional[asyncio.Future] = None,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        _iterations: Optional[int] = None,  # used in tests/mocks/fixtures
) -> None:
    """
    Watch the resources and call the handler for every event, infinitely.

    If the stream or the handler fails, the error is logged and the stream
    is restarted. The watching ends only when the task is cancelled or when
    the stopper future is done (e.g. set by another task on shutdown).
    Empty types mean all events; otherwise, only the listed types are handled.
    """
    identity = references.identify(resource)
    where = f'in {identity.namespace!r}' if identity.namespace else 'cluster-wide'
    logger.debug(f"Starting the watch-stream for {identity.kind} {where}.")
    try:
        while _iterations is None or _iterations > 0:  # equivalent to `while True` in non-test mode
            _iterations = None if _iterations is None else _iterations - 1
            if stopper is not None and stopper.done():
                break

            try:
                stream = continuous_watch(
                    identity,
                    stopper=stopper,
                    token=token,
                    audience=audience,
                    context=context,
                    settings=settings,
                    logger=logger,
                )
                async for raw_event in stream:
                    if types and raw_event['type'] not in types:
                        continue
                    result = handler(raw_event)
                    if inspect.isawaitable(result):
                        await result
            except Exception as e:
                logger.exception(f"Error in the watch-stream for {identity.kind} {where}: {e!r}")

            await asyncio.sleep(settings.watching.reconnect_backoff)
    finally:
        logger.debug(f"Stopping the watch-stream for {identity.kind} {where}.")


async def continuous_watch(
        resource: references.Identifiable,
        *,
        stopper: Optional[asyncio.Future] = None,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
) -> AsyncIterator[bodies.RawEvent]:
    """
    Stream the events through the disconnects, as long as the stream is valid.
    """
    identity = references.identify(resource)
    resource_version: Optional[str] = None

    # Repeat through disconnects of the watch as long as the resource version is valid (no errors).
    while stopper is None or not stopper.done():

        stream = watch_objs(
            identity,
            since=resource_version,
            timeout=settings.watching.server_timeout,
            stopper=stopper,
            token=token,
            audience=audience,
            context=context,
            settings=settings,
            logger=logger,
        )
        async for raw_input in stream:
            raw_type = raw_input['type']
            raw_object = raw_input['object']

            # "410 Gone" is for the "resource version too old" error, we must restart watching.
            # The resource versions are lost by k8s after few minutes (5, as per the official doc).
            if raw_type == 'ERROR' and cast(bodies.RawError, raw_object).get('code') == 410:
                logger.debug(f"Restarting the watch-stream for {references.describe(identity)}.")
                return  # out of the regular stream, to the infinite stream.

            # Other watch errors are reported to the watcher.
            if raw_type == 'ERROR':
                raise errors.WatchingError(f"Error in the watch-stream: {raw_object}")

            # Keep the latest seen resource version for continuation of the stream on disconnects.
            body = cast(bodies.RawBody, raw_object)
            resource_version = body.get('metadata', {}).get('resourceVersion', resource_version)

            # Ensure that the event is something we understand and can handle.
            if raw_type not in KNOWN_EVENT_TYPES:
                if raw_type != 'BOOKMARK':
                    logger.warning("Ignoring an unsupported event type: %r", raw_input)
                continue

            yield cast(bodies.RawEvent, raw_input)


async def watch_objs(
        resource: references.Identifiable,
        *,
        since: Optional[str] = None,
        timeout: Optional[float] = None,
        stopper: Optional[asyncio.Future] = None,
        settings: configuration.ClientSettings,
        context: auth.APIContext,
        logger: typedefs.Logger,
        token: Optional[str] = None,
        audience: Optional[str] = None,
) -> AsyncIterator[bodies.RawInput]:
    """
    Watch objects of a specific kind, in a namespace or cluster-wide.

    The resource's labels, if any, filter the watched objects; the name is ignored.
    The stream ends silently on disconnects: it is the caller's job to reconnect.
    """
    identity = references.identify(resource)

    params: Dict[str, str] = {}
    params['watch'] = 'true'
    if since is not None:
        params['resourceVersion'] = since
    if timeout is not None:
        params['timeoutSeconds'] = str(timeout)

    url = references.build_url(
        references.resolve(identity, collection=True),
        labels=identity.labels,
        params=params,
    )

    # Stream the parsed events from the response until it is closed server-side,
    # or until it is closed client-side by the stopper's callbacks.
    try:
        stream = api.stream(
            url=url,
            timeout=aiohttp.ClientTimeout(
                total=settings.watching.client_timeout,
                sock_connect=settings.watching.connect_timeout,
            ),
            stopper=stopper,
            purpose=f"watch {identity.kind}",
            token=token,
            audience=audience,
            context=context,
            settings=settings,
            logger=logger,
        )
        async for raw_input in stream:
            yield cast(bodies.RawInput, raw_input)
    except (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError, asyncio.TimeoutError):
        pass
