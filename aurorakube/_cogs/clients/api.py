import asyncio
import itertools
import json
from typing import Any, AsyncIterator, Dict, Optional, Tuple, Type

import aiohttp

from aurorakube._cogs.clients import auth, errors
from aurorakube._cogs.configs import configuration
from aurorakube._cogs.helpers import typedefs

# The errors worth retrying in the default mode: the server-side & network-side ones.
RETRYABLE_ERRORS: Tuple[Type[BaseException], ...] = (
    aiohttp.ClientConnectionError,
    aiohttp.ClientPayloadError,
    errors.APIServerError,
    asyncio.TimeoutError,
)

# The errors worth retrying in the lenient mode: everything except the client-side errors.
LENIENT_ERRORS: Tuple[Type[BaseException], ...] = (
    Exception,
)


@auth.authenticated
async def request(
        method: str,
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        lenient: bool = False,
        parse: bool = False,
        purpose: Optional[str] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> Any:
    """
    Perform a request with retries of the retryable errors.

    In the lenient mode, every failure except the client-side errors (HTTP 4xx)
    is retried, including the broken bodies of the responses -- for which
    the response's body is read and buffered before it is returned.
    The client-side errors are never retried in either mode.

    With `parse=True`, the response's body is parsed as JSON within the attempt,
    and the parsed data is returned instead of the response. The broken or
    prematurely closed bodies are then retried as any other transport errors.
    """
    if '://' not in url:
        url = context.server.rstrip('/') + '/' + url.lstrip('/')

    if timeout is None:
        timeout = auth.make_timeout(settings)

    retryable = LENIENT_ERRORS if lenient else RETRYABLE_ERRORS
    backoffs = settings.retry.backoffs
    count = len(backoffs) + 1
    why = f" ({purpose})" if purpose else ""
    backoff: Optional[float]
    for retry, backoff in enumerate(itertools.chain(backoffs, [None]), start=1):
        idx = f"#{retry}/{count}"
        what = f"{method.upper()} {url}"
        try:
            if retry > 1:
                logger.debug(f"Request attempt {idx}: {what}{why}")

            response = await context.session.request(
                method=method,
                url=url,
                json=payload,
                headers=headers,
                timeout=timeout,
            )
            await errors.check_response(response)
            result: Any = response
            if parse:
                async with response:
                    result = await response.json(content_type=None)
            elif lenient:
                await response.read()

        except errors.APIClientError as e:
            logger.debug(f"Request failed: {what} -> {e!r}{why}")
            raise
        except retryable as e:
            if backoff is None:  # i.e. the last or the only attempt.
                logger.error(f"Request attempt {idx} failed; escalating: {what} -> {e!r}{why}")
                raise
            else:
                logger.error(f"Request attempt {idx} failed; will retry: {what} -> {e!r}{why}")
                await asyncio.sleep(backoff)  # non-awakable! but still cancellable.
        except Exception as e:
            logger.debug(f"Request failed: {what} -> {e!r}{why}")
            raise
        else:
            if retry > 1:
                logger.debug(f"Request attempt {idx} succeeded: {what}{why}")
            return result

    raise RuntimeError("Broken retryable routine.")  # impossible, but needed for type-checking.


async def get(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ClientSettings,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        lenient: bool = False,
        purpose: Optional[str] = None,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> Any:
    return await request(
        method='get',
        url=url,
        headers=headers,
        timeout=timeout,
        lenient=lenient,
        purpose=purpose,
        token=token,
        audience=audience,
        context=context,
        settings=settings,
        logger=logger,
        parse=True,
    )


async def post(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        lenient: bool = False,
        purpose: Optional[str] = None,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> Any:
    return await request(
        method='post',
        url=url,
        payload=payload,
        headers=headers,
        timeout=timeout,
        lenient=lenient,
        purpose=purpose,
        token=token,
        audience=audience,
        context=context,
        settings=settings,
        logger=logger,
        parse=True,
    )


async def put(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        lenient: bool = False,
        purpose: Optional[str] = None,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> Any:
    return await request(
        method='put',
        url=url,
        payload=payload,
        headers=headers,
        timeout=timeout,
        lenient=lenient,
        purpose=purpose,
        token=token,
        audience=audience,
        context=context,
        settings=settings,
        logger=logger,
        parse=True,
    )


async def delete(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        lenient: bool = False,
        purpose: Optional[str] = None,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> Any:
    return await request(
        method='delete',
        url=url,
        payload=payload,
        headers=headers,
        timeout=timeout,
        lenient=lenient,
        purpose=purpose,
        token=token,
        audience=audience,
        context=context,
        settings=settings,
        logger=logger,
        parse=True,
    )


async def stream(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ClientSettings,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        stopper: Optional[asyncio.Future] = None,
        purpose: Optional[str] = None,
        token: Optional[str] = None,
        audience: Optional[str] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> AsyncIterator[Any]:
    response = await request(
        method='get',
        url=url,
        headers=headers,
        timeout=timeout,
        purpose=purpose,
        token=token,
        audience=audience,
        context=context,
        settings=settings,
        logger=logger,
    )
    response_close_callback = lambda _: response.close()  # to remove the positional arg.
    if stopper is not None:
        stopper.add_done_callback(response_close_callback)
    try:
        async with response:
            async for line in iter_jsonlines(response.content):
                yield json.loads(line.decode('utf-8'))
    except aiohttp.ClientConnectionError:
        if stopper is not None and stopper.done():
            pass
        else:
            raise
    finally:
        if stopper is not None:
            stopper.remove_done_callback(response_close_callback)


async def iter_jsonlines(
        content: aiohttp.StreamReader,
        chunk_size: int = 1024 * 1024,
) -> AsyncIterator[bytes]:
    """
    Iterate line by line over the response's content.

    Usage::

        async for line in iter_jsonlines(response.content):
            pass

    This is an equivalent of::

        async for line in response.content:
            pass

    Except that the aiohttp's line iteration fails if the accumulated buffer
    length is above 2**17 bytes, i.e. 128 KB (`aiohttp.streams.DEFAULT_LIMIT`
    for the buffer's low-watermark, multiplied by 2 for the high-watermark).
    Kubernetes secrets and other fields can be much longer, up to MBs in length.
    """

    # Keep at most 2 copies of a yielded line in memory (in the buffer and as a yielded value).
    buffer = b''
    async for data in content.iter_chunked(chunk_size):
        buffer += data
        del data

        start = 0
        index = buffer.find(b'\n', start)
        while index >= 0:
            line = buffer[start:index]
            if line:
                yield line
            del line
            start = index + 1
            index = buffer.find(b'\n', start)

        if start > 0:
            buffer = buffer[start:]

    if buffer:
        yield buffer
