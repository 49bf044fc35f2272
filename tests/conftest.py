import asyncio
import json
import logging
import re
from unittest.mock import AsyncMock, MagicMock

import aresponses as aresponses_module
import pytest

from aurorakube._cogs.clients.auth import APIContext
from aurorakube._cogs.configs.configuration import ClientSettings, ClusterSettings
from aurorakube._cogs.structs.credentials import ConnectionInfo, StaticTokenFetcher
from aurorakube._kits.clients import KubernetesClient


def pytest_configure(config):
    config.addinivalue_line('markers', "e2e: end-to-end tests with a fake API server.")


#
# Mocks for Kubernetes API clients (aiohttp). Used in the request-level tests:
# 1. We do not test aiohttp, we test the layers on top of it,
#    so everything low-level should be mocked and assumed to be functional.
# 2. No external calls must be made under any circumstances.
#    The unit-tests must be fully isolated from the environment.
#

@pytest.fixture()
def hostname():
    """ A fake hostname to be used in all aiohttp/aresponses tests. """
    return 'fake-host'


@pytest.fixture()
def settings(hostname):
    return ClientSettings(cluster=ClusterSettings(url=f'https://{hostname}', ca_location=None))


@pytest.fixture()
def logger():
    return logging.getLogger('aurorakube.tests')


@pytest.fixture()
def token_fetcher():
    return StaticTokenFetcher('fixture-token')


@pytest.fixture()
async def aresponses():
    """
    The fake API server, replacing the plugin's fixture to stay in the test's event-loop.
    """
    async with aresponses_module.ResponsesMockServer(loop=asyncio.get_running_loop()) as server:
        yield server


@pytest.fixture()
async def context(hostname, settings, token_fetcher):
    info = ConnectionInfo(server=f'https://{hostname}')
    context = APIContext(info, settings=settings, token_fetcher=token_fetcher)
    try:
        yield context
    finally:
        await context.close()


@pytest.fixture()
async def client(settings, token_fetcher):
    client = KubernetesClient(settings=settings, token_fetcher=token_fetcher)
    try:
        yield client
    finally:
        await client.close()


@pytest.fixture()
def resp_mocker(aresponses):
    """
    A factory of server-side callbacks for `aresponses` with mocking/spying.

    The value of the fixture is a function, which return a coroutine mock.
    That coroutine mock should be passed to `aresponses.add` as a response
    callback function. When called, it calls the mock defined by the function's
    arguments (specifically, return_value or side_effects).

    The difference from passing the responses directly to `aresponses.add`
    is that it is possible to assert on whether the response was handled
    by that callback at all (i.e. HTTP URL & method matched), especially
    if there are multiple responses registered.

    Sample usage::

        def test_me(resp_mocker):
            response = aiohttp.web.json_response({'a': 'b'})
            callback = resp_mocker(return_value=response)
            aresponses.add(hostname, '/path/', 'get', callback)
            do_something()
            assert callback.called
            assert callback.call_count == 1
            assert callback.call_args[0][0]['data'] == {...}
    """
    def resp_maker(*args, **kwargs):
        actual_response = MagicMock(*args, **kwargs)

        async def resp_mock_effect(request):

            # The request's content can be read inside of the handler only. We preserve
            # the data into a conventional field, so that they could be asserted later.
            text = await request.text()
            try:
                request['data'] = json.loads(text) if text else None
            except json.JSONDecodeError:
                request['data'] = text

            # Get a response/error as it was intended (via return_value/side_effect).
            response = actual_response()
            return response

        return AsyncMock(side_effect=resp_mock_effect)
    return resp_maker


#
# Helpers for the logging checks.
#

@pytest.fixture()
def assert_logs(caplog):
    """
    A function to assert the logs are present (by pattern).

    The listed message patterns MUST be present, in the order specified.
    Some other log messages can also be present, but they are ignored.
    """
    caplog.set_level(logging.DEBUG)

    def assert_logs_fn(patterns=(), prohibited=(), strict=False):
        __traceback_hide__ = True
        remaining_patterns = list(patterns)
        for message in caplog.messages:
            # The expected pattern is at position 0.
            # Looking-ahead: if one of the following patterns matches, while the
            # 0th does not, then the log message is missing, and we fail the test.
            for idx, pattern in enumerate(remaining_patterns):
                m = re.search(pattern, message)
                if m:
                    if idx == 0:
                        remaining_patterns[:1] = []
                        break  # out of `remaining_patterns` cycle
                    else:
                        skipped_patterns = remaining_patterns[:idx]
                        raise AssertionError(f"Few patterns were skipped: {skipped_patterns!r}")
                elif strict:
                    raise AssertionError(f"Unexpected log message: {message!r}")

            # Check that the prohibited patterns do not appear in any message.
            for pattern in prohibited:
                m = re.search(pattern, message)
                if m:
                    raise AssertionError(f"Prohibited log pattern found: {message!r} ~ {pattern!r}")

        # If all patterns have been matched in order, we are done.
        # if some are left, but the messages are over, then we fail.
        if remaining_patterns:
            raise AssertionError(f"Few patterns were missed: {remaining_patterns!r}")

    return assert_logs_fn
