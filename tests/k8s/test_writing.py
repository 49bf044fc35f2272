import dataclasses

import aiohttp.web
import pytest

from aurorakube._cogs.clients.creating import post
from aurorakube._cogs.clients.deleting import delete_background, delete_foreground, delete_orphan
from aurorakube._cogs.clients.errors import ResourceNotFoundError
from aurorakube._cogs.clients.replacing import put
from aurorakube._cogs.structs.bodies import Body
from aurorakube._cogs.structs.references import Descriptor

CONFIGMAP = {
    'apiVersion': 'v1',
    'kind': 'ConfigMap',
    'metadata': {'namespace': 'ns1', 'name': 'cm1'},
    'data': {'key': 'value'},
}


@pytest.fixture(autouse=True)
def sleep(mocker):
    return mocker.patch('asyncio.sleep')


async def test_post_of_a_raw_body(
        resp_mocker, aresponses, hostname, settings, logger, context):

    post_mock = resp_mocker(return_value=aiohttp.web.json_response(dict(CONFIGMAP, created=True)))
    aresponses.add(hostname, '/api/v1/namespaces/ns1/configmaps', 'post', post_mock)

    body = await post(CONFIGMAP, settings=settings, logger=logger, context=context)

    assert isinstance(body, Body)
    assert body['created'] is True
    assert post_mock.call_args[0][0]['data'] == CONFIGMAP


async def test_post_of_a_dataclass(
        resp_mocker, aresponses, hostname, settings, logger, context):

    @dataclasses.dataclass
    class ApplicationDeployment:
        name: str
        namespace: str
        kind: str = 'ApplicationDeployment'
        api_version: str = 'skatteetaten.no/v1'
        labels: dict = dataclasses.field(default_factory=dict)

    post_mock = resp_mocker(return_value=aiohttp.web.json_response({}))
    aresponses.add(hostname, '/apis/skatteetaten.no/v1/namespaces/ns1/applicationdeployments',
                   'post', post_mock)

    await post(ApplicationDeployment(name='app1', namespace='ns1'),
               settings=settings, logger=logger, context=context)

    assert post_mock.call_args[0][0]['data'] == {
        'name': 'app1',
        'namespace': 'ns1',
        'kind': 'ApplicationDeployment',
        'api_version': 'skatteetaten.no/v1',
        'labels': {},
    }


async def test_post_with_an_explicit_payload(
        resp_mocker, aresponses, hostname, settings, logger, context):

    post_mock = resp_mocker(return_value=aiohttp.web.json_response(CONFIGMAP))
    aresponses.add(hostname, '/api/v1/namespaces/ns1/configmaps', 'post', post_mock)

    resource = Descriptor('ConfigMap', 'v1', namespace='ns1', name='cm1')
    await post(resource, CONFIGMAP, settings=settings, logger=logger, context=context)

    assert post_mock.call_args[0][0]['data'] == CONFIGMAP


async def test_post_into_absent_namespace(
        resp_mocker, aresponses, hostname, settings, logger, context):

    aresponses.add(hostname, '/api/v1/namespaces/ns1/configmaps', 'post',
                   resp_mocker(return_value=aresponses.Response(status=404)))

    with pytest.raises(ResourceNotFoundError) as err:
        await post(CONFIGMAP, settings=settings, logger=logger, context=context)

    assert err.value.kind == 'ConfigMap'


async def test_put_of_a_raw_body(
        resp_mocker, aresponses, hostname, settings, logger, context):

    put_mock = resp_mocker(return_value=aiohttp.web.json_response(CONFIGMAP))
    aresponses.add(hostname, '/api/v1/namespaces/ns1/configmaps/cm1', 'put', put_mock)

    body = await put(CONFIGMAP, settings=settings, logger=logger, context=context)

    assert body == CONFIGMAP
    assert put_mock.call_args[0][0]['data'] == CONFIGMAP


async def test_put_of_absent_resource(
        resp_mocker, aresponses, hostname, settings, logger, context):

    aresponses.add(hostname, '/api/v1/namespaces/ns1/configmaps/cm1', 'put',
                   resp_mocker(return_value=aresponses.Response(status=404)))

    with pytest.raises(ResourceNotFoundError):
        await put(CONFIGMAP, settings=settings, logger=logger, context=context)


@pytest.mark.parametrize('fn, policy', [
    (delete_foreground, 'Foreground'),
    (delete_orphan, 'Orphan'),
])
async def test_deletion_returns_the_resource(
        resp_mocker, aresponses, hostname, settings, logger, context, fn, policy):

    delete_mock = resp_mocker(return_value=aiohttp.web.json_response(CONFIGMAP))
    aresponses.add(hostname, '/api/v1/namespaces/ns1/configmaps/cm1', 'delete', delete_mock)

    body = await fn(CONFIGMAP, settings=settings, logger=logger, context=context)

    assert isinstance(body, Body)
    assert body.name == 'cm1'
    assert delete_mock.call_args[0][0]['data'] == {
        'apiVersion': 'v1',
        'kind': 'DeleteOptions',
        'propagationPolicy': policy,
    }


async def test_background_deletion_returns_the_status(
        resp_mocker, aresponses, hostname, settings, logger, context):

    status = {'apiVersion': 'v1', 'kind': 'Status', 'status': 'Success'}
    delete_mock = resp_mocker(return_value=aiohttp.web.json_response(status))
    aresponses.add(hostname, '/api/v1/namespaces/ns1/configmaps/cm1', 'delete', delete_mock)

    result = await delete_background(CONFIGMAP, settings=settings, logger=logger, context=context)

    assert not isinstance(result, Body)
    assert result == status
    assert delete_mock.call_args[0][0]['data']['propagationPolicy'] == 'Background'


async def test_deletion_options_are_extended(
        resp_mocker, aresponses, hostname, settings, logger, context):

    delete_mock = resp_mocker(return_value=aiohttp.web.json_response(CONFIGMAP))
    aresponses.add(hostname, '/api/v1/namespaces/ns1/configmaps/cm1', 'delete', delete_mock)

    options = {'gracePeriodSeconds': 0, 'propagationPolicy': 'Orphan'}
    await delete_foreground(CONFIGMAP, options=options, settings=settings, logger=logger, context=context)

    assert delete_mock.call_args[0][0]['data'] == {
        'apiVersion': 'v1',
        'kind': 'DeleteOptions',
        'gracePeriodSeconds': 0,
        'propagationPolicy': 'Foreground',
    }


async def test_deletion_of_absent_resource(
        resp_mocker, aresponses, hostname, settings, logger, context):

    aresponses.add(hostname, '/api/v1/namespaces/ns1/configmaps/cm1', 'delete',
                   resp_mocker(return_value=aresponses.Response(status=404)))

    with pytest.raises(ResourceNotFoundError) as err:
        await delete_foreground(CONFIGMAP, settings=settings, logger=logger, context=context)

    assert err.value.name == 'cm1'
