import aiohttp.web
import pytest

from aurorakube._cogs.clients.errors import APIError, APIForbiddenError, ResourceNotFoundError
from aurorakube._cogs.clients.fetching import get, get_image_stream_tag, get_many, get_or_none
from aurorakube._cogs.structs.bodies import Body
from aurorakube._cogs.structs.references import Descriptor

POD = Descriptor('Pod', 'v1', namespace='ns1', name='pod1')
PODS = Descriptor('Pod', 'v1', namespace='ns1')


@pytest.fixture(autouse=True)
def sleep(mocker):
    return mocker.patch('asyncio.sleep')


async def test_get_single_resource(
        resp_mocker, aresponses, hostname, settings, logger, context):

    result = {'apiVersion': 'v1', 'kind': 'Pod', 'metadata': {'namespace': 'ns1', 'name': 'pod1'}}
    get_mock = resp_mocker(return_value=aiohttp.web.json_response(result))
    aresponses.add(hostname, '/api/v1/namespaces/ns1/pods/pod1', 'get', get_mock)

    body = await get(POD, settings=settings, logger=logger, context=context)

    assert get_mock.called
    assert isinstance(body, Body)
    assert body == result
    assert body.name == 'pod1'
    assert body.namespace == 'ns1'


async def test_get_with_a_decoder(
        resp_mocker, aresponses, hostname, settings, logger, context):

    result = {'apiVersion': 'v1', 'kind': 'Pod', 'metadata': {'name': 'pod1'}}
    aresponses.add(hostname, '/api/v1/namespaces/ns1/pods/pod1', 'get',
                   resp_mocker(return_value=aiohttp.web.json_response(result)))

    name = await get(POD, decoder=lambda raw: raw['metadata']['name'],
                     settings=settings, logger=logger, context=context)

    assert name == 'pod1'


async def test_get_of_absent_resource_fails(
        resp_mocker, aresponses, hostname, settings, logger, context):

    status = {'kind': 'Status', 'code': 404, 'message': 'not found'}
    aresponses.add(hostname, '/api/v1/namespaces/ns1/pods/pod1', 'get',
                   resp_mocker(return_value=aiohttp.web.json_response(status, status=404)))

    with pytest.raises(ResourceNotFoundError) as err:
        await get(POD, settings=settings, logger=logger, context=context)

    assert err.value.kind == 'Pod'
    assert err.value.namespace == 'ns1'
    assert err.value.name == 'pod1'
    assert isinstance(err.value.__cause__, APIError)


async def test_get_or_none_of_absent_resource(
        resp_mocker, aresponses, hostname, settings, logger, context):

    aresponses.add(hostname, '/api/v1/namespaces/ns1/pods/pod1', 'get',
                   resp_mocker(return_value=aresponses.Response(status=404)))

    body = await get_or_none(POD, settings=settings, logger=logger, context=context)

    assert body is None


async def test_get_or_none_escalates_other_errors(
        resp_mocker, aresponses, hostname, settings, logger, context):

    aresponses.add(hostname, '/api/v1/namespaces/ns1/pods/pod1', 'get',
                   resp_mocker(return_value=aresponses.Response(status=403)))

    with pytest.raises(APIForbiddenError):
        await get_or_none(POD, settings=settings, logger=logger, context=context)


async def test_get_many_with_defaults_for_items(
        resp_mocker, aresponses, hostname, settings, logger, context):

    result = {'apiVersion': 'v1', 'kind': 'PodList', 'items': [
        {'metadata': {'name': 'pod1'}},
        {'kind': 'Pod', 'apiVersion': 'v1', 'metadata': {'name': 'pod2'}},
    ]}
    list_mock = resp_mocker(return_value=aiohttp.web.json_response(result))
    aresponses.add(hostname, '/api/v1/namespaces/ns1/pods', 'get', list_mock)

    items = await get_many(PODS, settings=settings, logger=logger, context=context)

    assert len(items) == 2
    assert all(isinstance(item, Body) for item in items)
    assert [item.name for item in items] == ['pod1', 'pod2']
    assert [item.kind for item in items] == ['Pod', 'Pod']
    assert [item.api_version for item in items] == ['v1', 'v1']
    assert 'labelSelector' not in list_mock.call_args[0][0].query


async def test_get_many_cluster_wide(
        resp_mocker, aresponses, hostname, settings, logger, context):

    result = {'apiVersion': 'v1', 'kind': 'PodList', 'items': []}
    list_mock = resp_mocker(return_value=aiohttp.web.json_response(result))
    aresponses.add(hostname, '/api/v1/pods', 'get', list_mock)

    items = await get_many(Descriptor('Pod', 'v1'), settings=settings, logger=logger, context=context)

    assert items == []
    assert list_mock.called


async def test_get_many_with_explicit_labels(
        resp_mocker, aresponses, hostname, settings, logger, context):

    result = {'apiVersion': 'v1', 'kind': 'PodList', 'items': []}
    list_mock = resp_mocker(return_value=aiohttp.web.json_response(result))
    aresponses.add(hostname, '/api/v1/namespaces/ns1/pods', 'get', list_mock)

    await get_many(PODS, labels={'app': 'web', 'tier': ''},
                   settings=settings, logger=logger, context=context)

    assert list_mock.call_args[0][0].query['labelSelector'] == 'app=web,tier'


async def test_get_many_with_own_labels(
        resp_mocker, aresponses, hostname, settings, logger, context):

    result = {'apiVersion': 'v1', 'kind': 'PodList', 'items': []}
    list_mock = resp_mocker(return_value=aiohttp.web.json_response(result))
    aresponses.add(hostname, '/api/v1/namespaces/ns1/pods', 'get', list_mock)

    resource = Descriptor('Pod', 'v1', namespace='ns1', name='ignored', labels={'app': 'web'})
    await get_many(resource, settings=settings, logger=logger, context=context)

    assert list_mock.call_args[0][0].query['labelSelector'] == 'app=web'


async def test_get_many_of_absent_namespace(
        resp_mocker, aresponses, hostname, settings, logger, context):

    aresponses.add(hostname, '/api/v1/namespaces/ns1/pods', 'get',
                   resp_mocker(return_value=aresponses.Response(status=404)))

    items = await get_many(PODS, settings=settings, logger=logger, context=context)

    assert items == []


async def test_get_image_stream_tag(
        resp_mocker, aresponses, hostname, settings, logger, context):

    result = {'apiVersion': 'image.openshift.io/v1', 'kind': 'ImageStreamTag',
              'metadata': {'namespace': 'ns1', 'name': 'img:latest'}}
    get_mock = resp_mocker(return_value=aiohttp.web.json_response(result))
    aresponses.add(hostname, '/apis/image.openshift.io/v1/namespaces/ns1/imagestreamtags/img:latest',
                   'get', get_mock)

    body = await get_image_stream_tag('ns1', 'img', 'latest', settings=settings, logger=logger, context=context)

    assert get_mock.called
    assert body.kind == 'ImageStreamTag'


async def test_get_image_stream_tag_when_absent(
        resp_mocker, aresponses, hostname, settings, logger, context):

    aresponses.add(hostname, '/apis/image.openshift.io/v1/namespaces/ns1/imagestreamtags/img:latest',
                   'get', resp_mocker(return_value=aresponses.Response(status=404)))

    body = await get_image_stream_tag('ns1', 'img', 'latest', settings=settings, logger=logger, context=context)

    assert body is None
