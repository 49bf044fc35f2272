import aiohttp.web
import pytest

from aurorakube._cogs.clients.access import current_user, review_access
from aurorakube._cogs.clients.deploying import rollout_deployment_config, scale_deployment_config
from aurorakube._cogs.clients.errors import APIForbiddenError, ResourceNotFoundError

SCALE_PATH = '/apis/apps.openshift.io/v1/namespaces/ns1/deploymentconfigs/app1/scale'
ROLLOUT_PATH = '/apis/apps.openshift.io/v1/namespaces/ns1/deploymentconfigs/app1/instantiate'
USER_PATH = '/apis/user.openshift.io/v1/users/~'
SSAR_PATH = '/apis/authorization.k8s.io/v1/selfsubjectaccessreviews'


@pytest.fixture(autouse=True)
def sleep(mocker):
    return mocker.patch('asyncio.sleep')


async def test_scaling_of_deployment_configs(
        resp_mocker, aresponses, hostname, settings, logger, context):

    result = {'kind': 'Scale', 'apiVersion': 'extensions/v1beta1', 'spec': {'replicas': 3}}
    put_mock = resp_mocker(return_value=aiohttp.web.json_response(result))
    aresponses.add(hostname, SCALE_PATH, 'put', put_mock)

    body = await scale_deployment_config('ns1', 'app1', 3, settings=settings, logger=logger, context=context)

    assert body.spec == {'replicas': 3}
    assert put_mock.call_args[0][0]['data'] == {
        'apiVersion': 'extensions/v1beta1',
        'kind': 'Scale',
        'metadata': {'namespace': 'ns1', 'name': 'app1'},
        'spec': {'replicas': 3},
    }


async def test_scaling_is_retried_leniently(
        resp_mocker, aresponses, hostname, settings, logger, context):

    aresponses.add(hostname, SCALE_PATH, 'put', resp_mocker(return_value=aresponses.Response(status=500)))
    aresponses.add(hostname, SCALE_PATH, 'put', resp_mocker(return_value=aiohttp.web.json_response({})))

    body = await scale_deployment_config('ns1', 'app1', 0, settings=settings, logger=logger, context=context)

    assert body == {}


async def test_scaling_of_absent_deployment_configs(
        resp_mocker, aresponses, hostname, settings, logger, context):

    aresponses.add(hostname, SCALE_PATH, 'put', resp_mocker(return_value=aresponses.Response(status=404)))

    with pytest.raises(ResourceNotFoundError) as err:
        await scale_deployment_config('ns1', 'app1', 3, settings=settings, logger=logger, context=context)

    assert err.value.kind == 'DeploymentConfig'
    assert err.value.namespace == 'ns1'
    assert err.value.name == 'app1'


async def test_rollout_of_deployment_configs(
        resp_mocker, aresponses, hostname, settings, logger, context):

    result = {'kind': 'DeploymentConfig', 'apiVersion': 'apps.openshift.io/v1', 'metadata': {'name': 'app1'}}
    post_mock = resp_mocker(return_value=aiohttp.web.json_response(result))
    aresponses.add(hostname, ROLLOUT_PATH, 'post', post_mock)

    body = await rollout_deployment_config('ns1', 'app1', settings=settings, logger=logger, context=context)

    assert body.name == 'app1'
    assert post_mock.call_args[0][0]['data'] == {
        'kind': 'DeploymentRequest',
        'apiVersion': 'apps.openshift.io/v1',
        'name': 'app1',
        'latest': True,
        'force': True,
    }


async def test_rollout_of_absent_deployment_configs(
        resp_mocker, aresponses, hostname, settings, logger, context):

    aresponses.add(hostname, ROLLOUT_PATH, 'post', resp_mocker(return_value=aresponses.Response(status=404)))

    with pytest.raises(ResourceNotFoundError):
        await rollout_deployment_config('ns1', 'app1', settings=settings, logger=logger, context=context)


async def test_current_user_with_the_given_token(
        resp_mocker, aresponses, hostname, settings, logger, context):

    result = {'kind': 'User', 'apiVersion': 'user.openshift.io/v1', 'metadata': {'name': 'jdoe'}}
    get_mock = resp_mocker(return_value=aiohttp.web.json_response(result))
    aresponses.add(hostname, USER_PATH, 'get', get_mock)

    user = await current_user('user-token', settings=settings, logger=logger, context=context)

    assert user.name == 'jdoe'
    assert get_mock.call_args[0][0].headers['Authorization'] == 'Bearer user-token'


@pytest.mark.parametrize('status', [401, 404])
async def test_current_user_of_invalid_tokens(
        assert_logs, resp_mocker, aresponses, hostname, settings, logger, context, status):

    aresponses.add(hostname, USER_PATH, 'get', resp_mocker(return_value=aresponses.Response(status=status)))

    user = await current_user('bad-token', settings=settings, logger=logger, context=context)

    assert user is None
    assert_logs(["The token owner is not found"])


async def test_current_user_escalates_other_errors(
        resp_mocker, aresponses, hostname, settings, logger, context):

    aresponses.add(hostname, USER_PATH, 'get', resp_mocker(return_value=aresponses.Response(status=403)))

    with pytest.raises(APIForbiddenError):
        await current_user('token', settings=settings, logger=logger, context=context)


async def test_access_review(
        resp_mocker, aresponses, hostname, settings, logger, context):

    review = {
        'apiVersion': 'authorization.k8s.io/v1',
        'kind': 'SelfSubjectAccessReview',
        'spec': {'resourceAttributes': {'namespace': 'ns1', 'verb': 'delete', 'resource': 'pods'}},
    }
    result = dict(review, status={'allowed': True})
    post_mock = resp_mocker(return_value=aiohttp.web.json_response(result))
    aresponses.add(hostname, SSAR_PATH, 'post', post_mock)

    body = await review_access(review, settings=settings, logger=logger, context=context)

    assert body.status['allowed'] is True
    assert post_mock.call_args[0][0]['data'] == review
