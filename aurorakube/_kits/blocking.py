import asyncio
import concurrent.futures
import threading
from typing import Any, Callable, Collection, List, Mapping, Optional

from aurorakube._cogs.clients import watching
from aurorakube._cogs.structs import references
from aurorakube._kits import clients


class BlockingKubernetesClient:
    """
    A blocking adapter for the async client, for the code without asyncio.

    Usage::

        with BlockingKubernetesClient(KubernetesClient.service_account()) as client:
            project = client.get(Descriptor('Project', 'project.openshift.io/v1', name='aurora'))
            future = client.submit('get_many', Descriptor('Pod', 'v1', namespace='aurora'))
            pods = future.result()

    The async client runs in its own event loop in a parallel daemon thread.
    Every call is sent to that loop and either waited for (blocking calls),
    or returned as a `concurrent.futures.Future` (see `submit`).
    The calls can be made from any threads: they are executed concurrently.
    """

    def __init__(
            self,
            client: Optional[clients.KubernetesClient] = None,
            *,
            timeout: Optional[float] = None,
    ) -> None:
        super().__init__()
        self.client = client if client is not None else clients.KubernetesClient.service_account()
        self.timeout = timeout
        self._loop = asyncio.new_event_loop()
        self._ready = threading.Event()  # NB: not asyncio.Event!
        self._thread = threading.Thread(target=self._target, name='aurorakube-loop', daemon=True)
        self._started = False
        self._lock = threading.Lock()

    def __enter__(self) -> "BlockingKubernetesClient":
        self.start()
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    def _target(self) -> None:

        # Every thread must have its own loop. The parent thread needs
        # to know when the loop is set up, to be able to send the calls there.
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._ready.set)
        try:
            self._loop.run_forever()
        finally:
            self._loop.close()

    def start(self) -> None:
        with self._lock:
            if self._loop.is_closed():
                raise RuntimeError("The blocking client is already closed.")
            if not self._started:
                self._thread.start()
                self._ready.wait()  # should be nanosecond-fast
                self._started = True

    def close(self) -> None:
        with self._lock:
            if not self._started:
                return
            self._started = False

        # Cancel the ongoing calls (e.g. watches) and close the client's session
        # in its own loop, then stop the loop & the thread.
        future = asyncio.run_coroutine_threadsafe(self._shutdown(), self._loop)
        try:
            future.result(timeout=self.timeout)
        finally:
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=self.timeout)

    async def _shutdown(self) -> None:
        current_task = asyncio.current_task()
        tasks = [task for task in asyncio.all_tasks() if task is not current_task]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self.client.close()

    def submit(self, name: str, *args: Any, **kwargs: Any) -> concurrent.futures.Future:
        """
        Start an operation of the async client by name, return its future.
        """
        self.start()
        method: Callable[..., Any] = getattr(self.client, name)
        return asyncio.run_coroutine_threadsafe(method(*args, **kwargs), self._loop)

    def _call(self, name: str, *args: Any, **kwargs: Any) -> Any:
        return self.submit(name, *args, **kwargs).result(timeout=self.timeout)

    def get(self, resource: references.Identifiable, **kwargs: Any) -> Any:
        return self._call('get', resource, **kwargs)

    def get_or_none(self, resource: references.Identifiable, **kwargs: Any) -> Optional[Any]:
        return self._call('get_or_none', resource, **kwargs)

    def get_many(self, resource: references.Identifiable, **kwargs: Any) -> List[Any]:
        return self._call('get_many', resource, **kwargs)

    def get_image_stream_tag(self, namespace: str, name: str, tag: str, **kwargs: Any) -> Optional[Any]:
        return self._call('get_image_stream_tag', namespace, name, tag, **kwargs)

    def post(self, resource: references.Identifiable, payload: Optional[Any] = None, **kwargs: Any) -> Any:
        return self._call('post', resource, payload, **kwargs)

    def put(self, resource: references.Identifiable, payload: Optional[Any] = None, **kwargs: Any) -> Any:
        return self._call('put', resource, payload, **kwargs)

    def delete_foreground(
            self,
            resource: references.Identifiable,
            options: Optional[Mapping[str, Any]] = None,
            **kwargs: Any,
    ) -> Any:
        return self._call('delete_foreground', resource, options, **kwargs)

    def delete_background(
            self,
            resource: references.Identifiable,
            options: Optional[Mapping[str, Any]] = None,
            **kwargs: Any,
    ) -> Mapping[str, Any]:
        return self._call('delete_background', resource, options, **kwargs)

    def delete_orphan(
            self,
            resource: references.Identifiable,
            options: Optional[Mapping[str, Any]] = None,
            **kwargs: Any,
    ) -> Any:
        return self._call('delete_orphan', resource, options, **kwargs)

    def proxy_get(self, pod: references.Identifiable, port: int, path: str, **kwargs: Any) -> Any:
        return self._call('proxy_get', pod, port, path, **kwargs)

    def proxy_post(
            self,
            pod: references.Identifiable,
            port: int,
            path: str,
            payload: Optional[Any] = None,
            **kwargs: Any,
    ) -> Any:
        return self._call('proxy_post', pod, port, path, payload, **kwargs)

    def proxy_delete(self, pod: references.Identifiable, port: int, path: str, **kwargs: Any) -> Any:
        return self._call('proxy_delete', pod, port, path, **kwargs)

    def scale_deployment_config(self, namespace: str, name: str, replicas: int, **kwargs: Any) -> Any:
        return self._call('scale_deployment_config', namespace, name, replicas, **kwargs)

    def rollout_deployment_config(self, namespace: str, name: str, **kwargs: Any) -> Any:
        return self._call('rollout_deployment_config', namespace, name, **kwargs)

    def current_user(self, token: str, **kwargs: Any) -> Optional[Any]:
        return self._call('current_user', token, **kwargs)

    def review_access(self, review: Any, **kwargs: Any) -> Any:
        return self._call('review_access', review, **kwargs)

    def watch(
            self,
            resource: references.Identifiable,
            handler: watching.WatchHandler,
            *,
            types: Collection[str] = (),
            **kwargs: Any,
    ) -> concurrent.futures.Future:
        """
        Start watching in the background; cancel the returned future to stop it.

        The handler is called in the client's thread, not in the caller's one.
        """
        return self.submit('watch', resource, handler, types=types, **kwargs)
