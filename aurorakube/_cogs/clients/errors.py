"""
The errors of K8s API, independent of the HTTP client library in use.

The callers catch these classes, never the ``aiohttp`` ones: the HTTP status
selects the class, while the K8s ``Status`` payload of the response (if any)
adds its code and message. The ``aiohttp`` error is
kept as the cause of the raised error for the stack traces.

The network-level errors (connection, SSL, timeouts) are not wrapped:
they are not about K8s API, and they are escalated as they are.

The resource-level errors (e.g. `ResourceNotFoundError`) are raised
by the resource operations on top of the HTTP-level errors.
"""
import collections.abc
import json
from typing import Collection, Optional

import aiohttp
from typing_extensions import Literal, TypedDict


class RawStatusCause(TypedDict):
    field: str
    reason: str
    message: str


class RawStatusDetails(TypedDict):
    name: str
    uid: str
    retryAfterSeconds: int
    kind: str
    group: str
    causes: Collection[RawStatusCause]


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.19/#status-v1-meta
class RawStatus(TypedDict):
    apiVersion: str
    kind: Literal["Status"]
    code: int
    status: Literal["Success", "Failure"]
    reason: str
    message: str
    details: RawStatusDetails


class APIError(Exception):

    def __init__(
            self,
            payload: Optional[RawStatus],
            *,
            status: int,
            method: Optional[str] = None,
            url: Optional[str] = None,
    ) -> None:
        message = payload.get('message') if payload else None
        super().__init__(message, payload)
        self._status = status
        self._payload = payload
        self.method = method
        self.url = url

    def __str__(self) -> str:
        target = f" for {self.method} {self.url}" if self.method and self.url else ""
        return f"({self._status}{target}) {self.message or 'no details'}"

    @property
    def status(self) -> int:
        return self._status

    @property
    def code(self) -> Optional[int]:
        return self._payload.get('code') if self._payload else None

    @property
    def message(self) -> Optional[str]:
        return self._payload.get('message') if self._payload else None

    @property
    def details(self) -> Optional[RawStatusDetails]:
        return self._payload.get('details') if self._payload else None


class APIClientError(APIError):
    pass


class APIServerError(APIError):
    pass


class APIUnauthorizedError(APIClientError):
    pass


class APIForbiddenError(APIClientError):
    pass


class APINotFoundError(APIClientError):
    pass


class APIConflictError(APIClientError):
    pass


class ResourceNotFoundError(Exception):
    """ Raised when a specific resource is expected to exist but it does not. """

    def __init__(
            self,
            *,
            kind: Optional[str],
            namespace: Optional[str],
            name: Optional[str],
    ) -> None:
        super().__init__(f"Resource with name={name} namespace={namespace} kind={kind} was not found")
        self.kind = kind
        self.namespace = namespace
        self.name = name


class WatchingError(Exception):
    """ Raised when an unexpected error happens in the watch-stream API. """


def classify(status: int) -> type:
    return (
        APIUnauthorizedError if status == 401 else
        APIForbiddenError if status == 403 else
        APINotFoundError if status == 404 else
        APIConflictError if status == 409 else
        APIClientError if 400 <= status < 500 else
        APIServerError if 500 <= status < 600 else
        APIError
    )


async def check_response(
        response: aiohttp.ClientResponse,
) -> None:
    """
    Check for specialised K8s errors, and raise with extended information.
    """
    if response.status >= 400:

        # Read the response's body before it is closed by raise_for_status().
        payload: Optional[RawStatus]
        try:
            payload = await response.json(content_type=None)
        except (json.JSONDecodeError, aiohttp.ContentTypeError, aiohttp.ClientConnectionError):
            payload = None

        # Better be safe: who knows which sensitive information can be dumped unless kind==Status.
        if not isinstance(payload, collections.abc.Mapping) or payload.get('kind') != 'Status':
            payload = None

        cls = classify(response.status)

        # Raise the client-specific error while keeping the original error in scope.
        # This call also closes the response's body, so it cannot be read afterwards.
        try:
            response.raise_for_status()
        except aiohttp.ClientResponseError as e:
            raise cls(
                payload,
                status=response.status,
                method=response.method,
                url=str(response.url),
            ) from e
