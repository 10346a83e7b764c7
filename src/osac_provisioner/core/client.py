"""HTTP client for the OSAC fulfillment API.

Talks to the REST gateway of the fulfillment service. Every collection
exposes the same four calls, so ``ResourceCollection`` implements them once
and ``FulfillmentClient`` hands out one collection per kind.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from osac_provisioner.core.service import RemoteObject

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)

API_PREFIX = "/api/fulfillment/v1"


class FulfillmentAPIError(Exception):
    """Error returned by (or while reaching) the fulfillment API."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(FulfillmentAPIError):
    """The requested object does not exist."""


def _unwrap(payload: Any) -> dict[str, Any]:
    """Responses carry the object either bare or as ``{"object": {...}}``."""
    if isinstance(payload, dict) and isinstance(payload.get("object"), dict):
        return payload["object"]
    if isinstance(payload, dict):
        return payload
    raise FulfillmentAPIError(f"Unexpected response payload: {payload!r}")


class ResourceCollection:
    """CRUD calls for one collection (e.g. ``clusters``)."""

    def __init__(self, client: FulfillmentClient, name: str) -> None:
        self._client = client
        self.name = name

    @property
    def path(self) -> str:
        return f"{API_PREFIX}/{self.name}"

    def create(self, obj: dict[str, Any]) -> RemoteObject:
        data = self._client.request("POST", self.path, json={"object": obj})
        return RemoteObject.model_validate(_unwrap(data))

    def get(self, object_id: str) -> RemoteObject:
        data = self._client.request("GET", f"{self.path}/{object_id}")
        return RemoteObject.model_validate(_unwrap(data))

    def update(self, object_id: str, obj: dict[str, Any]) -> RemoteObject:
        body = {"object": {**obj, "id": object_id}}
        data = self._client.request("PATCH", f"{self.path}/{object_id}", json=body)
        return RemoteObject.model_validate(_unwrap(data))

    def delete(self, object_id: str) -> None:
        self._client.request("DELETE", f"{self.path}/{object_id}")


class FulfillmentClient:
    """Synchronous client for the fulfillment REST API.

    Example:
        client = FulfillmentClient("https://fulfillment.example.com", token="...")
        cluster = client.clusters.get("0f3b...")
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        verify: bool = True,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.Client(
            base_url=base_url,
            headers=headers,
            verify=verify,
            timeout=timeout,
            transport=transport,
        )
        self.clusters = ResourceCollection(self, "clusters")
        self.cluster_templates = ResourceCollection(self, "cluster_templates")
        self.compute_instances = ResourceCollection(self, "compute_instances")
        self.compute_instance_templates = ResourceCollection(self, "compute_instance_templates")
        self.hosts = ResourceCollection(self, "hosts")
        self.host_classes = ResourceCollection(self, "host_classes")
        self.host_pools = ResourceCollection(self, "host_pools")

    def __enter__(self) -> FulfillmentClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def request(self, method: str, path: str, json: dict[str, Any] | None = None) -> Any:
        """Execute a request and return the decoded JSON body (``None`` if empty)."""
        logger.debug("%s %s", method, path)
        try:
            resp = self._http.request(method, path, json=json)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            message = f"API error {status}: {e.response.text}"
            if status == httpx.codes.NOT_FOUND:
                raise NotFoundError(message, status_code=status) from e
            raise FulfillmentAPIError(message, status_code=status) from e
        except httpx.RequestError as e:
            raise FulfillmentAPIError(f"Request failed: {e}") from e
        return resp.json() if resp.content else None
