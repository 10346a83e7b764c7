"""Shared reconciler for fulfillment-managed objects.

Clusters, compute instances, hosts and host pools all follow the same
lifecycle against the fulfillment API: create or update the object, then
(for kinds that provision asynchronously) poll it until it reports a ready
state. Subclasses only describe the kind: its collection, state table, model
and how status fields map to stored attributes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from osac_provisioner.core.client import FulfillmentAPIError, NotFoundError
from osac_provisioner.engine.classifier import refresh_func
from osac_provisioner.engine.errors import RemoteCallFailed, WaitError
from osac_provisioner.engine.handlers import ResourceHandler
from osac_provisioner.engine.waiter import wait_for_ready
from osac_provisioner.resources.base import Resource
from osac_provisioner.resources.markers import build_spec, extract_spec_attrs

if TYPE_CHECKING:
    from osac_provisioner.core.service import RemoteObject, ResourceService
    from osac_provisioner.core.state import ResourceInstance
    from osac_provisioner.engine.classifier import StateTable
    from osac_provisioner.engine.handlers import EngineContext

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Resource)
T = TypeVar("T")


class FulfillmentHandler(ResourceHandler[R]):
    """CRUD handler backed by one fulfillment API collection.

    Class attributes:
        collection: Attribute name of the collection on ``FulfillmentClient``
        table: State table used to classify the object's status
        model: Resource model, used to read spec fields back
        awaits_ready: Whether create/update block until the object is ready
    """

    collection: ClassVar[str]
    table: ClassVar[StateTable]
    model: ClassVar[type[Resource]]
    awaits_ready: ClassVar[bool] = True

    def _service(self, ctx: EngineContext) -> ResourceService:
        return getattr(ctx.provider.client, self.collection)

    @staticmethod
    def _call(operation: str, resource_id: str, fn: Callable[..., T], *args: Any) -> T:
        try:
            return fn(*args)
        except FulfillmentAPIError as e:
            raise RemoteCallFailed(operation, resource_id, e) from e

    # --- kind hooks ---

    def build_spec(self, desired: R) -> dict[str, Any]:
        """Remote ``spec`` for *desired*."""
        return build_spec(desired)

    def build_object(self, desired: R) -> dict[str, Any]:
        return {"metadata": {"name": desired.name}, "spec": self.build_spec(desired)}

    def spec_attributes(self, spec: dict[str, Any]) -> dict[str, Any]:
        return extract_spec_attrs(self.model, spec)

    def parameter_attributes(self, spec: dict[str, Any]) -> dict[str, Any]:
        """Template parameters decoded from *spec*, for kinds that have them."""
        _ = spec
        return {}

    def status_attributes(self, obj: RemoteObject) -> dict[str, Any]:
        """Computed attributes taken from the object's status."""
        _ = obj
        return {}

    def to_attributes(
        self, obj: RemoteObject, name: str, *, parameters: bool = True
    ) -> dict[str, Any]:
        """Flatten a remote object into stored attributes.

        With *parameters* false the template parameters are not decoded.
        """
        attrs: dict[str, Any] = {"id": obj.id, "name": obj.name or name}
        attrs.update(self.spec_attributes(obj.spec))
        if parameters:
            attrs.update(self.parameter_attributes(obj.spec))
        attrs["state"] = (obj.status.state if obj.status else "") or self.table.unobserved
        attrs.update(self.status_attributes(obj))
        return attrs

    # --- waiting ---

    def wait_ready(self, ctx: EngineContext, resource_id: str, *, timeout: float) -> RemoteObject:
        """Poll the object until its state is in the kind's target set."""
        service = self._service(ctx)
        refresh = refresh_func(
            self.table,
            lambda object_id: self._call("get", object_id, service.get, object_id),
            resource_id,
        )
        return wait_for_ready(
            refresh,
            pending=self.table.pending,
            target=self.table.target,
            timeout=timeout,
            poll_interval=ctx.wait.poll_interval,
            min_poll_interval=ctx.wait.min_poll_interval,
            cancel=ctx.cancel,
            resource_id=resource_id,
        )

    # --- CRUD ---

    def create(self, ctx: EngineContext, desired: R) -> dict[str, Any]:
        service = self._service(ctx)
        obj = self._call("create", "", service.create, self.build_object(desired))
        logger.info("Created %s %s with id %s", self.table.kind, desired.name, obj.id)

        if self.awaits_ready:
            try:
                obj = self.wait_ready(ctx, obj.id, timeout=ctx.wait.create_timeout)
            except WaitError as e:
                e.attributes = self.to_attributes(obj, desired.name)
                raise
        return self.to_attributes(obj, desired.name)

    def read(self, ctx: EngineContext, prior: ResourceInstance) -> dict[str, Any] | None:
        service = self._service(ctx)
        try:
            obj = service.get(prior.resource_id)
        except NotFoundError:
            logger.debug("%s %s no longer exists", self.table.kind, prior.resource_id)
            return None
        except FulfillmentAPIError as e:
            raise RemoteCallFailed("get", prior.resource_id, e) from e
        return self.to_attributes(obj, prior.name)

    def update(self, ctx: EngineContext, desired: R, prior: ResourceInstance) -> dict[str, Any]:
        service = self._service(ctx)
        resource_id = prior.resource_id
        obj = self._call(
            "update", resource_id, service.update, resource_id, self.build_object(desired)
        )
        logger.info("Updated %s %s (%s)", self.table.kind, desired.name, resource_id)

        if self.awaits_ready:
            obj = self.wait_ready(ctx, resource_id, timeout=ctx.wait.update_timeout)
        return self.to_attributes(obj, desired.name)

    def delete(self, ctx: EngineContext, prior: ResourceInstance) -> None:
        service = self._service(ctx)
        resource_id = prior.resource_id
        try:
            service.delete(resource_id)
        except NotFoundError:
            logger.debug("%s %s already deleted", self.table.kind, resource_id)
            return
        except FulfillmentAPIError as e:
            raise RemoteCallFailed("delete", resource_id, e) from e
        logger.info("Deleted %s %s (%s)", self.table.kind, prior.name, resource_id)
