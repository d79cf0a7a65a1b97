"""Kubernetes service operations for M3DB clusters.

Services are plain dicts shaped like their API JSON form.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from .model import M3DBCluster
from .statefulset import generate_owner_ref


class NotFoundError(LookupError):
    """Raised when a requested object does not exist."""


class AlreadyExistsError(Exception):
    """Raised when creating an object that already exists."""


def _service_name(service: dict[str, Any]) -> str:
    return service.get("metadata", {}).get("name", "")


class ServiceClient:
    """An in-memory store of services and events, grouped by namespace."""

    def __init__(self) -> None:
        self._services: dict[tuple[str, str], dict[str, Any]] = {}
        self._events: dict[str, list[dict[str, Any]]] = {}

    def get_service(self, namespace: str, name: str) -> dict[str, Any]:
        """Return a copy of the named service in the namespace."""
        try:
            return copy.deepcopy(self._services[(namespace, name)])
        except KeyError:
            raise NotFoundError(f'services "{name}" not found') from None

    def create_service(
        self, namespace: str, service: dict[str, Any]
    ) -> dict[str, Any]:
        """Store the service in the namespace and return a copy of it."""
        name = _service_name(service)
        key = (namespace, name)
        if key in self._services:
            raise AlreadyExistsError(f'services "{name}" already exists')
        stored = copy.deepcopy(service)
        stored.setdefault("metadata", {})["namespace"] = namespace
        self._services[key] = stored
        return copy.deepcopy(stored)

    def delete_service(self, namespace: str, name: str) -> None:
        """Remove the named service from the namespace."""
        try:
            del self._services[(namespace, name)]
        except KeyError:
            raise NotFoundError(f'services "{name}" not found') from None

    def events(self, namespace: str) -> list[dict[str, Any]]:
        """Return the namespace's event list, which callers may append to."""
        return self._events.setdefault(namespace, [])


class K8sOps:
    """Kubernetes API operations the operator performs for a cluster."""

    def __init__(
        self,
        client: ServiceClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.client = client if client is not None else ServiceClient()
        self.logger = logger if logger is not None else logging.getLogger(__name__)

    def get_service(self, cluster: M3DBCluster, name: str) -> dict[str, Any]:
        """Return the named service in the cluster's namespace."""
        return self.client.get_service(cluster.namespace, name)

    def delete_service(self, cluster: M3DBCluster, name: str) -> None:
        """Delete the named service from the cluster's namespace."""
        self.logger.info("deleting service: service=%s", name)
        self.client.delete_service(cluster.namespace, name)

    def ensure_service(self, cluster: M3DBCluster, service: dict[str, Any]) -> None:
        """Create the service, owned by the cluster, unless it already exists."""
        name = _service_name(service)
        try:
            self.get_service(cluster, name)
        except NotFoundError:
            self.logger.info("service doesn't exist, creating it: service=%s", name)
            service.setdefault("metadata", {})["ownerReferences"] = [
                generate_owner_ref(cluster)
            ]
            self.client.create_service(cluster.namespace, service)
            self.logger.info("ensured service is created: service=%s", name)
        except AlreadyExistsError:
            return

    def events(self, namespace: str) -> list[dict[str, Any]]:
        """Return the event list for the namespace."""
        return self.client.events(namespace)