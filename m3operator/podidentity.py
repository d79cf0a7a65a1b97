"""Work out the cluster identity of a pod from its own and its node's details."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable

from .model import M3DBCluster, Node, Pod, PodIdentity, PodIdentitySource

ANNOTATION_KEY_POD_IDENTITY = "operator.m3db.io/pod-identity"

_DEFAULT_SOURCES = (PodIdentitySource.POD_UID,)


class PodIdentityError(Exception):
    """Raised when a pod's identity cannot be determined."""


class NodeLister:
    """Looks up Kubernetes nodes by name."""

    def __init__(self, nodes: Iterable[Node] = ()) -> None:
        self._nodes = {node.name: node for node in nodes}

    def get(self, name: str) -> Node:
        """Return the node with the given name, raising LookupError if absent."""
        try:
            return self._nodes[name]
        except KeyError:
            raise LookupError(f'node "{name}" not found') from None


class IdentityProvider:
    """Creates a pod's cluster identity from the pod, its node and the cluster."""

    def __init__(
        self,
        node_lister: NodeLister | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if node_lister is None:
            raise PodIdentityError("ID provider node informer cannot be empty")
        self.node_lister = node_lister
        self.logger = logger if logger is not None else logging.getLogger(__name__)

    def identity(self, pod: Pod, cluster: M3DBCluster) -> PodIdentity:
        """Return the pod's identity built from the cluster's configured sources."""
        config = cluster.spec.pod_identity_config
        sources = _DEFAULT_SOURCES if config is None else config.sources

        if not pod.name:
            raise PodIdentityError("pod name cannot by empty with id source == name")

        # The pod name is always part of the identity: replacing instances
        # depends on it.
        ident = PodIdentity(name=pod.name)

        for raw_source in sources:
            try:
                source = PodIdentitySource(raw_source)
            except ValueError:
                raise PodIdentityError(
                    f"unrecognized pod identity source {raw_source}"
                ) from None

            if source is PodIdentitySource.POD_UID:
                if not pod.uid:
                    raise PodIdentityError(
                        "pod UID cannot be empty with id source == UID"
                    )
                ident.uid = pod.uid
            elif source is PodIdentitySource.NODE_SPEC_PROVIDER_ID:
                node = self.node_for_pod(pod)
                if not node.provider_id:
                    raise PodIdentityError(
                        "node provider ID cannot be empty with source == prodiverID"
                    )
                ident.node_provider_id = node.provider_id
            elif source is PodIdentitySource.NODE_NAME:
                ident.node_name = self.node_for_pod(pod).name

        return ident

    def node_for_pod(self, pod: Pod) -> Node:
        """Return the node the pod is scheduled on."""
        if not pod.node_name:
            self.logger.warning("pod not yet scheduled: pod=%s", pod.name)
            raise PodIdentityError(f"pod {pod.name} not yet scheduled")
        return self.node_lister.get(pod.node_name)


def identity_json(identity: PodIdentity) -> str:
    """Return the identity as a compact JSON string."""
    return json.dumps(identity.to_dict(), separators=(",", ":"))