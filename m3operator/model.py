"""Data model for M3DB clusters and the Kubernetes objects the operator reads."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PodIdentitySource(str, Enum):
    """A source of information that makes up a pod's identity."""

    POD_UID = "PodUID"
    NODE_NAME = "NodeName"
    NODE_SPEC_PROVIDER_ID = "NodeSpecProviderID"


@dataclass
class NodeAffinityTerm:
    """A node label key and the values a node must carry for it."""

    key: str = ""
    values: list[str] = field(default_factory=list)


@dataclass
class IsolationGroup:
    """A group of instances placed together, usually one per zone."""

    name: str = ""
    num_instances: int = 0
    node_affinity_terms: list[NodeAffinityTerm] = field(default_factory=list)
    use_pod_anti_affinity: bool = False
    pod_affinity_topology_key: str = ""
    storage_class_name: str = ""


@dataclass
class PodIdentityConfig:
    """Which sources make up a pod's identity."""

    sources: list[PodIdentitySource | str] = field(default_factory=list)


@dataclass
class ExternalCoordinatorConfig:
    """Settings for coordinators that run outside the dbnode pods."""

    selector: dict[str, str] = field(default_factory=dict)
    service_endpoint: str = ""


@dataclass
class ClusterSpec:
    """Desired state of an M3DB cluster."""

    image: str = ""
    replication_factor: int = 0
    number_of_shards: int = 0
    isolation_groups: list[IsolationGroup] = field(default_factory=list)
    etcd_endpoints: list[str] = field(default_factory=list)
    config_map_name: str | None = None
    enable_carbon_ingester: bool = False
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    pod_annotations: dict[str, str] = field(default_factory=dict)
    container_resources: dict[str, Any] = field(default_factory=dict)
    tolerations: list[dict[str, Any]] = field(default_factory=list)
    host_network: bool = False
    dns_policy: str | None = None
    data_dir_volume_claim_template: dict[str, Any] | None = None
    env_vars: list[dict[str, Any]] = field(default_factory=list)
    init_containers: list[dict[str, Any]] = field(default_factory=list)
    init_volumes: list[dict[str, Any]] = field(default_factory=list)
    sidecar_containers: list[dict[str, Any]] = field(default_factory=list)
    sidecar_volumes: list[dict[str, Any]] = field(default_factory=list)
    security_context: dict[str, Any] | None = None
    pod_security_context: dict[str, Any] | None = None
    priority_class_name: str = ""
    image_pull_secrets: list[dict[str, Any]] = field(default_factory=list)
    service_account_name: str = ""
    parallel_pod_management: bool | None = None
    on_delete_update_strategy: bool = False
    node_endpoint_format: str = ""
    zone: str = ""
    pod_identity_config: PodIdentityConfig | None = None
    external_coordinator: ExternalCoordinatorConfig | None = None


@dataclass
class M3DBCluster:
    """An M3DB cluster resource."""

    name: str = ""
    namespace: str = ""
    uid: str = ""
    spec: ClusterSpec = field(default_factory=ClusterSpec)


@dataclass
class PodIdentity:
    """The identity of a pod within an M3DB cluster."""

    name: str = ""
    uid: str = ""
    node_name: str = ""
    node_external_id: str = ""
    node_provider_id: str = ""

    def to_dict(self) -> dict[str, str]:
        """Return the identity's non-empty fields under their wire names."""
        pairs = (
            ("name", self.name),
            ("uid", self.uid),
            ("nodeName", self.node_name),
            ("nodeExternalID", self.node_external_id),
            ("nodeProviderID", self.node_provider_id),
        )
        return {key: value for key, value in pairs if value}


@dataclass
class Pod:
    """The parts of a Kubernetes pod the operator looks at."""

    name: str = ""
    namespace: str = ""
    uid: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    node_name: str = ""


@dataclass
class Node:
    """The parts of a Kubernetes node the operator looks at."""

    name: str = ""
    provider_id: str = ""


def default_m3_cluster_environment_name(cluster: M3DBCluster) -> str:
    """Return the environment under which the cluster's topology and runtime
    configuration are stored, so clusters sharing an etcd store don't clash."""
    return f"{cluster.namespace}/{cluster.name}"