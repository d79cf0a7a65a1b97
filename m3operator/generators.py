"""Generate the StatefulSets and Services that make up an M3DB cluster.

Kubernetes objects are plain dicts shaped like their API JSON form.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any, NamedTuple

from . import labels
from .annotations import base_annotations
from .model import IsolationGroup, M3DBCluster
from .naming import Port, coordinator_service_name, headless_service_name, stateful_set_name
from .statefulset import (
    DATA_VOLUME_NAME,
    SpecError,
    build_config_map_components,
    generate_owner_ref,
    generate_stateful_set_affinity,
    new_base_stateful_set,
)

ERR_EMPTY_CLUSTER_NAME = "cluster name cannot be empty"

_PROTOCOL_TCP = "TCP"


class _M3DBPort(NamedTuple):
    name: str
    port: Port
    protocol: str = _PROTOCOL_TCP


_BASE_M3DB_PORTS = (
    _M3DBPort("client", Port.M3DB_NODE_CLIENT),
    _M3DBPort("cluster", Port.M3DB_NODE_CLUSTER),
    _M3DBPort("http-node", Port.M3DB_HTTP_NODE),
    _M3DBPort("http-cluster", Port.M3DB_HTTP_CLUSTER),
    _M3DBPort("debug", Port.M3DB_DEBUG),
    _M3DBPort("coordinator", Port.M3_COORDINATOR),
    _M3DBPort("coord-metrics", Port.M3_COORDINATOR_METRICS),
)

_BASE_COORDINATOR_PORTS = (
    _M3DBPort("coordinator", Port.M3_COORDINATOR),
    _M3DBPort("coord-metrics", Port.M3_COORDINATOR_METRICS),
)

_CARBON_LISTENER_PORT = _M3DBPort("coord-carbon", Port.M3_COORDINATOR_CARBON)


def _with_carbon(
    cluster: M3DBCluster, ports: tuple[_M3DBPort, ...]
) -> tuple[_M3DBPort, ...]:
    if cluster.spec.enable_carbon_ingester:
        return (*ports, _CARBON_LISTENER_PORT)
    return ports


def _find_isolation_group(
    cluster: M3DBCluster, name: str
) -> tuple[int, IsolationGroup]:
    for index, group in enumerate(cluster.spec.isolation_groups):
        if group.name == name:
            return index, group
    raise SpecError(f"could not find isogroup '{name}' in spec")


def generate_stateful_set(
    cluster: M3DBCluster, isolation_group_name: str, instance_amount: int
) -> dict[str, Any]:
    """Return the StatefulSet for one isolation group of the cluster."""
    sts_id, isolation_group = _find_isolation_group(cluster, isolation_group_name)
    spec = cluster.spec
    ss_name = stateful_set_name(cluster.name, sts_id)

    try:
        affinity = generate_stateful_set_affinity(isolation_group)
    except SpecError as err:
        raise SpecError(f"error generating statefulset affinity: {err}") from err

    stateful_set = new_base_stateful_set(
        ss_name, isolation_group_name, cluster, instance_amount
    )
    pod_spec = stateful_set["spec"]["template"]["spec"]
    container = pod_spec["containers"][0]
    container["resources"] = copy.deepcopy(spec.container_resources)
    container["ports"] = generate_container_ports(cluster)
    if affinity is not None:
        pod_spec["affinity"] = affinity
    pod_spec["tolerations"] = copy.deepcopy(spec.tolerations)
    pod_spec["hostNetwork"] = spec.host_network
    if spec.dns_policy is not None:
        pod_spec["dnsPolicy"] = spec.dns_policy

    # The owner reference lets the StatefulSet be collected with the cluster.
    stateful_set["metadata"]["ownerReferences"] = [generate_owner_ref(cluster)]

    config_volume, config_mount = build_config_map_components(cluster)
    container["volumeMounts"].append(config_mount)
    pod_spec["volumes"].append(config_volume)

    if spec.data_dir_volume_claim_template is None:
        pod_spec["volumes"].append({"name": DATA_VOLUME_NAME, "emptyDir": {}})
    else:
        template = copy.deepcopy(spec.data_dir_volume_claim_template)
        template.setdefault("metadata", {})["name"] = DATA_VOLUME_NAME
        if isolation_group.storage_class_name:
            template.setdefault("spec", {})[
                "storageClassName"
            ] = isolation_group.storage_class_name
        stateful_set["spec"]["volumeClaimTemplates"] = [template]

    container["env"].extend(copy.deepcopy(spec.env_vars))
    if spec.init_containers:
        pod_spec.setdefault("initContainers", []).extend(
            copy.deepcopy(spec.init_containers)
        )
    pod_spec["volumes"].extend(copy.deepcopy(spec.init_volumes))
    pod_spec["containers"].extend(copy.deepcopy(spec.sidecar_containers))
    pod_spec["volumes"].extend(copy.deepcopy(spec.sidecar_volumes))

    return stateful_set


def generate_m3db_service(cluster: M3DBCluster) -> dict[str, Any]:
    """Return the headless service the cluster's dbnode StatefulSets need."""
    if not cluster.name:
        raise SpecError(ERR_EMPTY_CLUSTER_NAME)

    svc_labels = labels.base_labels(cluster)
    svc_labels[labels.COMPONENT] = labels.COMPONENT_M3DB_NODE
    return {
        "metadata": {
            "name": headless_service_name(cluster.name),
            "labels": svc_labels,
            "annotations": base_annotations(cluster),
        },
        "spec": {
            "selector": dict(svc_labels),
            "ports": _build_service_ports(_with_carbon(cluster, _BASE_M3DB_PORTS)),
            "clusterIP": "None",
            "type": "ClusterIP",
            # Publish dbnode DNS names even while nodes bootstrap so they can
            # be looked up; coordinators are not routed to until ready.
            "publishNotReadyAddresses": True,
        },
    }


def generate_coordinator_service(cluster: M3DBCluster) -> dict[str, Any]:
    """Return the cluster's coordinator service."""
    if not cluster.name:
        raise SpecError(ERR_EMPTY_CLUSTER_NAME)

    external = cluster.spec.external_coordinator
    if external is not None and external.selector:
        selector = dict(external.selector)
    else:
        selector = labels.base_labels(cluster)
        selector[labels.COMPONENT] = labels.COMPONENT_M3DB_NODE

    service_labels = labels.base_labels(cluster)
    service_labels[labels.COMPONENT] = labels.COMPONENT_COORDINATOR

    return {
        "metadata": {
            "name": coordinator_service_name(cluster.name),
            "labels": service_labels,
        },
        "spec": {
            "selector": selector,
            "ports": _build_service_ports(
                _with_carbon(cluster, _BASE_COORDINATOR_PORTS)
            ),
            "type": "ClusterIP",
        },
    }


def _build_service_ports(ports: Iterable[_M3DBPort]) -> list[dict[str, Any]]:
    return [
        {"name": p.name, "port": int(p.port), "protocol": p.protocol} for p in ports
    ]


def generate_container_ports(cluster: M3DBCluster) -> list[dict[str, Any]]:
    """Return the ports a dbnode container exposes."""
    return [
        {"name": p.name, "containerPort": int(p.port), "protocol": p.protocol}
        for p in _with_carbon(cluster, _BASE_M3DB_PORTS)
    ]