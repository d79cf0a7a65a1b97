"""Build the StatefulSet, affinity and volume objects for M3DB nodes.

Kubernetes objects are plain dicts shaped like their API JSON form.
"""

from __future__ import annotations

import copy
from typing import Any

from . import labels
from .annotations import copy_annotations, pod_annotations
from .model import IsolationGroup, M3DBCluster, default_m3_cluster_environment_name
from .naming import Port, headless_service_name
from .podidentity import ANNOTATION_KEY_POD_IDENTITY

API_GROUP = "operator.m3db.io"
API_VERSION = "v1alpha1"
CLUSTER_KIND = "m3dbcluster"

PROBE_TIMEOUT_SECONDS = 30
PROBE_INITIAL_DELAY_SECONDS = 10
PROBE_FAILURE_THRESHOLD = 15
PROBE_PATH_READY = "/bootstrappedinplacementornoplacement"

DATA_DIRECTORY = "/var/lib/m3db/"
DATA_VOLUME_NAME = "m3db-data"
CONFIGURATION_DIRECTORY = "/etc/m3db/"
CONFIGURATION_NAME = "m3-configuration"
CONFIGURATION_FILE_NAME = "m3.yml"
CONFIGURATION_FILE_LOCATION = CONFIGURATION_DIRECTORY + CONFIGURATION_FILE_NAME

POD_IDENTITY_VOLUME_PATH = "/etc/m3db/pod-identity"
POD_IDENTITY_VOLUME_NAME = "pod-identity"
CAPABILITY_SYS_RESOURCE = "SYS_RESOURCE"

ERR_EMPTY_CONFIG_MAP_NAME = "configMap name cannot be empty if non-nil"
ERR_EMPTY_NODE_AFFINITY_KEY = "node affinity term key cannot be empty"
ERR_EMPTY_NODE_AFFINITY_VALUES = "node affinity term values cannot be empty"
ERR_EMPTY_POD_AFFINITY_TOPOLOGY_KEY = "pod affinity toplogy key cannot be empty"


class SpecError(ValueError):
    """Raised when a cluster spec cannot be turned into Kubernetes objects."""


def generate_owner_ref(cluster: M3DBCluster) -> dict[str, Any]:
    """Return a controller owner reference pointing at the cluster."""
    return {
        "apiVersion": f"{API_GROUP}/{API_VERSION}",
        "kind": CLUSTER_KIND,
        "name": cluster.name,
        "uid": cluster.uid,
        "controller": True,
        "blockOwnerDeletion": True,
    }


def default_config_map_name(cluster_name: str) -> str:
    """Return the name of the cluster's default ConfigMap."""
    return "m3db-config-map-" + cluster_name


def build_config_map_components(
    cluster: M3DBCluster,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return the pod volume and container volume mount for the cluster's
    configuration; the user's ConfigMap is used if one is named, otherwise
    the default one."""
    volume_mount = {
        "name": CONFIGURATION_NAME,
        "mountPath": CONFIGURATION_DIRECTORY,
    }

    cm_name = cluster.spec.config_map_name
    if cm_name is None:
        cm_name = default_config_map_name(cluster.name)
    if not cm_name:
        raise SpecError(ERR_EMPTY_CONFIG_MAP_NAME)

    volume = {
        "name": CONFIGURATION_NAME,
        "configMap": {"name": cm_name},
    }
    return volume, volume_mount


def generate_downward_api_volume() -> dict[str, Any]:
    """Return the volume exposing the pod identity annotation as a file."""
    return {
        "name": POD_IDENTITY_VOLUME_NAME,
        "downwardAPI": {
            "items": [
                {
                    "path": "identity",
                    "fieldRef": {
                        "fieldPath": (
                            f"metadata.annotations['{ANNOTATION_KEY_POD_IDENTITY}']"
                        ),
                    },
                }
            ]
        },
    }


def generate_downward_api_volume_mount() -> dict[str, Any]:
    """Return the mount for the pod identity volume."""
    return {
        "name": POD_IDENTITY_VOLUME_NAME,
        "mountPath": POD_IDENTITY_VOLUME_PATH,
        "readOnly": False,
    }


def generate_stateful_set_pod_anti_affinity(
    iso_group: IsolationGroup,
) -> dict[str, Any] | None:
    """Return a pod anti-affinity keeping dbnode pods apart, or None if the
    group does not ask for one."""
    if not iso_group.use_pod_anti_affinity:
        return None
    if not iso_group.pod_affinity_topology_key:
        raise SpecError(ERR_EMPTY_POD_AFFINITY_TOPOLOGY_KEY)

    return {
        "requiredDuringSchedulingIgnoredDuringExecution": [
            {
                "labelSelector": {
                    "matchExpressions": [
                        {
                            "key": labels.COMPONENT,
                            "operator": "In",
                            "values": [labels.COMPONENT_M3DB_NODE],
                        }
                    ]
                },
                "topologyKey": iso_group.pod_affinity_topology_key,
            }
        ]
    }


def generate_stateful_set_node_affinity(
    iso_group: IsolationGroup,
) -> dict[str, Any] | None:
    """Return a node affinity strictly requiring the group's terms, or None
    if the group has no terms."""
    if not iso_group.node_affinity_terms:
        return None

    expressions = []
    for term in iso_group.node_affinity_terms:
        if not term.key:
            raise SpecError(ERR_EMPTY_NODE_AFFINITY_KEY)
        if not term.values:
            raise SpecError(ERR_EMPTY_NODE_AFFINITY_VALUES)
        expressions.append(
            {"key": term.key, "operator": "In", "values": list(term.values)}
        )

    return {
        "requiredDuringSchedulingIgnoredDuringExecution": {
            "nodeSelectorTerms": [{"matchExpressions": expressions}]
        }
    }


def generate_stateful_set_affinity(
    iso_group: IsolationGroup,
) -> dict[str, Any] | None:
    """Return the affinity settings for the group's StatefulSet, or None if
    the group needs none."""
    if not iso_group.node_affinity_terms and not iso_group.use_pod_anti_affinity:
        return None

    node_affinity = generate_stateful_set_node_affinity(iso_group)
    pod_anti_affinity = generate_stateful_set_pod_anti_affinity(iso_group)

    affinity: dict[str, Any] = {}
    if node_affinity is not None:
        affinity["nodeAffinity"] = node_affinity
    if pod_anti_affinity is not None:
        affinity["podAntiAffinity"] = pod_anti_affinity
    return affinity


def new_base_stateful_set(
    ss_name: str,
    isolation_group: str,
    cluster: M3DBCluster,
    instance_count: int,
) -> dict[str, Any]:
    """Return a StatefulSet with the base configuration for an M3DB node group."""
    spec = cluster.spec

    obj_labels = labels.base_labels(cluster)
    obj_labels[labels.ISOLATION_GROUP] = isolation_group
    obj_labels[labels.STATEFUL_SET] = ss_name
    obj_labels[labels.COMPONENT] = labels.COMPONENT_M3DB_NODE
    obj_labels.update(spec.labels)

    obj_annotations = pod_annotations(cluster)

    probe_ready = {
        "timeoutSeconds": PROBE_TIMEOUT_SECONDS,
        "initialDelaySeconds": PROBE_INITIAL_DELAY_SECONDS,
        "failureThreshold": PROBE_FAILURE_THRESHOLD,
        "httpGet": {
            "port": int(Port.M3DB_HTTP_NODE),
            "path": PROBE_PATH_READY,
            "scheme": "HTTP",
        },
    }

    # SYS_RESOURCE lets the process raise its open-file limit.
    if spec.security_context is None:
        security_context: dict[str, Any] = {
            "capabilities": {"add": [CAPABILITY_SYS_RESOURCE]}
        }
    else:
        security_context = copy.deepcopy(spec.security_context)

    container = {
        "name": ss_name,
        "securityContext": security_context,
        "readinessProbe": probe_ready,
        "command": ["m3dbnode"],
        "args": ["-f", CONFIGURATION_FILE_LOCATION],
        "image": spec.image,
        "imagePullPolicy": "Always",
        "env": [
            {
                "name": "NAMESPACE",
                "valueFrom": {"fieldRef": {"fieldPath": "metadata.namespace"}},
            },
            {
                "name": "M3CLUSTER_ENVIRONMENT",
                "value": default_m3_cluster_environment_name(cluster),
            },
        ],
        "ports": [],
        "volumeMounts": [
            {"name": DATA_VOLUME_NAME, "mountPath": DATA_DIRECTORY},
            {"name": "cache", "mountPath": "/var/lib/m3kv/"},
            generate_downward_api_volume_mount(),
        ],
    }

    pod_spec: dict[str, Any] = {
        "priorityClassName": spec.priority_class_name,
        "imagePullSecrets": copy.deepcopy(spec.image_pull_secrets),
        "containers": [container],
        "volumes": [
            {"name": "cache", "emptyDir": {}},
            generate_downward_api_volume(),
        ],
        "serviceAccountName": spec.service_account_name,
    }
    if spec.pod_security_context is not None:
        pod_spec["securityContext"] = copy.deepcopy(spec.pod_security_context)

    sts_spec: dict[str, Any] = {
        "serviceName": headless_service_name(cluster.name),
        "selector": {"matchLabels": dict(obj_labels)},
        "replicas": instance_count,
        "template": {
            "metadata": {
                "labels": dict(obj_labels),
                "annotations": obj_annotations,
            },
            "spec": pod_spec,
        },
        "updateStrategy": {
            "type": "OnDelete" if spec.on_delete_update_strategy else "RollingUpdate"
        },
    }
    if spec.parallel_pod_management is None or spec.parallel_pod_management:
        sts_spec["podManagementPolicy"] = "Parallel"

    return {
        "metadata": {
            "name": ss_name,
            "labels": dict(obj_labels),
            "annotations": copy_annotations(obj_annotations),
        },
        "spec": sts_spec,
    }