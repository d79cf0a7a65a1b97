"""Annotation keys and helpers used on objects the operator creates."""

from __future__ import annotations

from collections.abc import Mapping

from . import labels
from .model import M3DBCluster

APP = labels.APP
APP_M3DB = labels.APP_M3DB
CLUSTER = labels.CLUSTER
UPDATE = "operator.m3db.io/update"
PARALLEL_UPDATE = "operator.m3db.io/parallel-update"
PARALLEL_UPDATE_IN_PROGRESS = "operator.m3db.io/parallel-update-in-progress"
ENABLED_VAL = "enabled"


def base_annotations(cluster: M3DBCluster) -> dict[str, str]:
    """Return the annotations applied to every object created for the cluster."""
    return {APP: APP_M3DB, CLUSTER: cluster.name, **cluster.spec.annotations}


def pod_annotations(cluster: M3DBCluster) -> dict[str, str]:
    """Return the annotations applied to pods; pod-only annotations never
    override the base ones."""
    result = base_annotations(cluster)
    for key, value in cluster.spec.pod_annotations.items():
        result.setdefault(key, value)
    return result


def copy_annotations(annotations: Mapping[str, str]) -> dict[str, str]:
    """Return a new dict holding the given annotations."""
    return dict(annotations)