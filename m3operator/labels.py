"""Label keys and helpers used on objects the operator creates."""

from __future__ import annotations

from .model import M3DBCluster

APP = "operator.m3db.io/app"
APP_M3DB = "m3db"
CLUSTER = "operator.m3db.io/cluster"
ISOLATION_GROUP = "operator.m3db.io/isolation-group"
STATEFUL_SET = "operator.m3db.io/stateful-set"
COMPONENT = "operator.m3db.io/component"
COMPONENT_M3DB_NODE = "m3dbnode"
COMPONENT_COORDINATOR = "coordinator"
ETCD_DELETION_FINALIZER = "operator.m3db.io/etcd-deletion"


def base_labels(cluster: M3DBCluster) -> dict[str, str]:
    """Return the labels applied to every object created for the cluster."""
    return {APP: APP_M3DB, CLUSTER: cluster.name, **cluster.spec.labels}