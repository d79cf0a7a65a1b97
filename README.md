# m3operator

Helpers that turn an M3DB cluster description into the Kubernetes objects
an operator manages. Cluster descriptions are dataclasses
(`m3operator.model`); the generated Kubernetes objects are plain Python
dictionaries shaped like their API JSON form.

## What it covers

- `m3operator.model`: `M3DBCluster`, `ClusterSpec`, `IsolationGroup`,
  `NodeAffinityTerm`, `PodIdentityConfig`, `PodIdentitySource`,
  `ExternalCoordinatorConfig`, `PodIdentity`, `Pod` and `Node`, plus
  `default_m3_cluster_environment_name`, which gives `"<namespace>/<name>"`.
- `m3operator.labels.base_labels` and `m3operator.annotations.base_annotations`
  / `pod_annotations` / `copy_annotations`: the labels and annotations put on
  every object created for a cluster. Pod-only annotations never override the
  base ones.
- `m3operator.naming`: `stateful_set_name` (`"<cluster>-rep<n>"`),
  `headless_service_name` (`"m3dbnode-<cluster>"`),
  `coordinator_service_name` (`"m3coordinator-<cluster>"`) and the `Port`
  enum of dbnode and coordinator ports.
- `m3operator.podidentity`: `IdentityProvider` builds a pod's identity from
  its UID, its node's name or its node's provider ID, looking nodes up through
  a `NodeLister`; `identity_json` renders an identity as compact JSON, leaving
  out empty fields. Problems raise `PodIdentityError`.
- `m3operator.placement`: `placement_instance_from_pod` returns a
  `PlacementInstance` for a dbnode pod. The endpoint comes from the cluster's
  `node_endpoint_format`, default `{{ .PodName }}.{{ .M3DBService }}:{{ .Port }}`;
  `.PodNamespace` is also available. `render_endpoint` renders such a format.
  Problems raise `PlacementError`.
- `m3operator.statefulset`: the base StatefulSet, node affinity, pod
  anti-affinity, config map volume and mount, pod-identity downward API
  volume, and the owner reference pointing at the cluster. Invalid specs
  raise `SpecError`.
- `m3operator.generators`: `generate_stateful_set` for one isolation group,
  `generate_m3db_service` (headless), `generate_coordinator_service` and
  `generate_container_ports`. Enabling the carbon ingester adds the
  `coord-carbon` port.
- `m3operator.services`: `K8sOps` gets, deletes and idempotently ensures
  services, setting the cluster owner reference on newly created ones. It
  works against `ServiceClient`, an in-memory store of services and events
  keyed by namespace; missing services raise `NotFoundError` and duplicates
  `AlreadyExistsError`.

## Installation

```
pip install m3operator
```

It has no runtime dependencies and needs Python 3.10 or later.

## Example

```python
from m3operator.model import ClusterSpec, IsolationGroup, M3DBCluster
from m3operator.generators import generate_m3db_service, generate_stateful_set

cluster = M3DBCluster(
    name="m3db-cluster",
    namespace="foo",
    spec=ClusterSpec(
        image="m3dbnode:latest",
        isolation_groups=[IsolationGroup(name="us-east1-b")],
        etcd_endpoints=["ep0", "ep1"],
    ),
)

sts = generate_stateful_set(cluster, "us-east1-b", 3)
print(sts["metadata"]["name"])          # m3db-cluster-rep0

svc = generate_m3db_service(cluster)
print(svc["metadata"]["name"])          # m3dbnode-m3db-cluster
```

## What it does not do

- It does not talk to a Kubernetes API server. `ServiceClient` keeps
  services in memory; applying the generated objects to a real cluster is
  left to whatever client you use.
- It has no controller loop and no command-line program.
- It does not render the default M3DB configuration file. When no config map
  is named, the StatefulSet mounts one called `m3db-config-map-<cluster>`,
  which must be created by other means.

## Running the tests

```
pip install -e ".[test]"
pytest
```