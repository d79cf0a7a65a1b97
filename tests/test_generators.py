import pytest

from m3operator import labels
from m3operator.generators import (
    generate_container_ports,
    generate_coordinator_service,
    generate_m3db_service,
    generate_stateful_set,
)
from m3operator.model import (
    ClusterSpec,
    ExternalCoordinatorConfig,
    IsolationGroup,
    M3DBCluster,
)
from m3operator.statefulset import SpecError

BASE_PORT_NAMES = [
    "client",
    "cluster",
    "http-node",
    "http-cluster",
    "debug",
    "coordinator",
    "coord-metrics",
]


def make_cluster(**spec_kwargs):
    spec_kwargs.setdefault(
        "isolation_groups",
        [
            IsolationGroup(name="us-east1-b", num_instances=1),
            IsolationGroup(name="us-east1-c", num_instances=1),
        ],
    )
    return M3DBCluster(
        name="m3db-cluster",
        namespace="foo",
        uid="uid-1",
        spec=ClusterSpec(image="m3db:latest", **spec_kwargs),
    )


def test_stateful_set_name_and_replicas():
    sts = generate_stateful_set(make_cluster(), "us-east1-c", 3)
    assert sts["metadata"]["name"] == "m3db-cluster-rep1"
    assert sts["spec"]["replicas"] == 3
    assert sts["metadata"]["ownerReferences"][0]["name"] == "m3db-cluster"


def test_stateful_set_unknown_group():
    with pytest.raises(SpecError, match="could not find isogroup 'nope' in spec"):
        generate_stateful_set(make_cluster(), "nope", 1)


def test_stateful_set_affinity_error_is_wrapped():
    cluster = make_cluster(
        isolation_groups=[IsolationGroup(name="g", use_pod_anti_affinity=True)]
    )
    with pytest.raises(SpecError, match="error generating statefulset affinity"):
        generate_stateful_set(cluster, "g", 1)


def test_stateful_set_affinity_set():
    cluster = make_cluster(
        isolation_groups=[
            IsolationGroup(
                name="g",
                use_pod_anti_affinity=True,
                pod_affinity_topology_key="hostname",
            )
        ]
    )
    pod_spec = generate_stateful_set(cluster, "g", 1)["spec"]["template"]["spec"]
    term = pod_spec["affinity"]["podAntiAffinity"][
        "requiredDuringSchedulingIgnoredDuringExecution"
    ][0]
    assert term["topologyKey"] == "hostname"


def test_stateful_set_ports_and_config_volume():
    sts = generate_stateful_set(make_cluster(), "us-east1-b", 1)
    pod_spec = sts["spec"]["template"]["spec"]
    container = pod_spec["containers"][0]
    assert [p["name"] for p in container["ports"]] == BASE_PORT_NAMES
    assert {"name": "m3-configuration", "mountPath": "/etc/m3db/"} in container[
        "volumeMounts"
    ]
    names = [v["name"] for v in pod_spec["volumes"]]
    assert "m3-configuration" in names
    assert {"name": "m3db-data", "emptyDir": {}} in pod_spec["volumes"]
    assert "volumeClaimTemplates" not in sts["spec"]


def test_stateful_set_volume_claim_template():
    template = {"metadata": {"name": "x"}, "spec": {"accessModes": ["ReadWriteOnce"]}}
    cluster = make_cluster(
        data_dir_volume_claim_template=template,
        isolation_groups=[IsolationGroup(name="g", storage_class_name="fast")],
    )
    sts = generate_stateful_set(cluster, "g", 1)
    claims = sts["spec"]["volumeClaimTemplates"]
    assert claims[0]["metadata"]["name"] == "m3db-data"
    assert claims[0]["spec"]["storageClassName"] == "fast"
    assert template["metadata"]["name"] == "x"
    volumes = sts["spec"]["template"]["spec"]["volumes"]
    assert all(v["name"] != "m3db-data" for v in volumes)


def test_stateful_set_empty_config_map_name():
    with pytest.raises(SpecError):
        generate_stateful_set(make_cluster(config_map_name=""), "us-east1-b", 1)


def test_stateful_set_extras_appended():
    env = {"name": "EXTRA", "value": "1"}
    sidecar = {"name": "sidecar", "image": "side"}
    init = {"name": "init", "image": "init"}
    init_vol = {"name": "init-vol", "emptyDir": {}}
    side_vol = {"name": "side-vol", "emptyDir": {}}
    cluster = make_cluster(
        env_vars=[env],
        sidecar_containers=[sidecar],
        init_containers=[init],
        init_volumes=[init_vol],
        sidecar_volumes=[side_vol],
        dns_policy="ClusterFirstWithHostNet",
        host_network=True,
    )
    pod_spec = generate_stateful_set(cluster, "us-east1-b", 1)["spec"]["template"][
        "spec"
    ]
    assert pod_spec["containers"][0]["env"][-1] == env
    assert pod_spec["containers"][-1] == sidecar
    assert pod_spec["initContainers"] == [init]
    assert pod_spec["volumes"][-2:] == [init_vol, side_vol]
    assert pod_spec["dnsPolicy"] == "ClusterFirstWithHostNet"
    assert pod_spec["hostNetwork"] is True


def test_container_ports_with_carbon():
    ports = generate_container_ports(make_cluster(enable_carbon_ingester=True))
    assert [p["name"] for p in ports] == BASE_PORT_NAMES + ["coord-carbon"]
    assert ports[-1]["containerPort"] == 7204
    assert ports[0]["containerPort"] == 9000
    assert all(p["protocol"] == "TCP" for p in ports)


def test_m3db_service():
    svc = generate_m3db_service(make_cluster())
    assert svc["metadata"]["name"] == "m3dbnode-m3db-cluster"
    assert svc["metadata"]["labels"][labels.COMPONENT] == "m3dbnode"
    assert svc["spec"]["selector"] == svc["metadata"]["labels"]
    assert svc["spec"]["clusterIP"] == "None"
    assert svc["spec"]["publishNotReadyAddresses"] is True
    assert [p["name"] for p in svc["spec"]["ports"]] == BASE_PORT_NAMES


def test_m3db_service_empty_name():
    cluster = make_cluster()
    cluster.name = ""
    with pytest.raises(SpecError, match="cluster name cannot be empty"):
        generate_m3db_service(cluster)


def test_coordinator_service():
    svc = generate_coordinator_service(make_cluster(enable_carbon_ingester=True))
    assert svc["metadata"]["name"] == "m3coordinator-m3db-cluster"
    assert svc["metadata"]["labels"][labels.COMPONENT] == "coordinator"
    assert svc["spec"]["selector"][labels.COMPONENT] == "m3dbnode"
    assert [p["name"] for p in svc["spec"]["ports"]] == [
        "coordinator",
        "coord-metrics",
        "coord-carbon",
    ]
    assert svc["spec"]["ports"][0]["port"] == 7201


def test_coordinator_service_external_selector():
    selector = {"app": "coord"}
    cluster = make_cluster(
        external_coordinator=ExternalCoordinatorConfig(selector=selector)
    )
    svc = generate_coordinator_service(cluster)
    assert svc["spec"]["selector"] == selector


def test_coordinator_service_empty_name():
    cluster = make_cluster()
    cluster.name = ""
    with pytest.raises(SpecError):
        generate_coordinator_service(cluster)