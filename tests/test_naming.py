import pytest

from m3operator.naming import (
    Port,
    coordinator_service_name,
    headless_service_name,
    stateful_set_name,
)


def test_common():
    assert stateful_set_name("testCluster", 1) == "testCluster-rep1"


def test_stateful_set_name_zero():
    assert stateful_set_name("m3db-cluster", 0) == "m3db-cluster-rep0"


def test_headless_service_name():
    assert headless_service_name("cluster-a") == "m3dbnode-cluster-a"
    assert headless_service_name("m3db-cluster") == "m3dbnode-m3db-cluster"


def test_coordinator_service_name():
    assert coordinator_service_name("cluster-a") == "m3coordinator-cluster-a"


def test_ports():
    assert Port(9000) is Port.M3DB_NODE_CLIENT
    assert Port(9002) is Port.M3DB_HTTP_NODE
    assert Port(7201) is Port.M3_COORDINATOR
    assert Port(7204) is Port.M3_COORDINATOR_CARBON
    assert len({int(p) for p in Port}) == len(list(Port))


def test_unknown_port_rejected():
    with pytest.raises(ValueError):
        Port(1234)