from m3operator.labels import base_labels
from m3operator.model import M3DBCluster


def test_generate_base_labels():
    cluster = M3DBCluster(name="cluster-foo")
    expected = {
        "operator.m3db.io/app": "m3db",
        "operator.m3db.io/cluster": "cluster-foo",
    }
    assert base_labels(cluster) == expected

    cluster.spec.labels = {"foo": "bar"}
    expected["foo"] = "bar"
    assert base_labels(cluster) == expected


def test_base_labels_returns_fresh_dict():
    cluster = M3DBCluster(name="cluster-foo")
    labels = base_labels(cluster)
    labels["extra"] = "x"
    assert "extra" not in base_labels(cluster)