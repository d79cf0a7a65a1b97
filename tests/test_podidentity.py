import logging

import pytest

from m3operator.model import (
    ClusterSpec,
    M3DBCluster,
    Node,
    Pod,
    PodIdentity,
    PodIdentityConfig,
    PodIdentitySource,
)
from m3operator.podidentity import (
    IdentityProvider,
    NodeLister,
    PodIdentityError,
    identity_json,
)


def cluster_with_sources(name, *sources):
    return M3DBCluster(
        name=name,
        spec=ClusterSpec(pod_identity_config=PodIdentityConfig(sources=list(sources))),
    )


def test_provider_requires_node_lister():
    with pytest.raises(PodIdentityError, match="node informer cannot be empty"):
        IdentityProvider()


def test_provider_options_are_kept():
    lister = NodeLister()
    logger = logging.getLogger("test-provider")
    provider = IdentityProvider(lister, logger)
    assert provider.node_lister is lister
    assert provider.logger is logger


def test_unknown_source_raises():
    pod = Pod(name="pod-0", uid="foo")
    cluster = cluster_with_sources("foo", "badsource")
    with pytest.raises(PodIdentityError, match="unrecognized pod identity source"):
        IdentityProvider(NodeLister()).identity(pod, cluster)


def test_empty_uid_raises():
    with pytest.raises(PodIdentityError, match="pod UID cannot be empty"):
        IdentityProvider(NodeLister()).identity(Pod(name="foo"), M3DBCluster())


def test_empty_pod_name_raises():
    with pytest.raises(PodIdentityError, match="pod name cannot by empty"):
        IdentityProvider(NodeLister()).identity(Pod(uid="foo"), M3DBCluster())


def test_no_config_uses_uid():
    ident = IdentityProvider(NodeLister()).identity(
        Pod(name="pod-0", uid="foo"), M3DBCluster()
    )
    assert ident == PodIdentity(name="pod-0", uid="foo")


def test_uid_config():
    ident = IdentityProvider(NodeLister()).identity(
        Pod(name="pod1", uid="foo"),
        cluster_with_sources("foo", PodIdentitySource.POD_UID),
    )
    assert ident == PodIdentity(name="pod1", uid="foo")


def test_node_provider_id_config():
    lister = NodeLister([Node(name="node-2", provider_id="id2")])
    ident = IdentityProvider(lister).identity(
        Pod(name="pod-b", node_name="node-2"),
        cluster_with_sources("foo", PodIdentitySource.NODE_SPEC_PROVIDER_ID),
    )
    assert ident == PodIdentity(name="pod-b", node_provider_id="id2")


def test_node_provider_id_empty_raises():
    lister = NodeLister([Node(name="node-2")])
    with pytest.raises(PodIdentityError, match="node provider ID cannot be empty"):
        IdentityProvider(lister).identity(
            Pod(name="pod-b", node_name="node-2"),
            cluster_with_sources("foo", PodIdentitySource.NODE_SPEC_PROVIDER_ID),
        )


def test_node_name_config():
    lister = NodeLister([Node(name="node-2")])
    ident = IdentityProvider(lister).identity(
        Pod(name="pod-b", node_name="node-2"),
        cluster_with_sources("foo", PodIdentitySource.NODE_NAME),
    )
    assert ident == PodIdentity(name="pod-b", node_name="node-2")


def test_string_sources_are_accepted():
    ident = IdentityProvider(NodeLister()).identity(
        Pod(name="pod1", uid="abc"), cluster_with_sources("foo", "PodUID")
    )
    assert ident.uid == "abc"


def test_identity_json():
    assert identity_json(PodIdentity(name="foo", uid="bar")) == '{"name":"foo","uid":"bar"}'


def test_identity_json_name_only():
    assert identity_json(PodIdentity(name="pod-a")) == '{"name":"pod-a"}'


def test_node_for_pod_not_scheduled():
    provider = IdentityProvider(NodeLister())
    with pytest.raises(PodIdentityError, match="not yet scheduled"):
        provider.node_for_pod(Pod(name="pod-a"))


def test_node_for_pod_missing_node():
    provider = IdentityProvider(NodeLister())
    with pytest.raises(LookupError):
        provider.node_for_pod(Pod(name="pod-a", node_name="node-1"))


def test_node_for_pod_found():
    node = Node(name="node-1")
    provider = IdentityProvider(NodeLister([node]))
    assert provider.node_for_pod(Pod(name="pod-a", node_name="node-1")) == node