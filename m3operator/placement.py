"""Build placement instances for M3DB pods."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from . import labels
from .model import M3DBCluster, Pod, PodIdentity
from .naming import headless_service_name
from .podidentity import identity_json

_ZONE_EMBEDDED = "embedded"
DEFAULT_M3DB_PORT = 9000
DEFAULT_NODE_ENDPOINT_FORMAT = "{{ .PodName }}.{{ .M3DBService }}:{{ .Port }}"
_DEFAULT_WEIGHT = 100

_ACTION = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)
_FIELD = re.compile(r"\s*\.(\w+)\s*")


class PlacementError(Exception):
    """Raised when a placement instance cannot be built."""


class _IdentitySource(Protocol):
    def identity(self, pod: Pod, cluster: M3DBCluster) -> PodIdentity: ...


@dataclass
class PlacementInstance:
    """An instance in an M3 cluster placement."""

    id: str
    isolation_group: str
    zone: str
    weight: int
    hostname: str
    endpoint: str
    port: int


def render_endpoint(template: str, context: Mapping[str, Any]) -> str:
    """Render a template whose actions are field references such as
    ``{{ .PodName }}`` using values from the context."""
    parts = _ACTION.split(template)
    fields: list[str] = []
    for index, part in enumerate(parts):
        if index % 2:
            match = _FIELD.fullmatch(part)
            if match is None:
                raise PlacementError(
                    f"cannot construct node endpoint template: bad action {{{{{part}}}}}"
                )
            fields.append(match.group(1))
        elif "{{" in part:
            raise PlacementError(
                "cannot construct node endpoint template: unclosed action"
            )

    rendered: list[str] = []
    for index, part in enumerate(parts):
        if index % 2:
            name = part.strip()[1:]
            if name not in context:
                raise PlacementError(
                    f"cannot execute node endpoint template: no field {name}"
                )
            rendered.append(str(context[name]))
        else:
            rendered.append(part)
    return "".join(rendered)


def placement_instance_from_pod(
    cluster: M3DBCluster, pod: Pod, id_provider: _IdentitySource
) -> PlacementInstance:
    """Return the placement instance describing the given pod."""
    iso_group = pod.labels.get(labels.ISOLATION_GROUP)
    if iso_group is None:
        raise PlacementError(
            f"could not find label {labels.ISOLATION_GROUP} in {pod.labels}"
        )

    id_str = identity_json(id_provider.identity(pod, cluster))

    service = headless_service_name(cluster.name)
    context = {
        "PodName": pod.name,
        "M3DBService": service,
        "PodNamespace": pod.namespace,
        "Port": DEFAULT_M3DB_PORT,
    }
    endpoint = render_endpoint(
        cluster.spec.node_endpoint_format or DEFAULT_NODE_ENDPOINT_FORMAT, context
    )

    return PlacementInstance(
        id=id_str,
        isolation_group=iso_group,
        zone=cluster.spec.zone or _ZONE_EMBEDDED,
        weight=_DEFAULT_WEIGHT,
        hostname=f"{pod.name}.{service}",
        endpoint=endpoint,
        port=DEFAULT_M3DB_PORT,
    )