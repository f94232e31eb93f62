"""Data structures shared by the bridge.

These light-weight dataclasses describe the Kubernetes objects the bridge
reads and the SkyDNS records it writes.  Only the handful of fields the bridge
actually needs are decoded; everything else in the API payload is ignored.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Sequence

DEFAULT_PRIORITY = 10
DEFAULT_WEIGHT = 10
DEFAULT_TTL = 30


@dataclass(frozen=True)
class ServicePort:
    """A single port exposed by a service."""

    port: int
    name: str = ""
    protocol: str = "TCP"


@dataclass(frozen=True)
class Service:
    """Read-only copy of a Kubernetes service.

    Attributes
    ----------
    name, namespace:
        Identity of the service inside the cluster.
    resource_version:
        Registry-wide version stamp of the last change to this object.
    cluster_ip:
        Virtual IP assigned by the cluster.  Empty or ``"None"`` for headless
        services.
    ports:
        Declared ports, in API order.
    """

    name: str
    namespace: str
    resource_version: str = ""
    cluster_ip: str = ""
    ports: Sequence[ServicePort] = field(default_factory=tuple)

    def is_ip_set(self) -> bool:
        return self.cluster_ip not in ("", "None")

    @property
    def port(self) -> int:
        """First declared port, or ``0`` if the service declares none."""

        if not self.ports:
            return 0
        return self.ports[0].port


@dataclass(frozen=True)
class Status:
    """Structured error returned by the API server inside a watch stream."""

    status: str = ""
    message: str = ""
    reason: str = ""
    code: int = 0


@dataclass(frozen=True)
class SkyRecord:
    """SkyDNS service record as stored in etcd."""

    host: str
    port: int
    priority: int = DEFAULT_PRIORITY
    weight: int = DEFAULT_WEIGHT
    ttl: int = DEFAULT_TTL

    def to_dict(self) -> dict:
        return {
            "host": self.host,
            "port": self.port,
            "priority": self.priority,
            "weight": self.weight,
            "ttl": self.ttl,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))
