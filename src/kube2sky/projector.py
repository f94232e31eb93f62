"""Map Kubernetes services onto SkyDNS record names and payloads."""

from __future__ import annotations

from typing import Optional, Tuple

from .model import Service, SkyRecord

SKYDNS_PREFIX = "/skydns"


def build_name(service: str, namespace: str, domain: str) -> str:
    """Return the absolute DNS name ``<service>.<namespace>.<domain>.``."""

    return f"{service}.{namespace}.{domain.rstrip('.')}."


def project(service: Service, domain: str) -> Optional[Tuple[str, SkyRecord]]:
    """Return the record name and payload for ``service``.

    Services without a cluster IP (headless services) do not get a record and
    ``None`` is returned.  The name is computed the same way for every
    service, so callers removing a record can use :func:`build_name` directly.
    """

    if not service.is_ip_set():
        return None

    name = build_name(service.name, service.namespace, domain)
    record = SkyRecord(host=service.cluster_ip, port=service.port)
    return name, record


def skydns_path(name: str, prefix: str = SKYDNS_PREFIX) -> str:
    """Translate a DNS name into the etcd key SkyDNS reads it from.

    ``a.default.cluster.local.`` becomes ``/skydns/local/cluster/default/a``.
    """

    labels = [label for label in name.split(".") if label]
    if not labels:
        raise ValueError(f"cannot build a SkyDNS path for empty name {name!r}")
    labels.reverse()
    return "/".join([prefix.rstrip("/"), *labels])
