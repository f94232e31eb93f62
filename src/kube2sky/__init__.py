"""Kubernetes to SkyDNS bridge.

This package holds the pieces of the bridge that do not depend on how the
process is run:

* the service and record data model plus the update events exchanged between
  the watch session and the reconciler;
* deterministic projection of a service onto a SkyDNS name and record;
* the bounded-retry :class:`~kube2sky.mutator.Mutator`, which exits the
  process when a single write cannot be completed in time; and
* thin ``requests`` based clients for the Kubernetes services API and the
  etcd v2 keys API that SkyDNS reads from.

The runtime that wires these together lives in :mod:`kube2sky_agent`.
"""

from .events import FullSync, Remove, Upsert  # noqa: F401
from .model import Service, ServicePort, SkyRecord, Status  # noqa: F401
from .mutator import Mutator  # noqa: F401
from .projector import build_name, project  # noqa: F401

__all__ = [
    "FullSync",
    "Mutator",
    "Remove",
    "Service",
    "ServicePort",
    "SkyRecord",
    "Status",
    "Upsert",
    "build_name",
    "project",
]
