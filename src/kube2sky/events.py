"""Update events passed from the watch session to the reconciler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

from .model import Service


@dataclass(frozen=True)
class FullSync:
    """Complete listing of services.

    Published once at the start of every watch session.  The reconciler is
    expected to (re)write a record for every service carried here.
    """

    services: Sequence[Service]


@dataclass(frozen=True)
class Upsert:
    """A single service was created or modified."""

    service: Service


@dataclass(frozen=True)
class Remove:
    """A single service was deleted."""

    service: Service


ServiceUpdate = Union[FullSync, Upsert, Remove]
