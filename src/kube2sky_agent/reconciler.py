"""Apply service update events to the SkyDNS record store."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from kube2sky.events import FullSync, Remove, ServiceUpdate, Upsert
from kube2sky.model import Service
from kube2sky.mutator import Mutator
from kube2sky.projector import build_name, project
from kube2sky.store import RecordStore

from .watchers.services import ServiceWatchSession

LOG = logging.getLogger(__name__)


class ServiceReconciler:
    """Consume watch sessions and converge the record store onto them.

    A session that ends for any reason is replaced by a new one straight
    away; the new session lists all services again, so the store is fully
    resynchronised after every interruption.
    """

    def __init__(
        self,
        store: RecordStore,
        domain: str,
        mutator: Mutator,
        session_factory: Callable[[], ServiceWatchSession],
    ) -> None:
        self._store = store
        self._domain = domain
        self._mutator = mutator
        self._session_factory = session_factory

    def run(self, max_sessions: Optional[int] = None) -> None:
        sessions = 0
        while max_sessions is None or sessions < max_sessions:
            self.watch_once()
            sessions += 1
            LOG.info("Watch session ended, starting a new one")

    def watch_once(self) -> None:
        session = self._session_factory()
        session.start()
        for update in session:
            self.handle(update)
        session.join()

    def handle(self, update: ServiceUpdate) -> None:
        if isinstance(update, FullSync):
            self._on_full_sync(update.services)
        elif isinstance(update, Upsert):
            self._add(update.service)
        elif isinstance(update, Remove):
            self._remove(update.service)
        else:
            raise TypeError(f"Unsupported update type: {type(update)!r}")

    def _on_full_sync(self, services: Iterable[Service]) -> None:
        for service in services:
            self._add(service)

    def _add(self, service: Service) -> None:
        projection = project(service, self._domain)
        if projection is None:
            LOG.info("Skipping dns record for headless service: %s", service.name)
            return

        name, record = projection
        self._mutator.mutate(
            lambda: self._store.upsert(name, record), f"set {name}"
        )

    def _remove(self, service: Service) -> None:
        name = build_name(service.name, service.namespace, self._domain)
        self._mutator.mutate(lambda: self._store.delete(name), f"remove {name}")
