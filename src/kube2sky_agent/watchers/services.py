"""List-then-watch session over Kubernetes services."""

from __future__ import annotations

import logging
from contextlib import closing
from queue import Queue
from threading import Thread
from typing import Callable, Iterator, NoReturn, Optional

from kube2sky.events import FullSync, Remove, ServiceUpdate, Upsert
from kube2sky.kube import (
    ADDED,
    DELETED,
    ERROR,
    MODIFIED,
    RegistryError,
    ServicesClient,
    WatchEvent,
)
from kube2sky.model import Service, Status
from kube2sky.mutator import fatal

LOG = logging.getLogger(__name__)

_CLOSED = object()


class ServiceWatchSession(Thread):
    """Produce update events for one list/watch cycle.

    The session lists all services (unless started with a resource version),
    publishes a :class:`FullSync`, then watches from the listed version and
    publishes one :class:`Upsert` or :class:`Remove` per change.  Any anomaly
    ends the session; iterating the session simply stops.  Callers start a new
    session, which lists again, to recover.
    """

    def __init__(
        self,
        client: ServicesClient,
        *,
        resource_version: str = "",
        label_selector: str = "",
        field_selector: str = "",
        timeout_seconds: Optional[int] = None,
        queue_size: int = 1,
        die: Callable[..., NoReturn] = fatal,
    ) -> None:
        super().__init__(daemon=True, name="service-watch")
        self._client = client
        self._initial_version = resource_version
        self._label_selector = label_selector
        self._field_selector = field_selector
        self._timeout_seconds = timeout_seconds
        self._die = die
        self._updates: Queue = Queue(maxsize=queue_size)
        self._resource_version = resource_version

    @property
    def resource_version(self) -> str:
        """Last version observed by the session."""

        return self._resource_version

    def __iter__(self) -> Iterator[ServiceUpdate]:
        while True:
            update = self._updates.get()
            if update is _CLOSED:
                return
            yield update

    def run(self) -> None:
        try:
            self._watch_loop(self._initial_version)
        finally:
            self._updates.put(_CLOSED)

    # ------------------------------------------------------------------
    # Protocol steps
    # ------------------------------------------------------------------
    def _watch_loop(self, resource_version: str) -> None:
        if not resource_version:
            resource_version = self._list()
            if resource_version is None:
                return

        try:
            watch = self._client.watch(
                label_selector=self._label_selector,
                field_selector=self._field_selector,
                resource_version=resource_version,
                timeout_seconds=self._timeout_seconds,
            )
        except RegistryError as exc:
            LOG.warning("Failed to watch for service changes: %s", exc)
            return

        with closing(watch):
            try:
                for event in watch:
                    resource_version = self._dispatch(event, resource_version)
                    if resource_version is None:
                        return
            except RegistryError as exc:
                LOG.warning("Service watch stream failed: %s", exc)
                return
        LOG.info("Service watch channel closed")

    def _list(self) -> Optional[str]:
        """List services and publish a full sync.

        Returns the listed version, or ``None`` when listing failed.
        """

        try:
            services = self._client.list(self._label_selector)
        except RegistryError as exc:
            LOG.warning("Failed to load services: %s", exc)
            return None
        if not services.resource_version:
            LOG.warning("Service list carried no resource version; watching from now")

        self._publish(FullSync(tuple(services.items)))
        return self._advance(services.resource_version)

    def _dispatch(self, event: WatchEvent, resource_version: str) -> Optional[str]:
        """Handle one watch event and return the new resource version.

        ``None`` means the session must end.
        """

        if event.type == ERROR:
            if isinstance(event.object, Status):
                LOG.warning("Error during watch: %s", event.object)
                return None
            self._die("Received unexpected error: %r", event.object)

        service = event.object
        if not isinstance(service, Service):
            LOG.debug("ignoring %s event for non-service object", event.type)
            return resource_version

        resource_version = self._advance(service.resource_version or resource_version)
        if event.type in (ADDED, MODIFIED):
            self._publish(Upsert(service))
        elif event.type == DELETED:
            self._publish(Remove(service))
        else:
            self._die("Unknown event type: %s", event.type)
        return resource_version

    def _advance(self, resource_version: str) -> str:
        self._resource_version = resource_version
        return resource_version

    def _publish(self, update: ServiceUpdate) -> None:
        LOG.debug("Received update event: %r", update)
        self._updates.put(update)
