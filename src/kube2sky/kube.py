"""Minimal Kubernetes client for listing and watching services.

Only the two calls the bridge needs are implemented: a cluster-wide list of
services and a streaming watch starting after a given resource version.  The
watch stream is newline-delimited JSON, one ``{"type": ..., "object": ...}``
document per line.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterator, List, Mapping, Optional, Union

import requests

from .model import Service, ServicePort, Status

LOG = logging.getLogger(__name__)

ADDED = "ADDED"
MODIFIED = "MODIFIED"
DELETED = "DELETED"
ERROR = "ERROR"

HOST_ENV = "KUBERNETES_RO_SERVICE_HOST"
PORT_ENV = "KUBERNETES_RO_SERVICE_PORT"


class RegistryError(RuntimeError):
    """Listing or watching services failed."""


@dataclass(frozen=True)
class ServiceList:
    items: List[Service]
    resource_version: str


@dataclass(frozen=True)
class WatchEvent:
    """One entry of a watch stream.

    ``object`` is a :class:`Service`, a :class:`Status`, or the raw mapping
    when the payload is neither.
    """

    type: str
    object: Union[Service, Status, Mapping[str, Any], None]


def service_from_dict(data: Mapping[str, Any]) -> Service:
    metadata = data.get("metadata") or {}
    spec = data.get("spec") or {}
    ports = tuple(
        ServicePort(
            port=int(entry.get("port", 0)),
            name=str(entry.get("name", "")),
            protocol=str(entry.get("protocol", "TCP")),
        )
        for entry in spec.get("ports") or []
    )
    return Service(
        name=str(metadata.get("name", "")),
        namespace=str(metadata.get("namespace", "")),
        resource_version=str(metadata.get("resourceVersion", "")),
        cluster_ip=str(spec.get("clusterIP") or ""),
        ports=ports,
    )


def status_from_dict(data: Mapping[str, Any]) -> Status:
    return Status(
        status=str(data.get("status", "")),
        message=str(data.get("message", "")),
        reason=str(data.get("reason", "")),
        code=int(data.get("code", 0)),
    )


def decode_object(data: Any) -> Union[Service, Status, Mapping[str, Any], None]:
    if not isinstance(data, Mapping):
        return data
    kind = data.get("kind")
    if kind == "Status":
        return status_from_dict(data)
    if kind == "Service" or (kind is None and "spec" in data and "metadata" in data):
        return service_from_dict(data)
    return data


def decode_event(line: Union[str, bytes]) -> WatchEvent:
    try:
        payload = json.loads(line)
    except ValueError as exc:
        raise RegistryError(f"malformed watch event: {exc}") from exc
    if not isinstance(payload, dict):
        raise RegistryError(f"malformed watch event: {payload!r}")
    return WatchEvent(
        type=str(payload.get("type", "")),
        object=decode_object(payload.get("object")),
    )


class Watch:
    """Iterable view over an open watch response."""

    def __init__(self, response: requests.Response) -> None:
        self._response = response

    def __iter__(self) -> Iterator[WatchEvent]:
        try:
            for line in self._response.iter_lines():
                if not line:
                    continue
                yield decode_event(line)
        except requests.exceptions.RequestException as exc:
            raise RegistryError(f"watch stream interrupted: {exc}") from exc

    def stop(self) -> None:
        self._response.close()

    # contextlib.closing() compatibility
    close = stop


class ServicesClient:
    """List and watch services across all namespaces."""

    def __init__(
        self,
        host: str,
        api_version: str = "v1",
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ) -> None:
        self._host = host.rstrip("/")
        self._api_version = api_version
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        self._timeout = timeout

    @property
    def services_url(self) -> str:
        return f"{self._host}/api/{self._api_version}/services"

    def list(self, label_selector: str = "") -> ServiceList:
        params = {}
        if label_selector:
            params["labelSelector"] = label_selector
        response = self._get(params, stream=False)
        try:
            payload = response.json()
        except ValueError as exc:
            raise RegistryError(f"malformed service list: {exc}") from exc

        metadata = payload.get("metadata") or {}
        items = [service_from_dict(item) for item in payload.get("items") or []]
        return ServiceList(
            items=items,
            resource_version=str(metadata.get("resourceVersion", "")),
        )

    def watch(
        self,
        label_selector: str = "",
        field_selector: str = "",
        resource_version: str = "",
        timeout_seconds: Optional[int] = None,
    ) -> Watch:
        params = {"watch": "true"}
        if label_selector:
            params["labelSelector"] = label_selector
        if field_selector:
            params["fieldSelector"] = field_selector
        if resource_version:
            params["resourceVersion"] = resource_version
        if timeout_seconds:
            params["timeoutSeconds"] = str(int(timeout_seconds))
        return Watch(self._get(params, stream=True))

    def _get(self, params: Mapping[str, str], *, stream: bool) -> requests.Response:
        url = self.services_url
        try:
            # Watches stay open indefinitely; only bound the connect phase.
            timeout = (self._timeout, None) if stream else self._timeout
            response = self._session.get(
                url, params=params, stream=stream, timeout=timeout
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            raise RegistryError(f"GET {url} failed: {exc}") from exc
        return response


def master_from_environment(environ: Mapping[str, str]) -> str:
    """Return the API server URL advertised by the read-only service env."""

    host = environ.get(HOST_ENV)
    if not host:
        raise ValueError(f"{HOST_ENV} is not defined")
    port = environ.get(PORT_ENV)
    if not port:
        raise ValueError(f"{PORT_ENV} is not defined")
    master = f"http://{host}:{port}"
    LOG.info("Using %s for kubernetes master", master)
    return master
