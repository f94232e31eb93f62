"""etcd v2 record store used by SkyDNS."""

from __future__ import annotations

import logging
import time
from typing import Optional

import requests

from .model import SkyRecord
from .projector import SKYDNS_PREFIX, skydns_path
from .store import RecordStore, StoreError

LOG = logging.getLogger(__name__)


class EtcdRecordStore(RecordStore):
    """Write SkyDNS records through the etcd v2 keys API.

    Records are stored without a TTL; stale entries are corrected by later
    reconciliation rather than by expiry.
    """

    def __init__(
        self,
        server: str,
        *,
        prefix: str = SKYDNS_PREFIX,
        session: Optional[requests.Session] = None,
        timeout: float = 5.0,
    ) -> None:
        self._server = server.rstrip("/")
        self._prefix = prefix
        self._session = session or requests.Session()
        self._timeout = timeout

    def key_url(self, name: str) -> str:
        return f"{self._server}/v2/keys{skydns_path(name, self._prefix)}"

    def upsert(self, name: str, record: SkyRecord) -> None:
        LOG.info("Setting dns record: %s -> %s:%d", name, record.host, record.port)
        response = self._request(
            "PUT", self.key_url(name), data={"value": record.to_json()}
        )
        if response.status_code not in (200, 201):
            raise StoreError(
                f"etcd rejected write of {name}: "
                f"HTTP {response.status_code} {response.text.strip()}"
            )

    def delete(self, name: str) -> None:
        LOG.info("Removing %s from DNS", name)
        response = self._request(
            "DELETE", self.key_url(name), params={"recursive": "true"}
        )
        if response.status_code == 404:
            LOG.debug("record %s was already absent", name)
            return
        if response.status_code != 200:
            raise StoreError(
                f"etcd rejected delete of {name}: "
                f"HTTP {response.status_code} {response.text.strip()}"
            )

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.exceptions.RequestException as exc:
            raise StoreError(f"{method} {url} failed: {exc}") from exc


def wait_for_etcd(
    server: str,
    *,
    retries: int = 12,
    interval: float = 5.0,
    session: Optional[requests.Session] = None,
    sleep=time.sleep,
) -> str:
    """Block until the etcd server at ``server`` answers a version probe.

    Returns the reported version string.  Raises :class:`StoreError` once
    ``retries`` probes have failed.
    """

    session = session or requests.Session()
    url = f"{server.rstrip('/')}/version"
    last_error = ""
    for attempt in range(1, retries + 1):
        try:
            response = session.get(url, timeout=interval)
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            last_error = str(exc)
            LOG.warning(
                "Failed to connect to etcd server %s (attempt %d/%d): %s",
                server,
                attempt,
                retries,
                exc,
            )
            if attempt < retries:
                sleep(interval)
            continue
        LOG.info("Etcd server found: %s", server)
        return response.text.strip()

    raise StoreError(f"etcd server {server} unreachable: {last_error}")
