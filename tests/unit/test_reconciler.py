import pytest

from kube2sky.events import FullSync, Remove, Upsert
from kube2sky.kube import ServiceList, WatchEvent
from kube2sky.model import Service, ServicePort, SkyRecord
from kube2sky.mutator import Mutator
from kube2sky.store import RecordStore, StoreError
from kube2sky_agent.reconciler import ServiceReconciler
from kube2sky_agent.watchers.services import ServiceWatchSession

DOMAIN = "cluster.local"


class Died(Exception):
    pass


def die(message, *args):
    raise Died(message % args)


class RecordingStore(RecordStore):
    """In-memory store that records every call it receives."""

    def __init__(self, failures=0):
        self.records = {}
        self.calls = []
        self._failures = failures

    def upsert(self, name, record):
        self._maybe_fail()
        self.calls.append(("upsert", name))
        self.records[name] = record

    def delete(self, name):
        self._maybe_fail()
        self.calls.append(("delete", name))
        self.records.pop(name, None)

    def _maybe_fail(self):
        if self._failures:
            self._failures -= 1
            raise StoreError("etcd unavailable")


class FakeClient:
    """Serves one scripted session per ``list`` call."""

    def __init__(self, sessions):
        self._sessions = list(sessions)
        self.list_calls = 0
        self.watch_versions = []
        self._events = []

    def list(self, label_selector=""):
        self.list_calls += 1
        services, version, self._events = self._sessions.pop(0)
        return ServiceList(items=services, resource_version=version)

    def watch(self, label_selector="", field_selector="", resource_version="",
              timeout_seconds=None):
        self.watch_versions.append(resource_version)
        return ScriptedWatch(self._events)


class ScriptedWatch(list):
    def close(self):
        pass


def make_service(name="a", namespace="default", cluster_ip="10.0.0.5", port=80,
                 version="1"):
    return Service(
        name=name,
        namespace=namespace,
        resource_version=version,
        cluster_ip=cluster_ip,
        ports=(ServicePort(port=port),),
    )


def build_reconciler(store, client=None):
    mutator = Mutator(1.0, delay=0.0, die=die)

    def new_session():
        return ServiceWatchSession(client, die=die)

    return ServiceReconciler(store, DOMAIN, mutator, new_session)


def test_full_sync_writes_record():
    store = RecordingStore()
    reconciler = build_reconciler(store)

    reconciler.handle(FullSync([make_service()]))

    assert store.records == {
        "a.default.cluster.local.": SkyRecord(
            host="10.0.0.5", port=80, priority=10, weight=10, ttl=30
        )
    }


def test_full_sync_applies_in_listing_order():
    store = RecordingStore()
    reconciler = build_reconciler(store)

    reconciler.handle(
        FullSync([make_service("b"), make_service("a"), make_service("c", namespace="kube-system")])
    )

    assert store.calls == [
        ("upsert", "b.default.cluster.local."),
        ("upsert", "a.default.cluster.local."),
        ("upsert", "c.kube-system.cluster.local."),
    ]


def test_headless_service_is_skipped():
    store = RecordingStore()
    reconciler = build_reconciler(store)
    headless = make_service(cluster_ip="None")

    reconciler.handle(Upsert(headless))
    reconciler.handle(FullSync([headless]))

    assert store.calls == []


def test_remove_is_idempotent():
    store = RecordingStore()
    reconciler = build_reconciler(store)
    service = make_service()

    reconciler.handle(Upsert(service))
    reconciler.handle(Remove(service))
    reconciler.handle(Remove(service))

    assert store.records == {}
    assert store.calls[-2:] == [
        ("delete", "a.default.cluster.local."),
        ("delete", "a.default.cluster.local."),
    ]


def test_remove_headless_service_still_deletes():
    store = RecordingStore()
    reconciler = build_reconciler(store)

    reconciler.handle(Remove(make_service(cluster_ip="")))

    assert store.calls == [("delete", "a.default.cluster.local.")]


def test_later_events_win():
    store = RecordingStore()
    reconciler = build_reconciler(store)

    reconciler.handle(Upsert(make_service(version="1")))
    reconciler.handle(Upsert(make_service(cluster_ip="10.0.0.6", version="2")))
    assert store.records["a.default.cluster.local."].host == "10.0.0.6"

    reconciler.handle(Remove(make_service(version="3")))
    assert store.records == {}


def test_store_failures_are_retried():
    store = RecordingStore(failures=2)
    reconciler = build_reconciler(store)

    reconciler.handle(Upsert(make_service()))

    assert store.calls == [("upsert", "a.default.cluster.local.")]


def test_handle_rejects_unknown_update():
    reconciler = build_reconciler(RecordingStore())

    with pytest.raises(TypeError):
        reconciler.handle(object())


def test_watch_once_consumes_whole_session():
    a = make_service(version="11")
    client = FakeClient(
        [([make_service("b")], "10", [WatchEvent("ADDED", a), WatchEvent("DELETED", a)])]
    )
    store = RecordingStore()
    reconciler = build_reconciler(store, client)

    reconciler.watch_once()

    assert store.calls == [
        ("upsert", "b.default.cluster.local."),
        ("upsert", "a.default.cluster.local."),
        ("delete", "a.default.cluster.local."),
    ]
    assert client.watch_versions == ["10"]


def test_run_relists_after_session_ends():
    client = FakeClient(
        [
            ([], "10", [WatchEvent("ADDED", make_service(version="11"))]),
            ([make_service(version="11")], "12", []),
        ]
    )
    store = RecordingStore()
    reconciler = build_reconciler(store, client)

    reconciler.run(max_sessions=2)

    assert client.list_calls == 2
    assert client.watch_versions == ["10", "12"]
    assert list(store.records) == ["a.default.cluster.local."]
