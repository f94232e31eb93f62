import pytest

from kube2sky.events import FullSync, Remove, Upsert
from kube2sky.kube import RegistryError, ServiceList, WatchEvent
from kube2sky.model import Service, ServicePort, Status
from kube2sky.mutator import fatal
from kube2sky_agent.watchers.services import ServiceWatchSession


class Died(Exception):
    pass


def die(message, *args):
    raise Died(message % args)


def make_service(name, version, cluster_ip="10.0.0.5"):
    return Service(
        name=name,
        namespace="default",
        resource_version=version,
        cluster_ip=cluster_ip,
        ports=(ServicePort(port=80),),
    )


class FakeWatch:
    def __init__(self, events, error=None):
        self._events = events
        self._error = error
        self.closed = False

    def __iter__(self):
        yield from self._events
        if self._error is not None:
            raise self._error

    def close(self):
        self.closed = True


class FakeClient:
    def __init__(self, services=(), version="100", events=(), list_error=None,
                 watch_error=None, stream_error=None):
        self.services = list(services)
        self.version = version
        self.events = list(events)
        self.list_error = list_error
        self.watch_error = watch_error
        self.stream_error = stream_error
        self.list_calls = 0
        self.watch_calls = []
        self.watches = []

    def list(self, label_selector=""):
        self.list_calls += 1
        if self.list_error:
            raise self.list_error
        return ServiceList(items=self.services, resource_version=self.version)

    def watch(self, label_selector="", field_selector="", resource_version="",
              timeout_seconds=None):
        self.watch_calls.append(resource_version)
        if self.watch_error:
            raise self.watch_error
        watch = FakeWatch(self.events, self.stream_error)
        self.watches.append(watch)
        return watch


def run_session(client, **kwargs):
    session = ServiceWatchSession(client, queue_size=0, die=die, **kwargs)
    session.run()
    return session, list(session)


def test_session_lists_then_watches():
    a1 = make_service("a", "101")
    a2 = make_service("a", "102", cluster_ip="10.0.0.6")
    client = FakeClient(
        services=[make_service("a", "90")],
        events=[
            WatchEvent("ADDED", a1),
            WatchEvent("MODIFIED", a2),
            WatchEvent("DELETED", a2),
        ],
    )

    session, updates = run_session(client)

    assert updates == [
        FullSync((make_service("a", "90"),)),
        Upsert(a1),
        Upsert(a2),
        Remove(a2),
    ]
    assert client.list_calls == 1
    assert client.watch_calls == ["100"]
    assert client.watches[0].closed
    assert session.resource_version == "102"


def test_session_with_resource_version_skips_list():
    client = FakeClient(events=[WatchEvent("ADDED", make_service("b", "7"))])

    session, updates = run_session(client, resource_version="5")

    assert client.list_calls == 0
    assert client.watch_calls == ["5"]
    assert updates == [Upsert(make_service("b", "7"))]
    assert session.resource_version == "7"


def test_session_ends_when_list_fails():
    client = FakeClient(list_error=RegistryError("boom"))

    _, updates = run_session(client)

    assert updates == []
    assert client.watch_calls == []


def test_session_ends_when_watch_fails():
    client = FakeClient(services=[make_service("a", "1")], watch_error=RegistryError("boom"))

    session, updates = run_session(client)

    assert updates == [FullSync((make_service("a", "1"),))]
    assert session.resource_version == "100"


def test_session_ends_on_structured_error():
    client = FakeClient(
        events=[
            WatchEvent("ERROR", Status(status="Failure", reason="Expired", code=410)),
            WatchEvent("ADDED", make_service("late", "200")),
        ],
    )

    _, updates = run_session(client)

    assert updates == [FullSync(())]
    assert client.watches[0].closed


def test_session_dies_on_unstructured_error():
    client = FakeClient(events=[WatchEvent("ERROR", {"unexpected": True})])
    session = ServiceWatchSession(client, queue_size=0, die=die)

    with pytest.raises(Died):
        session.run()


def test_session_dies_on_unknown_event_type():
    client = FakeClient(events=[WatchEvent("BOOKMARK", make_service("a", "3"))])
    session = ServiceWatchSession(client, queue_size=0, die=die)

    with pytest.raises(Died):
        session.run()


def test_session_ignores_non_service_objects():
    client = FakeClient(
        events=[
            WatchEvent("ADDED", {"kind": "Endpoints"}),
            WatchEvent("ADDED", make_service("a", "101")),
        ],
    )

    _, updates = run_session(client)

    assert updates == [FullSync(()), Upsert(make_service("a", "101"))]


def test_session_ends_on_stream_error():
    client = FakeClient(
        events=[WatchEvent("ADDED", make_service("a", "101"))],
        stream_error=RegistryError("connection reset"),
    )

    session, updates = run_session(client)

    assert updates == [FullSync(()), Upsert(make_service("a", "101"))]
    assert session.resource_version == "101"
    assert client.watches[0].closed


def test_session_thread_delivers_in_order():
    events = [WatchEvent("MODIFIED", make_service("a", str(v))) for v in range(101, 111)]
    client = FakeClient(events=events)
    session = ServiceWatchSession(client, die=die)

    session.start()
    updates = list(session)
    session.join(timeout=5)

    assert not session.is_alive()
    assert updates[0] == FullSync(())
    assert [u.service.resource_version for u in updates[1:]] == [
        str(v) for v in range(101, 111)
    ]


def test_session_publishes_list_without_resource_version():
    client = FakeClient(services=[make_service("a", "1")], version="")

    _, updates = run_session(client)

    assert updates == [FullSync((make_service("a", "1"),))]
    assert client.watch_calls == [""]


def test_session_defaults_to_process_exit():
    session = ServiceWatchSession(FakeClient())

    assert session._die is fatal
