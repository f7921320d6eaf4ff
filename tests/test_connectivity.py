import pytest

from app.connectivity import ConnectivityMonitor
from domain.errors import ConnectivityError


def test_require_online():
    monitor = ConnectivityMonitor()
    monitor.require_online("add spend")

    monitor.set_online(False)
    with pytest.raises(ConnectivityError, match="Please go online to add spend"):
        monitor.require_online("add spend")


def test_listeners_fire_only_on_change():
    monitor = ConnectivityMonitor(online=False)
    seen = []
    monitor.subscribe(seen.append)

    monitor.set_online(False)
    monitor.set_online(True)
    monitor.set_online(True)
    monitor.set_online(False)

    assert seen == [True, False]


def test_unsubscribe():
    monitor = ConnectivityMonitor()
    seen = []
    monitor.subscribe(seen.append)
    monitor.unsubscribe(seen.append)
    monitor.unsubscribe(seen.append)

    monitor.set_online(False)

    assert seen == []
