import pytest

from captureap.core.config import load_state, save_state
from captureap.core.errors import StateError
from captureap.core.models import ApSettings, RunState
from captureap.system.apply import apply
from captureap.system.reset import remove_ap


def test_teardown_without_state(fake, paths):
    with pytest.raises(StateError):
        remove_ap(fake, paths)
    assert fake.calls == []


def test_teardown_after_bring_up(fake, paths):
    apply(fake, paths, ApSettings(), "eth0", "wlan0")
    fake.calls.clear()

    remove_ap(fake, paths)

    assert [c[0] for c in fake.calls] == [
        "kill_process",
        "flush_addresses",
        "set_managed",
        "stop_dnsmasq",
        "delete_masquerade",
        "set_routing",
    ]
    assert ("set_managed", "wlan0", True) in fake.calls
    assert ("delete_masquerade", "eth0") in fake.calls
    assert fake.masquerade == set()
    assert fake.routing is False
    assert fake.running == set()
    assert load_state(paths.state).is_empty()


def test_teardown_with_rule_already_gone(fake, paths):
    save_state(paths.state, RunState(internet_interface="eth0", ap_interface="wlan0"))
    remove_ap(fake, paths)
    assert not [c for c in fake.calls if c[0] == "delete_masquerade"]
    assert not paths.state.exists()


def test_teardown_keeps_going_past_failures(fake, paths, caplog):
    save_state(paths.state, RunState(internet_interface="eth0", ap_interface="wlan0"))
    fake.fail = {"flush_addresses", "set_managed"}

    remove_ap(fake, paths)

    assert fake.calls[-1] == ("set_routing", False)
    assert "Flushing addresses failed" in caplog.text
    assert not paths.state.exists()
