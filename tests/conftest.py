import logging
from typing import Iterable, List

import pytest

from captureap.core.config import config_paths
from captureap.core.logging import ConsoleFormatter, JsonFormatter


class FakeSystem:
    """In-memory SystemState; records every mutating call in `calls`."""

    def __init__(self, interfaces=None):
        # name -> wireless?
        self.interfaces = dict(interfaces or {"eth0": False, "wlan0": True, "wlan1": True})
        self.root = True
        self.missing: List[str] = []
        self.routing = False
        self.masquerade = set()
        self.unmanaged = set()
        self.running = set()
        self.addresses = {}
        self.fail = set()
        self.calls = []
        self.last_cmd = None

    def _do(self, name, *args) -> bool:
        self.calls.append((name,) + args)
        self.last_cmd = [name] + list(args)
        return name not in self.fail

    def is_root(self) -> bool:
        return self.root

    def missing_tools(self, tools: Iterable[str]) -> List[str]:
        return [t for t in tools if t in self.missing]

    def interface_exists(self, ifname):
        return ifname in self.interfaces

    def is_wireless(self, ifname):
        return self.interfaces.get(ifname, False)

    def routing_enabled(self):
        return self.routing

    def set_routing(self, enabled):
        ok = self._do("set_routing", enabled)
        if ok:
            self.routing = enabled
        return ok

    def masquerade_exists(self, ifname):
        return ifname in self.masquerade

    def add_masquerade(self, ifname):
        ok = self._do("add_masquerade", ifname)
        if ok:
            self.masquerade.add(ifname)
        return ok

    def delete_masquerade(self, ifname):
        ok = self._do("delete_masquerade", ifname)
        if ok:
            self.masquerade.discard(ifname)
        return ok

    def is_managed(self, ifname):
        return ifname not in self.unmanaged

    def set_managed(self, ifname, managed):
        ok = self._do("set_managed", ifname, managed)
        if ok:
            if managed:
                self.unmanaged.discard(ifname)
            else:
                self.unmanaged.add(ifname)
        return ok

    def process_running(self, name):
        return name in self.running

    def kill_process(self, name):
        ok = self._do("kill_process", name) and name in self.running
        self.running.discard(name)
        return ok

    def start_hostapd(self, conf_path):
        ok = self._do("start_hostapd", conf_path)
        if ok:
            self.running.add("hostapd")
        return ok

    def start_dnsmasq(self, conf_path, ifname):
        ok = self._do("start_dnsmasq", conf_path, ifname)
        if ok:
            self.running.add("dnsmasq")
        return ok

    def stop_dnsmasq(self):
        ok = self._do("stop_dnsmasq")
        if ok:
            self.running.discard("dnsmasq")
        return ok

    def flush_addresses(self, ifname):
        ok = self._do("flush_addresses", ifname)
        if ok:
            self.addresses.pop(ifname, None)
        return ok

    def assign_address(self, ifname, address, netmask):
        ok = self._do("assign_address", ifname, address, netmask)
        if ok:
            self.addresses[ifname] = (address, netmask)
        return ok


@pytest.fixture
def fake():
    return FakeSystem()


@pytest.fixture
def paths(monkeypatch, tmp_path):
    monkeypatch.setenv("CAPTUREAP_CONFIG_DIR", str(tmp_path / "etc"))
    monkeypatch.setenv("CAPTUREAP_STATE", str(tmp_path / "state" / "state.yaml"))
    return config_paths()


@pytest.fixture(autouse=True)
def _drop_cli_log_handlers():
    # main() installs its own stdout handler on the root logger
    root = logging.getLogger()
    level = root.level
    yield
    for h in root.handlers[:]:
        if isinstance(h.formatter, (ConsoleFormatter, JsonFormatter)):
            root.removeHandler(h)
    root.setLevel(level)
