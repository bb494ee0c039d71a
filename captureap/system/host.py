import logging
import os
import shutil
import subprocess
from typing import Iterable, List, Optional, Protocol

log = logging.getLogger("captureap.host")

FORWARDING_KEY = "net.ipv4.conf.all.forwarding"

REQUIRED_TOOLS = ("hostapd", "dnsmasq", "iptables", "nmcli", "ip", "iw", "sysctl", "pgrep", "pkill")


class SystemState(Protocol):
    """
    Machine-wide toggles and daemons the orchestrator drives.

    Mutators return True on success and are safe to repeat; every toggle has
    a matching query.
    """

    # argv of the most recent command, for error reports
    last_cmd: Optional[List[str]]

    def is_root(self) -> bool: ...
    def missing_tools(self, tools: Iterable[str]) -> List[str]: ...

    def interface_exists(self, ifname: str) -> bool: ...
    def is_wireless(self, ifname: str) -> bool: ...

    def routing_enabled(self) -> bool: ...
    def set_routing(self, enabled: bool) -> bool: ...

    def masquerade_exists(self, ifname: str) -> bool: ...
    def add_masquerade(self, ifname: str) -> bool: ...
    def delete_masquerade(self, ifname: str) -> bool: ...

    def is_managed(self, ifname: str) -> bool: ...
    def set_managed(self, ifname: str, managed: bool) -> bool: ...

    def process_running(self, name: str) -> bool: ...
    def kill_process(self, name: str) -> bool: ...

    def start_hostapd(self, conf_path: str) -> bool: ...
    def start_dnsmasq(self, conf_path: str, ifname: str) -> bool: ...
    def stop_dnsmasq(self) -> bool: ...

    def flush_addresses(self, ifname: str) -> bool: ...
    def assign_address(self, ifname: str, address: str, netmask: str) -> bool: ...


def _run(cmd: List[str]) -> subprocess.CompletedProcess:
    log.debug("exec %s", " ".join(cmd), extra={"cmd": cmd})
    p = subprocess.run(cmd, check=False, text=True, capture_output=True)
    if p.returncode != 0:
        log.debug("exit=%s stderr=%s", p.returncode, (p.stderr or "").strip(), extra={"cmd": cmd})
    return p


def _masquerade_rule(op: str, ifname: str) -> List[str]:
    return ["iptables", "-t", "nat", op, "POSTROUTING", "-o", ifname, "-j", "MASQUERADE"]


class HostSystem:
    """SystemState backed by the host's command-line tools."""

    def __init__(self):
        self.last_cmd: Optional[List[str]] = None

    def _ok(self, cmd: List[str]) -> bool:
        self.last_cmd = cmd
        return _run(cmd).returncode == 0

    def is_root(self) -> bool:
        return os.geteuid() == 0

    def missing_tools(self, tools: Iterable[str]) -> List[str]:
        return [t for t in tools if shutil.which(t) is None]

    def interface_exists(self, ifname: str) -> bool:
        return self._ok(["ip", "link", "show", "dev", ifname])

    def is_wireless(self, ifname: str) -> bool:
        return self._ok(["iw", "dev", ifname, "info"])

    def routing_enabled(self) -> bool:
        p = _run(["sysctl", "-n", FORWARDING_KEY])
        return p.returncode == 0 and p.stdout.strip() == "1"

    def set_routing(self, enabled: bool) -> bool:
        return self._ok(["sysctl", "-q", f"{FORWARDING_KEY}={1 if enabled else 0}"])

    def masquerade_exists(self, ifname: str) -> bool:
        return self._ok(_masquerade_rule("-C", ifname))

    def add_masquerade(self, ifname: str) -> bool:
        if self.masquerade_exists(ifname):
            return True
        return self._ok(_masquerade_rule("-A", ifname))

    def delete_masquerade(self, ifname: str) -> bool:
        if not self.masquerade_exists(ifname):
            return True
        return self._ok(_masquerade_rule("-D", ifname))

    def is_managed(self, ifname: str) -> bool:
        # e.g. "GENERAL.STATE:10 (unmanaged)"
        p = _run(["nmcli", "-t", "-f", "GENERAL.STATE", "dev", "show", ifname])
        return p.returncode == 0 and "unmanaged" not in p.stdout

    def set_managed(self, ifname: str, managed: bool) -> bool:
        return self._ok(["nmcli", "dev", "set", ifname, "managed", "yes" if managed else "no"])

    def process_running(self, name: str) -> bool:
        return self._ok(["pgrep", name])

    def kill_process(self, name: str) -> bool:
        return self._ok(["pkill", name])

    def start_hostapd(self, conf_path: str) -> bool:
        # -B: daemonize once the interface is initialized
        return self._ok(["hostapd", "-B", conf_path])

    def start_dnsmasq(self, conf_path: str, ifname: str) -> bool:
        return self._ok(["dnsmasq", f"--conf-file={conf_path}", f"--interface={ifname}"])

    def stop_dnsmasq(self) -> bool:
        # the distro unit may own an instance of its own
        if shutil.which("systemctl"):
            _run(["systemctl", "stop", "dnsmasq"])
        return self.kill_process("dnsmasq") or not self.process_running("dnsmasq")

    def flush_addresses(self, ifname: str) -> bool:
        return self._ok(["ip", "addr", "flush", "dev", ifname])

    def assign_address(self, ifname: str, address: str, netmask: str) -> bool:
        # iproute2 accepts a dotted netmask in place of a prefix length
        return self._ok(["ip", "addr", "add", f"{address}/{netmask}", "dev", ifname])
