import logging
from enum import Enum
from typing import Callable, List, Tuple

from captureap.core.config import save_state
from captureap.core.errors import ExternalCommandError
from captureap.core.models import ApSettings, ConfigPaths, RunState
from captureap.core.validate import validate_interfaces
from captureap.system.host import SystemState
from captureap.system.reconcile import reconcile
from captureap.system.render import render_summary

log = logging.getLogger("captureap.apply")


class Stage(str, Enum):
    IDLE = "idle"
    ROUTING_ENABLED = "routing_enabled"
    MASQUERADE_ENABLED = "masquerade_enabled"
    INTERFACE_DETACHED = "interface_detached"
    BEACON_LAUNCHED = "beacon_launched"
    IP_ASSIGNED = "ip_assigned"
    DHCP_RUNNING = "dhcp_running"
    READY = "ready"


class BringUp:
    """
    One pass from Idle to Ready.

    Each step is a single external action. A failing step raises
    ExternalCommandError tagged with the last stage reached; nothing that
    already succeeded is rolled back.
    """

    def __init__(
        self,
        system: SystemState,
        paths: ConfigPaths,
        settings: ApSettings,
        internet_if: str,
        ap_if: str,
    ):
        self.system = system
        self.paths = paths
        self.settings = settings
        self.internet_if = internet_if
        self.ap_if = ap_if
        self.stage = Stage.IDLE

    def _steps(self) -> List[Tuple[Stage, Callable[[], None]]]:
        return [
            (Stage.ROUTING_ENABLED, self._enable_routing),
            (Stage.MASQUERADE_ENABLED, self._enable_masquerade),
            (Stage.INTERFACE_DETACHED, self._detach_interface),
            (Stage.BEACON_LAUNCHED, self._launch_beacon),
            (Stage.IP_ASSIGNED, self._assign_ip),
            (Stage.DHCP_RUNNING, self._start_dnsmasq),
        ]

    def run(self) -> Stage:
        for next_stage, step in self._steps():
            try:
                step()
            except ExternalCommandError as e:
                e.stage = self.stage
                if e.cmd is None:
                    e.cmd = self.system.last_cmd
                raise
            self.stage = next_stage

        save_state(self.paths.state, RunState(internet_interface=self.internet_if, ap_interface=self.ap_if))
        self.stage = Stage.READY
        return self.stage

    def _enable_routing(self) -> None:
        if not self.system.set_routing(True):
            raise ExternalCommandError("enable routing", "problem enabling routing")
        log.info("Enabling routing... [OK]")

    def _enable_masquerade(self) -> None:
        # a rule on the AP side is left over from a run with the roles swapped
        if self.system.masquerade_exists(self.ap_if):
            log.warning("Removing old iptables rule for <%s>", self.ap_if)
            self.system.delete_masquerade(self.ap_if)

        if self.system.masquerade_exists(self.internet_if):
            log.info("IP masquerading already in place.")
            return
        if not self.system.add_masquerade(self.internet_if):
            raise ExternalCommandError("enable masquerade", "could not append IP masquerade rule into <iptables>")
        log.info("Enabling IP masquerading... [OK]")

    def _detach_interface(self) -> None:
        if not self.system.set_managed(self.ap_if, False):
            raise ExternalCommandError(
                "detach interface",
                f"could not prevent <NetworkManager> from managing <{self.ap_if}>",
            )
        log.info("Disallowing AP interface from being managed by <NetworkManager>... [OK]")

    def _launch_beacon(self) -> None:
        # hostapd can report success while the radio is not yet beaconing;
        # its exit status is all there is to go on here
        if not self.system.start_hostapd(str(self.paths.hostapd)):
            raise ExternalCommandError("launch beacon", "could not launch AP.")
        log.info("Launching AP... [OK]")

    def _assign_ip(self) -> None:
        self.system.flush_addresses(self.ap_if)
        if not self.system.assign_address(self.ap_if, self.settings.ap_address, self.settings.netmask):
            raise ExternalCommandError(
                "assign address",
                f"could not assign IP address to interface <{self.ap_if}>",
            )
        log.info("Configuring AP's IP address <%s>... [OK]", self.settings.ap_address)

    def _start_dnsmasq(self) -> None:
        restart = self.system.process_running("dnsmasq")
        if restart:
            log.warning("<dnsmasq> service already started, restarting it")
            self.system.stop_dnsmasq()

        if not self.system.start_dnsmasq(str(self.paths.dnsmasq), self.ap_if):
            verb = "restart" if restart else "start"
            raise ExternalCommandError("start dnsmasq", f"could not {verb} <dnsmasq> service")
        log.info("Starting <dnsmasq> service for DHCP and DNS hosting... [OK]")


def apply(
    system: SystemState,
    paths: ConfigPaths,
    settings: ApSettings,
    internet_if: str,
    ap_if: str,
) -> Stage:
    """Validate, reconcile the config files and bring the AP up."""
    validate_interfaces(internet_if, ap_if, system.interface_exists, system.is_wireless)

    if not settings.range_is_ordered():
        log.warning("DHCP range start %s is above range end %s", settings.dhcp_start, settings.dhcp_end)

    if system.process_running("hostapd"):
        log.warning("Killing still-running AP...")
        system.kill_process("hostapd")

    reconcile(paths, settings, ap_if)

    stage = BringUp(system, paths, settings, internet_if, ap_if).run()
    print(render_summary(settings))
    return stage
