import logging

from captureap.core.config import clear_state, load_state
from captureap.core.errors import StateError
from captureap.core.models import ConfigPaths
from captureap.system.host import SystemState

log = logging.getLogger("captureap.reset")


def _step(label: str, ok: bool) -> None:
    if not ok:
        log.warning("%s failed, continuing", label)


def remove_ap(system: SystemState, paths: ConfigPaths) -> None:
    """Undo a bring-up using the interfaces recorded when it finished."""
    state = load_state(paths.state)
    if state.is_empty():
        raise StateError(
            "No AP was created by a previous run. AP interface and/or internet "
            "interface cannot be restored because it is unknown."
        )

    ap_if = state.ap_interface
    internet_if = state.internet_interface

    log.info("Stopping AP...")
    # pkill exits non-zero when nothing matched, which is fine here
    system.kill_process("hostapd")

    log.info("Flushing access point IP address...")
    _step("Flushing addresses", system.flush_addresses(ap_if))

    log.info("Allowing AP interface to be managed...")
    _step("Re-enabling management", system.set_managed(ap_if, True))

    log.info("Stopping <dnsmasq> service...")
    _step("Stopping dnsmasq", system.stop_dnsmasq())

    if system.masquerade_exists(internet_if):
        log.info("Removing <iptables> IP masquerading rule...")
        _step("Removing masquerade rule", system.delete_masquerade(internet_if))
    else:
        log.info("<iptables> IP masquerading rule already removed.")

    log.info("Disabling routing...")
    _step("Disabling routing", system.set_routing(False))

    clear_state(paths.state)
    log.info("Finished.")
