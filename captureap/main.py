import argparse
import logging
import sys
from typing import List, Optional

from captureap.core.config import config_paths
from captureap.core.errors import (
    CaptureApError,
    DependencyError,
    ExternalCommandError,
    PrivilegeError,
    invalid_value,
    missing_value,
)
from captureap.core.logging import setup_logging
from captureap.core.models import ApSettings, ConfigPaths
from captureap.core.validate import is_ip_address, is_lease_time
from captureap.system.apply import apply
from captureap.system.host import REQUIRED_TOOLS, HostSystem, SystemState
from captureap.system.reconcile import read_settings
from captureap.system.render import USAGE
from captureap.system.reset import remove_ap

log = logging.getLogger("captureap.main")

# (dest, label used in diagnostics, predicate)
_SETTING_FLAGS = (
    ("ap_address", "AP-IP-address", is_ip_address),
    ("dhcp_start", "DHCP-range-start", is_ip_address),
    ("dhcp_end", "DHCP-range-end", is_ip_address),
    ("netmask", "DHCP-netmask", is_ip_address),
    ("lease_time", "DHCP-lease", is_lease_time),
)


class UsageError(Exception):
    pass


class _Parser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    p = _Parser(prog="captureap", add_help=False)
    p.add_argument("-h", "--help", action="store_true")
    # an option given without a value arrives as "" and is reported as missing
    opt = dict(nargs="?", const="", default=None)
    p.add_argument("-a", "--apaddress", dest="ap_address", **opt)
    p.add_argument("-s", "--dhcpstart", dest="dhcp_start", **opt)
    p.add_argument("-e", "--dhcpend", dest="dhcp_end", **opt)
    p.add_argument("-n", "--netmask", dest="netmask", **opt)
    p.add_argument("-l", "--dhcplease", dest="lease_time", **opt)
    p.add_argument("-r", "--remove", action="store_true")
    p.add_argument("interfaces", nargs="*")
    return p


def apply_overrides(settings: ApSettings, args: argparse.Namespace) -> ApSettings:
    updates = {}
    for dest, label, valid in _SETTING_FLAGS:
        value = getattr(args, dest)
        if value is None:
            continue
        if value == "":
            raise missing_value(label)
        if not valid(value):
            raise invalid_value(label, value)
        updates[dest] = value
    return settings.model_copy(update=updates)


def _check_environment(system: SystemState) -> None:
    if not system.is_root():
        print(USAGE)
        raise PrivilegeError("Must be run with super user privileges (root). Exiting.")

    missing = system.missing_tools(REQUIRED_TOOLS)
    if missing:
        raise DependencyError(missing)


def _run(args: argparse.Namespace, system: SystemState, paths: ConfigPaths) -> int:
    _check_environment(system)

    if args.remove:
        remove_ap(system, paths)
        return 0

    if len(args.interfaces) != 2:
        print(USAGE)
        return 1

    settings = apply_overrides(read_settings(paths), args)
    internet_if, ap_if = args.interfaces
    apply(system, paths, settings, internet_if, ap_if)
    return 0


def main(argv: Optional[List[str]] = None, system: Optional[SystemState] = None) -> int:
    setup_logging()
    argv = sys.argv[1:] if argv is None else argv

    if not argv:
        print(USAGE)
        return 1

    try:
        args = build_parser().parse_intermixed_args(argv)
    except UsageError as e:
        log.debug("usage error: %s", e)
        print(USAGE)
        return 1

    if args.help:
        print(USAGE)
        return 1

    try:
        return _run(args, system or HostSystem(), config_paths())
    except ExternalCommandError as e:
        log.error("%s (step: %s)", e, e.step, extra={"step": e.step})
        log.debug(
            "bring-up stopped at stage %s",
            e.stage.value if e.stage else "idle",
            extra={"cmd": e.cmd},
        )
        return e.exit_code
    except CaptureApError as e:
        log.error("%s", e)
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
