import re
from typing import Callable

from captureap.core.errors import ValidationError, missing_value

_OCTET = r"(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)"
_IP_RE = re.compile(rf"^({_OCTET}\.){{3}}{_OCTET}$")
_LEASE_RE = re.compile(r"^[0-9]{1,3}[hH]$")


def is_ip_address(value: str) -> bool:
    """Dotted quad only: no CIDR suffix, no hostnames, octets 0-255."""
    return bool(_IP_RE.fullmatch(value or ""))


def is_lease_time(value: str) -> bool:
    return bool(_LEASE_RE.fullmatch(value or ""))


def validate_interfaces(
    internet_if: str,
    ap_if: str,
    exists: Callable[[str], bool],
    is_wireless: Callable[[str], bool],
) -> None:
    """
    Check the (internet, AP) interface pair.

    `exists` and `is_wireless` are the host's interface queries; they are
    passed in so callers can back them with a fake.
    """
    if not internet_if:
        raise missing_value("internet-interface")
    if not ap_if:
        raise missing_value("AP-interface")
    # compared before any interface query runs
    if internet_if == ap_if:
        raise ValidationError("Must use 2 different network interfaces.")
    if not exists(internet_if) or not exists(ap_if):
        raise ValidationError("One or more passed arguments is not a valid network interface")
    if not is_wireless(ap_if):
        raise ValidationError("The AP interface must be wireless.")
