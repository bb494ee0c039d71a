"""
Keep the generated hostapd/dnsmasq files in line with the current settings.

The files double as the settings store: values changed with CLI flags are
written into them and read back on the next run. Validity is a shape check
on the keys only; values are not parsed until they are read back.
"""
import logging
import re
from pathlib import Path
from typing import Dict, Optional

from pydantic import ValidationError as ModelError

from captureap.core.config import write_atomic
from captureap.core.errors import CaptureApError
from captureap.core.models import ApSettings, ConfigPaths, HostapdSettings
from captureap.system.render import dhcp_range_value, render_dnsmasq, render_hostapd

log = logging.getLogger("captureap.reconcile")

_HOSTAPD_REQUIRED = (r"^interface=.", r"^channel=.", r"^ssid=.")
_DNSMASQ_REQUIRED = (r"^interface=.", r"^dhcp-range=..", r"^dhcp-option=3,.", r"^dhcp-option=6,.")


def _read(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def _has_all(text: Optional[str], patterns) -> bool:
    if text is None:
        return False
    return all(re.search(p, text, flags=re.M) for p in patterns)


def hostapd_config_is_valid(path: Path) -> bool:
    return _has_all(_read(path), _HOSTAPD_REQUIRED)


def dnsmasq_config_is_valid(path: Path) -> bool:
    return _has_all(_read(path), _DNSMASQ_REQUIRED)


def _first_value(text: str, prefix: str) -> Optional[str]:
    m = re.search(rf"^{re.escape(prefix)}(.*)$", text, flags=re.M)
    return m.group(1).strip() if m else None


def _parse_dhcp_range(value: str) -> Optional[Dict[str, str]]:
    # start,end,netmask,lease
    parts = value.split(",")
    if len(parts) != 4:
        return None
    return dict(zip(("dhcp_start", "dhcp_end", "netmask", "lease_time"), (p.strip() for p in parts)))


def _merge(base: ApSettings, updates: Dict[str, str], source: Path) -> ApSettings:
    try:
        return ApSettings.model_validate({**base.model_dump(), **updates})
    except ModelError as e:
        log.warning("Ignoring malformed values in <%s>: %s", source, e.errors()[0]["msg"])
        return base


def read_settings(paths: ConfigPaths, base: Optional[ApSettings] = None) -> ApSettings:
    """Overlay whatever the existing config files hold onto `base`."""
    s = base or ApSettings()

    text = _read(paths.dnsmasq)
    if text is not None:
        raw = _first_value(text, "dhcp-range=")
        if raw is not None:
            fields = _parse_dhcp_range(raw)
            if fields is None:
                log.warning("Ignoring dhcp-range in <%s>: expected start,end,netmask,lease", paths.dnsmasq)
            else:
                s = _merge(s, fields, paths.dnsmasq)

        gateway = _first_value(text, "dhcp-option=3,")
        if gateway:
            s = _merge(s, {"ap_address": gateway.split(",")[-1].strip()}, paths.dnsmasq)

    text = _read(paths.hostapd)
    if text is not None:
        ssid = _first_value(text, "ssid=")
        if ssid:
            s = s.model_copy(update={"ssid": ssid})

    return s


def _substitute(text: str, prefix: str, line: str) -> str:
    return re.sub(rf"^{re.escape(prefix)}.*$", lambda _m: line, text, flags=re.M)


def update_dnsmasq(path: Path, s: ApSettings, ap_if: str) -> None:
    text = _read(path)
    if text is None:
        raise CaptureApError(f"<{path.name}> could not be found for updating")

    text = _substitute(text, "interface=", f"interface={ap_if}")
    text = _substitute(text, "dhcp-range=", f"dhcp-range={dhcp_range_value(s)}")
    text = _substitute(text, "dhcp-option=3,", f"dhcp-option=3,{s.ap_address}")
    text = _substitute(text, "dhcp-option=6,", f"dhcp-option=6,{s.ap_address}")
    write_atomic(path, text)


def update_hostapd(path: Path, ap_if: str) -> None:
    text = _read(path)
    if text is None:
        raise CaptureApError(f"<{path.name}> could not be found for updating")

    # everything else, security settings included, is left as the operator wrote it
    write_atomic(path, _substitute(text, "interface=", f"interface={ap_if}"))


def reconcile(paths: ConfigPaths, s: ApSettings, ap_if: str) -> None:
    """Generate missing or misshapen configs, then write the current values in."""
    if dnsmasq_config_is_valid(paths.dnsmasq):
        log.info("Checking <%s>... [OK]", paths.dnsmasq)
    else:
        log.warning("Missing or misconfigured file: <%s>", paths.dnsmasq)
        log.warning("Creating file with default settings. Check for accuracy.")
        write_atomic(paths.dnsmasq, render_dnsmasq(s, ap_if))

    if hostapd_config_is_valid(paths.hostapd):
        log.info("Checking <%s>... [OK]", paths.hostapd)
    else:
        log.warning("Missing or misconfigured file: <%s>", paths.hostapd)
        log.warning("Creating file with default settings. Check for accuracy.")
        write_atomic(paths.hostapd, render_hostapd(s, HostapdSettings(), ap_if))

    update_dnsmasq(paths.dnsmasq, s, ap_if)
    update_hostapd(paths.hostapd, ap_if)
