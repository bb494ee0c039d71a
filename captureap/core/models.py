from pathlib import Path
from typing import Literal

from pydantic import BaseModel, field_validator

from captureap.core.validate import is_ip_address, is_lease_time

HwMode = Literal["a", "b", "g"]


class ApSettings(BaseModel):
    """Operator-facing values; persisted inside the generated config files."""

    ap_address: str = "10.0.0.1"
    dhcp_start: str = "10.0.0.10"
    dhcp_end: str = "10.0.0.20"
    netmask: str = "255.255.255.0"
    lease_time: str = "12h"
    ssid: str = "2.4GHz_Capture_Network"

    @field_validator("ap_address", "dhcp_start", "dhcp_end", "netmask")
    @classmethod
    def _dotted_quad(cls, v: str) -> str:
        if not is_ip_address(v):
            raise ValueError(f"not an IPv4 address: {v!r}")
        return v

    @field_validator("lease_time")
    @classmethod
    def _lease(cls, v: str) -> str:
        if not is_lease_time(v):
            raise ValueError(f"not a lease time: {v!r}")
        return v

    def range_is_ordered(self) -> bool:
        def key(ip: str):
            return tuple(int(o) for o in ip.split("."))

        return key(self.dhcp_start) <= key(self.dhcp_end)


class HostapdSettings(BaseModel):
    # simplified: g=2.4GHz, a=5GHz
    hw_mode: HwMode = "g"
    channel: int = 2
    country_code: str = "US"
    wmm_enabled: int = 1
    ieee80211n: int = 1
    ieee80211ac: int = 1
    # 1=WPA, 2=WEP, 3=both
    auth_algs: int = 1
    wpa: int = 2
    wpa_key_mgmt: str = "WPA-PSK"
    rsn_pairwise: str = "CCMP"
    wpa_passphrase: str = "changeme"


class RunState(BaseModel):
    internet_interface: str = ""
    ap_interface: str = ""

    def is_empty(self) -> bool:
        return not self.internet_interface or not self.ap_interface


class ConfigPaths(BaseModel):
    hostapd: Path
    dnsmasq: Path
    state: Path
