from captureap.core.models import ApSettings, HostapdSettings


def dhcp_range_value(s: ApSettings) -> str:
    return f"{s.dhcp_start},{s.dhcp_end},{s.netmask},{s.lease_time}"


def render_hostapd(s: ApSettings, hp: HostapdSettings, ap_if: str) -> str:
    return f"""########## GENERAL SETTINGS ##########

# interface to use for the AP
interface={ap_if}

# simplified: g=2.4GHz, a=5GHz
hw_mode={hp.hw_mode}
channel={hp.channel}

# a limited version of QoS
# apparently necessary for full speed on 802.11n/ac/ax connections
wmm_enabled={hp.wmm_enabled}
country_code={hp.country_code}

# limit frequencies to those permitted by the country code
#ieee80211d=1

# 802.11n support
ieee80211n={hp.ieee80211n}

# 802.11ac support
ieee80211ac={hp.ieee80211ac}

########## SSID SETTINGS ##########

ssid={s.ssid}

# COMMENT THE BELOW LINES TO DISABLE WPA2 ENCRYPTION

# 1=WPA, 2=WEP, 3=both
auth_algs={hp.auth_algs}

# WPA2 only
wpa={hp.wpa}
wpa_key_mgmt={hp.wpa_key_mgmt}
rsn_pairwise={hp.rsn_pairwise}
wpa_passphrase={hp.wpa_passphrase}
"""


def render_dnsmasq(s: ApSettings, ap_if: str) -> str:
    return f"""# listening interface
interface={ap_if}

dhcp-range={dhcp_range_value(s)}
# client default gateway
dhcp-option=3,{s.ap_address}
# client DNS server
dhcp-option=6,{s.ap_address}
"""


def render_summary(s: ApSettings) -> str:
    return f"""Finished.

############
# ! NOTE ! #
############

If the AP is not visible, run the command again. It's a known issue.
To remove the AP, run the command again with the -r or --remove argument.

AP:
       Network Name: {s.ssid}
         IP Address: {s.ap_address}
            Netmask: {s.netmask}

         DHCP Start: {s.dhcp_start}
           DHCP End: {s.dhcp_end}
    DHCP Lease Time: {s.lease_time}"""


USAGE = """[USAGE]
    captureap [OPTIONS] <internet-interface> <AP-interface>


[DESCRIPTION]

Creates a local Wi-Fi AP (access point) and connects it to the internet via an
existing network connection (ethernet or Wi-Fi). The interfaces are the names
listed by `ip link`: wlan0, eth0, etc.

Depends on <iptables> for IP masquerading, <NetworkManager> for handling
interfaces, <hostapd> for creating the AP, and <dnsmasq> for assigning IP
addresses (DHCP).

The interface used for the AP is disallowed from being managed by the
NetworkManager service. A hostapd configuration file (hostapd.conf) and a
dnsmasq configuration file (dnsmasq.conf) are always required for the AP. If
either is missing or misconfigured it is generated with default settings.

Routing is enabled during AP usage, as well as IP masquerading (NAT) using
iptables. Both are disabled again after the AP is taken down with -r.

Any settings changed from their defaults using flags persist between runs.

[OPTIONS]
    [-h | --help]
        Displays this help screen and exits.

    [-a | --apaddress] <ip-address>
        Set the access point IP address.
        Default: 10.0.0.1

    [-s | --dhcpstart] <ip-address>
        Set the DHCP range start IP address.
        Default: 10.0.0.10

    [-e | --dhcpend] <ip-address>
        Set the DHCP range end IP address.
        Default: 10.0.0.20

    [-n | --netmask] <netmask>
        Set the DHCP netmask.
        Default: 255.255.255.0

    [-l | --dhcplease] <lease-time>
        Set the DHCP lease time (1-3 digits followed by h).
        Default: 12h

    [-r | --remove]
        Remove the AP if it is running, disable routing, and disable IP
        masquerading.

[EXAMPLES]
    captureap wlan0 wlan1
    captureap eth0 wlan0
    captureap -e 10.0.0.50 wlan0 wlan1
    captureap -r"""
