import logging
import os
import stat
from pathlib import Path

import yaml

from .models import ConfigPaths, RunState

log = logging.getLogger("captureap.config")

DEFAULT_CONFIG_DIR = "/etc/captureap"
DEFAULT_STATE_PATH = "/var/lib/captureap/state.yaml"


def config_paths() -> ConfigPaths:
    # resolved per call so the environment can be changed between runs
    config_dir = Path(os.environ.get("CAPTUREAP_CONFIG_DIR", DEFAULT_CONFIG_DIR))
    return ConfigPaths(
        hostapd=config_dir / "hostapd.conf",
        dnsmasq=config_dir / "dnsmasq.conf",
        state=Path(os.environ.get("CAPTUREAP_STATE", DEFAULT_STATE_PATH)),
    )


def write_atomic(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        f.write(content)
        f.flush()
        try:
            os.fsync(f.fileno())
        except OSError:
            # not every filesystem supports fsync
            pass
    if path.exists():
        # keep whatever mode/owner the operator gave the file (it may hold a passphrase)
        st = path.stat()
        os.chmod(tmp, stat.S_IMODE(st.st_mode))
        if os.geteuid() == 0:
            os.chown(tmp, st.st_uid, st.st_gid)
    os.replace(tmp, path)


def load_state(path: Path) -> RunState:
    """Return the recorded run state; empty when nothing usable is on disk."""
    if not path.exists():
        return RunState()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return RunState.model_validate(data)
    except (OSError, yaml.YAMLError, ValueError) as e:
        log.warning("Ignoring unreadable run state <%s>: %s", path, e)
        return RunState()


def save_state(path: Path, state: RunState) -> None:
    write_atomic(path, yaml.safe_dump(state.model_dump(), sort_keys=False))


def clear_state(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
