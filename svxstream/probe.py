"""Environment probing: LAN address and SvxLink config shape.

Nothing here touches the network; addresses come from local interface
enumeration only and every failure degrades to a safe default.
"""

from __future__ import annotations

import ipaddress
import logging
import re
import subprocess
from pathlib import Path

from svxstream.config import TXSTREAM_SECTION
from svxstream.rewrite import read_text

logger = logging.getLogger(__name__)

LOOPBACK = "127.0.0.1"

_TXSTREAM_RE = re.compile(rf"^\s*\[{TXSTREAM_SECTION}\]", re.MULTILINE)


def _run(cmd: list[str], timeout: int = 5) -> str:
    """Run a subprocess and return stdout, or empty string on failure."""
    try:
        result = subprocess.run(
            cmd,
            capture_output=True, text=True, timeout=timeout,
            check=False,
        )
        return result.stdout.strip()
    except Exception:
        return ""


def _first_lan_ipv4(candidates: list[str]) -> str | None:
    for raw in candidates:
        try:
            addr = ipaddress.ip_address(raw.split("/", 1)[0])
        except ValueError:
            continue
        if addr.version == 4 and not addr.is_loopback and not addr.is_link_local:
            return str(addr)
    return None


def list_ipv4_addresses() -> list[str]:
    """All IPv4 addresses bound to local interfaces, in kernel order."""
    out = _run(["hostname", "-I"])
    if out:
        return out.split()
    # `ip -4 -o addr show` lines look like: "2: eth0    inet 192.168.1.20/24 brd ..."
    out = _run(["ip", "-4", "-o", "addr", "show"])
    addrs = []
    for line in out.splitlines():
        parts = line.split()
        if "inet" in parts:
            idx = parts.index("inet")
            if idx + 1 < len(parts):
                addrs.append(parts[idx + 1])
    return addrs


def detect_host_address() -> tuple[str, bool]:
    """Return ``(address, used_fallback)``.

    ``used_fallback`` is True when no LAN address was found and the
    loopback address is returned instead.
    """
    found = _first_lan_ipv4(list_ipv4_addresses())
    if found:
        logger.info("Detected LAN IP: %s", found)
        return found, False
    logger.warning("Could not detect a LAN IP, defaulting to %s", LOOPBACK)
    return LOOPBACK, True


def has_txstream_section(path: Path) -> bool:
    """True when *path* exists and declares a ``[TxStream]`` section."""
    if not path.is_file():
        return False
    try:
        return bool(_TXSTREAM_RE.search(read_text(path)))
    except OSError as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return False
