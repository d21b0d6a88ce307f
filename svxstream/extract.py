"""Read-only extraction of the Icecast source password and the station callsign.

Both readers are single pass and first-match-wins. A missing file or a
missing key yields ``None``; neither is an error.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from svxstream.rewrite import read_text

logger = logging.getLogger(__name__)

_SOURCE_PASSWORD_RE = re.compile(r"<source-password>(.*?)</source-password>")
_CALLSIGN_RE = re.compile(r"^\s*CALLSIGN\s*=\s*(.*)$")


def _read(path: Path) -> str | None:
    if not path.is_file():
        logger.debug("%s not found", path)
        return None
    try:
        return read_text(path)
    except OSError as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return None


def extract_source_password(icecast_xml: Path) -> str | None:
    text = _read(icecast_xml)
    if text is None:
        return None
    m = _SOURCE_PASSWORD_RE.search(text)
    if not m or not m.group(1):
        return None
    return m.group(1)


def extract_callsign(svxlink_conf: Path) -> str | None:
    """Value of the first ``CALLSIGN=`` line, surrounding whitespace trimmed."""
    text = _read(svxlink_conf)
    if text is None:
        return None
    for line in text.splitlines():
        m = _CALLSIGN_RE.match(line)
        if m:
            return m.group(1).strip() or None
    return None
