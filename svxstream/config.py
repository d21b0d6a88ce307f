"""Well-known paths, constants and the pipeline context for svxstream.

All filesystem locations are fixed for the appliance. ``SetupPaths`` groups
them so the pipeline can be pointed at another root (tests do this); the
CLI always uses the defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path

# ──────────────────────────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────────────────────────

STREAM_PORT = 8000
PROBE_TIMEOUT = 5.0
GRACE_SECONDS = 5.0

TEMPLATE_SUFFIX = ".xsl"
TEMPLATE_TOKEN = "Icecast2"

LOGIC_SECTIONS: tuple[str, ...] = ("SimplexLogic", "RepeaterLogic")
TXSTREAM_SECTION = "TxStream"
SINGLE_TX = "Tx1"
MULTI_TX = "MultiTx"

PASSWORD_PLACEHOLDER = "source"
URL_PLACEHOLDER = "your_domain"
CALLSIGN_PLACEHOLDER = "callsign"

PACKAGES: tuple[str, ...] = ("darkice", "icecast2")
SERVICES: tuple[str, ...] = ("darkice.service", "icecast2.service")
SCRIPT_OWNER = "pi"

BUNDLED_FILES_DIR = Path(__file__).parent / "files"
SOURCE_FILES: tuple[str, ...] = ("darkice.cfg", "darkice.service", "darkice.sh")


def _log_level(value: str | None) -> int:
    if not value:
        return logging.INFO
    raw = value.strip()
    if raw.isdigit():
        return int(raw)
    return getattr(logging, raw.upper(), logging.INFO)


LOG_FILE = Path(os.environ.get("SVXSTREAM_LOG_FILE", "/var/log/svxlink_stream_setup.log"))
LOG_LEVEL = _log_level(os.environ.get("SVXSTREAM_LOG_LEVEL"))


def source_dir() -> Path:
    """Directory holding the Darkice files copied into place by the installer."""
    override = os.environ.get("SVXSTREAM_SOURCE_DIR")
    return Path(override) if override else BUNDLED_FILES_DIR


@dataclass(frozen=True)
class SetupPaths:
    darkice_cfg: Path = Path("/etc/darkice.cfg")
    darkice_service: Path = Path("/etc/systemd/system/darkice.service")
    scripts_dir: Path = Path("/home/pi/scripts")
    svxlink_conf: Path = Path("/etc/svxlink/svxlink.conf")
    icecast_xml: Path = Path("/etc/icecast2/icecast.xml")
    icecast_default: Path = Path("/etc/default/icecast2")
    icecast_web_dir: Path = Path("/usr/share/icecast2/web")

    @property
    def darkice_script(self) -> Path:
        return self.scripts_dir / "darkice.sh"

    @property
    def cron_entry(self) -> str:
        return f"@reboot {self.darkice_script}"

    @classmethod
    def under(cls, root: Path) -> "SetupPaths":
        """Return the default layout re-rooted below *root*."""
        defaults = cls()
        return cls(**{
            name: root / getattr(defaults, name).relative_to("/")
            for name in (f.name for f in fields(cls))
        })


@dataclass(frozen=True)
class PipelineContext:
    """Values gathered by the probe and extract stages.

    Stages never mutate a context; they return an updated copy via
    ``dataclasses.replace``.
    """

    host_address: str = "127.0.0.1"
    host_fallback: bool = False
    svxlink_present: bool = False
    has_txstream: bool = False
    stream_url: str = ""
    source_password: str | None = None
    callsign: str | None = None
