"""Package installation, file placement and service wiring.

Everything here shells out to the host's own tools (apt-get, systemctl,
crontab). A failing command is reported as a failed step and the setup
carries on; only :func:`precheck` is fatal.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
from pathlib import Path

from svxstream.config import PACKAGES, SCRIPT_OWNER, SERVICES, SOURCE_FILES, SetupPaths
from svxstream.rewrite import atomic_write, rewrite_file
from svxstream.steps import DONE, FAILED, SKIPPED, WARNING, PrecheckError, SetupStep

logger = logging.getLogger(__name__)

REQUIRED_TOOLS: tuple[str, ...] = ("apt-get", "systemctl", "crontab")

_ENABLE_RE = re.compile(r"^\s*ENABLE=.*$", re.MULTILINE)


def _call(cmd: list[str], env: dict[str, str] | None = None) -> int:
    """Run *cmd* attached to the terminal and return its exit status."""
    logger.debug("exec: %s", " ".join(cmd))
    try:
        return subprocess.run(cmd, env=env, check=False).returncode
    except OSError as exc:
        logger.error("Could not run %s: %s", cmd[0], exc)
        return 127


# ──────────────────────────────────────────────────────────────────
# Precheck
# ──────────────────────────────────────────────────────────────────

def precheck(source_dir: Path) -> None:
    """Abort before anything is changed if the host cannot be set up."""
    if os.geteuid() != 0:
        raise PrecheckError("Please run as root (sudo).")
    missing_tools = [t for t in REQUIRED_TOOLS if shutil.which(t) is None]
    if missing_tools:
        raise PrecheckError(f"Required tool(s) not found: {', '.join(missing_tools)}")
    missing_files = [name for name in SOURCE_FILES if not (source_dir / name).is_file()]
    if missing_files:
        raise PrecheckError(
            f"Missing {', '.join(str(source_dir / n) for n in missing_files)}"
        )


# ──────────────────────────────────────────────────────────────────
# Files
# ──────────────────────────────────────────────────────────────────

def _chown(path: Path) -> None:
    try:
        shutil.chown(path, user=SCRIPT_OWNER, group=SCRIPT_OWNER)
    except (LookupError, OSError) as exc:
        logger.debug("chown %s to %s skipped: %s", path, SCRIPT_OWNER, exc)


def install_files(paths: SetupPaths, source_dir: Path) -> list[SetupStep]:
    """Copy the Darkice config, unit file and launcher script into place."""
    steps = []
    if not paths.scripts_dir.is_dir():
        paths.scripts_dir.mkdir(parents=True, exist_ok=True)
        _chown(paths.scripts_dir)
        steps.append(SetupStep("Scripts directory", DONE, f"created {paths.scripts_dir}"))

    targets = {
        "darkice.cfg": paths.darkice_cfg,
        "darkice.service": paths.darkice_service,
        "darkice.sh": paths.darkice_script,
    }
    for name, dest in targets.items():
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_dir / name, dest)
        except OSError as exc:
            steps.append(SetupStep(f"Copy {name}", FAILED, str(exc)))
            continue
        steps.append(SetupStep(f"Copy {name}", DONE, str(dest)))

    script = paths.darkice_script
    if script.exists():
        try:
            script.chmod(script.stat().st_mode | 0o111)
        except OSError as exc:
            steps.append(SetupStep("Make darkice.sh executable", FAILED, str(exc)))
        _chown(script)
    return steps


# ──────────────────────────────────────────────────────────────────
# Packages and services
# ──────────────────────────────────────────────────────────────────

def install_packages() -> SetupStep:
    """apt-get install Darkice and Icecast2.

    ``DEBIAN_FRONTEND=readline`` keeps the Icecast password questions on
    the terminal.
    """
    name = "Install " + " + ".join(PACKAGES)
    if _call(["apt-get", "update"]) != 0:
        logger.warning("apt-get update failed; trying install anyway")
    env = dict(os.environ, DEBIAN_FRONTEND="readline")
    if _call(["apt-get", "install", "-y", *PACKAGES], env=env) != 0:
        return SetupStep(name, FAILED, "apt-get install failed")
    return SetupStep(name, DONE)


def _set_enable(text: str) -> str:
    new_text, n = _ENABLE_RE.subn("ENABLE=true", text)
    if n:
        return new_text
    sep = "" if not text or text.endswith("\n") else "\n"
    return f"{text}{sep}ENABLE=true\n"


def enable_icecast(paths: SetupPaths) -> SetupStep:
    name = "Enable Icecast2"
    target = paths.icecast_default
    try:
        if target.is_file():
            changed = rewrite_file(target, _set_enable)
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            atomic_write(target, "ENABLE=true\n")
            changed = True
    except OSError as exc:
        return SetupStep(name, FAILED, f"could not update {target}: {exc}")
    if not changed:
        return SetupStep(name, SKIPPED, f"already enabled in {target}")
    return SetupStep(name, DONE, f"ENABLE=true in {target}")


def enable_services() -> SetupStep:
    name = "Enable services"
    _call(["systemctl", "daemon-reload"])
    if _call(["systemctl", "enable", "--now", *SERVICES]) != 0:
        return SetupStep(name, WARNING, "service enable/start issue; check logs")
    return SetupStep(name, DONE, ", ".join(SERVICES))


def restart_services() -> SetupStep:
    name = "Restart services"
    # Icecast first so Darkice finds its server on startup.
    if _call(["systemctl", "restart", *reversed(SERVICES)]) != 0:
        return SetupStep(name, WARNING, "restart failed; check logs")
    return SetupStep(name, DONE)


def ensure_cron_entry(entry: str) -> SetupStep:
    """Add *entry* to root's crontab unless it is already there."""
    name = "Crontab @reboot entry"
    try:
        listing = subprocess.run(
            ["crontab", "-l"], capture_output=True, text=True, check=False,
        )
    except OSError as exc:
        return SetupStep(name, FAILED, str(exc))
    # `crontab -l` exits non-zero when no crontab exists yet.
    current = listing.stdout if listing.returncode == 0 else ""
    if entry in (line.strip() for line in current.splitlines()):
        return SetupStep(name, SKIPPED, "entry already present")

    sep = "" if not current or current.endswith("\n") else "\n"
    try:
        result = subprocess.run(
            ["crontab", "-"], input=f"{current}{sep}{entry}\n", text=True, check=False,
        )
    except OSError as exc:
        return SetupStep(name, FAILED, str(exc))
    if result.returncode != 0:
        return SetupStep(name, FAILED, "crontab refused the new table")
    return SetupStep(name, DONE, entry)
