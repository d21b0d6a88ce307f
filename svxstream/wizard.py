"""Interactive setup wizard: Darkice + Icecast2 with optional SvxLink tap.

Stages run strictly in order:

  [1/5] Probe     SvxLink presence, [TxStream], LAN address, stream URL
  [2/5] Install   Darkice files, packages, Icecast2 ENABLE flag
  [3/5] Extract   Icecast source password, SvxLink CALLSIGN
  [4/5] Patch     darkice.cfg, svxlink.conf, Icecast web templates
  [5/5] Enable    systemd units, @reboot cron entry, restart + health check

Run with: python -m svxstream
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from pathlib import Path

from svxstream import extract, installer, patcher, probe, verify
from svxstream.config import GRACE_SECONDS, LOG_FILE, STREAM_PORT, PipelineContext, SetupPaths
from svxstream.config import source_dir as default_source_dir
from svxstream.steps import DONE, SKIPPED, WARNING, SetupReport, SetupStep

logger = logging.getLogger(__name__)
console = logging.getLogger("svxstream.console")


BANNER = r"""
╔══════════════════════════════════════════════╗
║     SvxLink Stream Setup: Darkice + Icecast2 ║
╚══════════════════════════════════════════════╝
"""


def _print(msg: str = "") -> None:
    print(msg, flush=True)
    if msg.strip():
        console.info(msg.strip())


def _input(prompt: str) -> str:
    return input(prompt).strip()


def _yes_no(prompt: str, default: bool = True) -> bool:
    suffix = " [Y/n] " if default else " [y/N] "
    raw = _input(prompt + suffix)
    if not raw:
        return default
    return raw.lower().startswith("y")


# ──────────────────────────────────────────────────────────────────
# Stages
# ──────────────────────────────────────────────────────────────────

def probe_environment(
    paths: SetupPaths,
    report: SetupReport,
    non_interactive: bool = False,
    svxlink: bool | None = None,
    host: str | None = None,
    stream_url: str | None = None,
) -> PipelineContext:
    """Gather everything later stages need into a :class:`PipelineContext`."""
    if svxlink is None:
        if non_interactive:
            svxlink = paths.svxlink_conf.is_file()
        else:
            svxlink = _yes_no(
                "  Have you installed svxlink using the svxlinkbuilder / svxlink image?\n"
                "  (If not, svxlink checks are skipped but Darkice and Icecast2 are still installed.)\n "
            )
    if svxlink:
        report.add(SetupStep("SvxLink", DONE, "operator confirmed svxlink installation"))
    else:
        report.add(SetupStep("SvxLink", SKIPPED, "not installed via svxlinkbuilder; skipping svxlink configuration"))

    has_txstream = False
    if svxlink:
        if not paths.svxlink_conf.is_file():
            report.add(SetupStep("[TxStream]", WARNING, f"{paths.svxlink_conf} not found"))
        elif probe.has_txstream_section(paths.svxlink_conf):
            has_txstream = True
            report.add(SetupStep("[TxStream]", DONE, f"found in {paths.svxlink_conf}"))
        else:
            report.add(SetupStep(
                "[TxStream]", WARNING,
                "not found; svxlink may be incompatible, continuing with install only",
            ))

    fallback = False
    if host is None:
        host, fallback = probe.detect_host_address()
        if not non_interactive:
            if not _yes_no(f"  Detected IP {host}. Use this as the streaming host?"):
                override = _input(f"  IP or hostname for Darkice/Icecast2 [{host}]: ")
                if override:
                    host, fallback = override, False
    report.add(SetupStep(
        "Streaming host",
        WARNING if fallback else DONE,
        f"{host} (no LAN address found)" if fallback else host,
    ))

    if stream_url is None:
        stream_url = "" if non_interactive else _input(
            f"  Public stream URL, e.g. http://{host}:{STREAM_PORT}/stream (blank to skip): "
        )
    if stream_url:
        report.add(SetupStep("Stream URL", DONE, stream_url))
    else:
        report.add(SetupStep("Stream URL", WARNING, "no public stream URL provided"))

    return PipelineContext(
        host_address=host,
        host_fallback=fallback,
        svxlink_present=svxlink,
        has_txstream=has_txstream,
        stream_url=stream_url,
    )


def extract_values(ctx: PipelineContext, paths: SetupPaths, report: SetupReport) -> PipelineContext:
    password = extract.extract_source_password(paths.icecast_xml)
    if password:
        report.add(SetupStep("Icecast source password", DONE, f"read from {paths.icecast_xml}"))
    else:
        report.add(SetupStep("Icecast source password", WARNING, f"not found in {paths.icecast_xml}"))

    callsign = extract.extract_callsign(paths.svxlink_conf)
    if callsign:
        report.add(SetupStep("CALLSIGN", DONE, callsign))
    else:
        report.add(SetupStep("CALLSIGN", WARNING, f"not found in {paths.svxlink_conf}"))

    return dataclasses.replace(ctx, source_password=password, callsign=callsign)


def _closing_notes(ctx: PipelineContext, paths: SetupPaths) -> None:
    _print("NOTES:")
    if ctx.svxlink_present and not ctx.has_txstream:
        _print(" - [TxStream] was missing; configure svxlink manually.")
    _print(f" - Verify {paths.darkice_cfg} for correct Icecast password and mountpoint.")
    _print(f" - Access Icecast2 at http://{ctx.host_address}:{STREAM_PORT}/")
    _print(" - Check services with:")
    _print("     sudo systemctl status darkice.service")
    _print("     sudo systemctl status icecast2.service")
    if ctx.stream_url:
        _print(f" - Public stream URL: {ctx.stream_url}")
    _print(f" - Log file: {LOG_FILE}")


def run_setup(
    paths: SetupPaths | None = None,
    source_dir: Path | None = None,
    non_interactive: bool = False,
    svxlink: bool | None = None,
    host: str | None = None,
    stream_url: str | None = None,
    skip_install: bool = False,
    grace: float = GRACE_SECONDS,
) -> SetupReport:
    """Run the whole setup and return the per-step report.

    Only a :class:`~svxstream.steps.PrecheckError` escapes, and only
    before anything on disk has been changed.
    """
    paths = paths or SetupPaths()
    report = SetupReport()
    _print(BANNER)
    _print(f"=== {datetime.now():%Y-%m-%d %H:%M:%S} Starting SvxLink Stream Setup ===")

    if not skip_install:
        source_dir = source_dir or default_source_dir()
        installer.precheck(source_dir)

    _print("\n[1/5] Probing environment...")
    ctx = probe_environment(paths, report, non_interactive, svxlink, host, stream_url)

    _print("\n[2/5] Installing Darkice + Icecast2...")
    if skip_install:
        report.add(SetupStep("Install", SKIPPED, "--skip-install given"))
    else:
        report.extend(installer.install_files(paths, source_dir))
        _print("  Installing packages (interactive Icecast2 password setup follows)...")
        report.add(installer.install_packages())
        report.add(installer.enable_icecast(paths))

    _print("\n[3/5] Reading Icecast and SvxLink settings...")
    ctx = extract_values(ctx, paths, report)

    _print("\n[4/5] Patching configuration...")
    report.extend(patcher.run_patches(ctx, paths))

    _print("\n[5/5] Enabling services...")
    if not skip_install:
        report.add(installer.enable_services())
        report.add(installer.ensure_cron_entry(paths.cron_entry))
        report.add(installer.restart_services())

    _print("\n  Performing sanity check on the Icecast web UI...")
    reachable = verify.wait_and_check(ctx.host_address, grace=grace)
    check = verify.check_url(ctx.host_address)
    if reachable:
        report.add(SetupStep("Health check", DONE, f"{check} answered"))
    else:
        report.add(SetupStep("Health check", WARNING, f"{check} did not answer with 200/302"))

    _print()
    _print(report.summary())
    _print()
    _print("✓ Setup completed.")
    _print()
    _closing_notes(ctx, paths)
    _print(f"\n=== Setup complete: {datetime.now():%Y-%m-%d %H:%M:%S} ===")
    return report
