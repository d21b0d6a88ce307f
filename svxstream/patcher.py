"""Config patching for Darkice, SvxLink and the Icecast web templates.

Each sub-patch is independent and idempotent. None of them raise for a
missing file or an already-replaced placeholder; the outcome is reported
through the returned :class:`~svxstream.steps.SetupStep`.
"""

from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from pathlib import Path

from svxstream.backup import create_backup
from svxstream.config import (
    CALLSIGN_PLACEHOLDER,
    LOGIC_SECTIONS,
    MULTI_TX,
    PASSWORD_PLACEHOLDER,
    SINGLE_TX,
    TEMPLATE_SUFFIX,
    TEMPLATE_TOKEN,
    URL_PLACEHOLDER,
    PipelineContext,
    SetupPaths,
)
from svxstream.rewrite import (
    APPLIED,
    MISSING,
    Rule,
    literal,
    patch_file,
    read_text,
    section_names,
)
from svxstream.steps import DONE, FAILED, SKIPPED, WARNING, SetupStep

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────
# Rules
# ──────────────────────────────────────────────────────────────────

def password_rule(password: str) -> Rule:
    # The placeholder must end the value (a trailing comment is allowed) so a
    # password that itself starts with "source" is not substituted again.
    pattern = re.compile(rf"^(\s*password\s*=\s*){PASSWORD_PLACEHOLDER}(?=\s*$|\s+[#;])")
    return Rule("password", pattern, lambda m: m.group(1) + password)


def url_rule(url: str) -> Rule:
    pattern = re.compile(rf'^\s*url\s*=\s*"?{URL_PLACEHOLDER}"?')
    return Rule("url", pattern, literal(f"url={url}"))


def callsign_rule(callsign: str) -> Rule:
    return Rule("callsign", re.compile(re.escape(CALLSIGN_PLACEHOLDER)), literal(callsign))


def tx_rule(section: str) -> Rule:
    pattern = re.compile(rf"^\s*TX\s*=\s*{SINGLE_TX}\s*$")
    return Rule(f"tx:{section}", pattern, literal(f"TX={MULTI_TX}"), section=section)


def template_rule(callsign: str) -> Rule:
    return Rule("template", re.compile(re.escape(TEMPLATE_TOKEN)), literal(callsign))


# ──────────────────────────────────────────────────────────────────
# Sub-patches
# ──────────────────────────────────────────────────────────────────

def _patch(name: str, path: Path, rules: list[Rule], done_detail: str) -> SetupStep:
    try:
        result = patch_file(path, rules)
    except OSError as exc:
        return SetupStep(name, FAILED, f"could not rewrite {path}: {exc}")
    if result.status == MISSING:
        return SetupStep(name, WARNING, f"{path} not found")
    if result.status != APPLIED:
        return SetupStep(name, SKIPPED, f"placeholder not present in {path}, nothing to do")
    return SetupStep(name, DONE, done_detail)


def patch_password(ctx: PipelineContext, paths: SetupPaths) -> SetupStep:
    name = "Darkice password"
    if not ctx.source_password:
        return SetupStep(
            name, WARNING,
            f"could not extract <source-password> from {paths.icecast_xml}; "
            f"edit {paths.darkice_cfg} manually",
        )
    return _patch(
        name, paths.darkice_cfg, [password_rule(ctx.source_password)],
        "replaced placeholder 'password = source' with the Icecast source password",
    )


def patch_url(ctx: PipelineContext, paths: SetupPaths) -> SetupStep:
    name = "Darkice stream URL"
    if not ctx.stream_url:
        return SetupStep(name, SKIPPED, "no public stream URL provided")
    return _patch(
        name, paths.darkice_cfg, [url_rule(ctx.stream_url)],
        f"url = {ctx.stream_url}",
    )


def patch_callsign(ctx: PipelineContext, paths: SetupPaths) -> SetupStep:
    name = "Darkice callsign"
    if not ctx.callsign:
        return SetupStep(name, WARNING, f"CALLSIGN not found in {paths.svxlink_conf}")
    return _patch(
        name, paths.darkice_cfg, [callsign_rule(ctx.callsign)],
        f"replaced '{CALLSIGN_PLACEHOLDER}' placeholder with {ctx.callsign}",
    )


def remap_transmitters(ctx: PipelineContext, paths: SetupPaths) -> list[SetupStep]:
    """Point the logic sections at the multiplexed transmitter.

    Only runs when SvxLink was confirmed and ``[TxStream]`` exists, since
    ``MultiTx`` is what feeds TxStream.
    """
    name = "SvxLink TX remap"
    if not ctx.svxlink_present:
        return [SetupStep(name, SKIPPED, "svxlink not installed")]
    if not ctx.has_txstream:
        return [SetupStep(name, SKIPPED, "[TxStream] not found; configure svxlink manually")]

    conf = paths.svxlink_conf
    if not conf.is_file():
        return [SetupStep(name, WARNING, f"{conf} not found")]
    try:
        present = set(section_names(read_text(conf)))
    except OSError as exc:
        return [SetupStep(name, FAILED, f"could not read {conf}: {exc}")]

    steps = []
    for section in LOGIC_SECTIONS:
        step_name = f"[{section}] TX"
        if section not in present:
            steps.append(SetupStep(step_name, WARNING, f"[{section}] section not found; skipping"))
            continue
        steps.append(_patch(
            step_name, conf, [tx_rule(section)],
            f"TX={SINGLE_TX} changed to TX={MULTI_TX}",
        ))
    return steps


def find_templates(web_dir: Path) -> list[Path]:
    found = []
    for root, _dirs, files in os.walk(web_dir, followlinks=True):
        for filename in files:
            if filename.lower().endswith(TEMPLATE_SUFFIX):
                found.append(Path(root) / filename)
    return sorted(found)


def customize_templates(
    ctx: PipelineContext,
    paths: SetupPaths,
    when: datetime | None = None,
) -> list[SetupStep]:
    """Brand the Icecast web pages with the station callsign.

    The web directory is snapshotted before the first file is touched;
    when no template still carries the stock product name nothing is
    copied or written.
    """
    name = "Icecast web templates"
    web_dir = paths.icecast_web_dir
    if not ctx.callsign:
        return [SetupStep(name, SKIPPED, "CALLSIGN not set")]
    if not web_dir.is_dir():
        return [SetupStep(name, WARNING, f"{web_dir} not found")]

    try:
        pending = [p for p in find_templates(web_dir) if TEMPLATE_TOKEN in read_text(p)]
    except OSError as exc:
        return [SetupStep(name, FAILED, f"could not scan {web_dir}: {exc}")]
    if not pending:
        return [SetupStep(name, SKIPPED, f"no {TEMPLATE_SUFFIX} file contains '{TEMPLATE_TOKEN}'")]

    try:
        snapshot = create_backup(web_dir, when)
    except OSError as exc:
        return [SetupStep(name, FAILED, f"backup failed, templates left untouched: {exc}")]

    steps = [SetupStep(f"{name} backup", DONE, str(snapshot))]
    rule = template_rule(ctx.callsign)
    for template in pending:
        steps.append(_patch(
            f"template {template.relative_to(web_dir)}", template, [rule],
            f"replaced '{TEMPLATE_TOKEN}' with {ctx.callsign}",
        ))
    return steps


def run_patches(
    ctx: PipelineContext,
    paths: SetupPaths,
    when: datetime | None = None,
) -> list[SetupStep]:
    """Apply every sub-patch in order and return their outcomes."""
    steps = [
        patch_password(ctx, paths),
        patch_url(ctx, paths),
        patch_callsign(ctx, paths),
    ]
    steps.extend(remap_transmitters(ctx, paths))
    steps.extend(customize_templates(ctx, paths, when))
    logger.debug("patch stage finished: %d step(s)", len(steps))
    return steps
