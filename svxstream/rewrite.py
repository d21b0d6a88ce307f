"""Rule-based text rewriting with atomic file replacement.

Every config edit made by svxstream goes through :func:`patch_file`:

  1. The file is read as text (line endings preserved).
  2. It is split into ordered ``Section`` blocks at ``[Name]`` headers.
  3. Each :class:`Rule` is applied line by line, either to every block or
     only to the block it is scoped to.
  4. If nothing changed the file is not touched at all.  Otherwise the new
     text is written to a process-unique temp file in the same directory
     and moved over the original with ``os.replace``.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

MISSING = "missing"
UNCHANGED = "unchanged"
APPLIED = "applied"

_HEADER_RE = re.compile(r"^\s*\[([^\]]+)\]")

# Keep arbitrary bytes intact so untouched lines round-trip exactly.
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


@dataclass(frozen=True)
class Rule:
    """A single line-level substitution.

    ``section`` of ``None`` applies the rule to the whole file; otherwise
    only lines inside the ``[section]`` span are considered.
    """

    name: str
    pattern: re.Pattern[str]
    replacement: Callable[[re.Match[str]], str]
    section: str | None = None

    def apply(self, lines: list[str]) -> tuple[list[str], int]:
        out: list[str] = []
        hits = 0
        for line in lines:
            body = line.rstrip("\r\n")
            ending = line[len(body):]
            new_body, n = self.pattern.subn(self.replacement, body)
            hits += n
            out.append(new_body + ending)
        return out, hits


def literal(value: str) -> Callable[[re.Match[str]], str]:
    """Replacement that inserts *value* verbatim (no backreference expansion)."""
    return lambda _m: value


@dataclass
class Section:
    name: str | None  # None for lines before the first header
    lines: list[str] = field(default_factory=list)


@dataclass
class RewriteResult:
    path: Path
    status: str
    hits: int = 0


def split_sections(lines: list[str]) -> list[Section]:
    """Group *lines* into blocks, each starting at its ``[Name]`` header."""
    sections = [Section(None)]
    for line in lines:
        m = _HEADER_RE.match(line)
        if m:
            sections.append(Section(m.group(1).strip()))
        sections[-1].lines.append(line)
    return sections


def join_sections(sections: list[Section]) -> str:
    return "".join(line for s in sections for line in s.lines)


def section_names(text: str) -> list[str]:
    return [s.name for s in split_sections(text.splitlines(keepends=True)) if s.name]


def apply_rules(text: str, rules: list[Rule]) -> tuple[str, int]:
    """Apply *rules* to *text*; return the new text and the substitution count."""
    sections = split_sections(text.splitlines(keepends=True))
    total = 0
    for section in sections:
        for rule in rules:
            if rule.section is not None and rule.section != section.name:
                continue
            section.lines, hits = rule.apply(section.lines)
            total += hits
    return join_sections(sections), total


def read_text(path: Path) -> str:
    with open(path, encoding=_ENCODING, errors=_ERRORS, newline="") as fh:
        return fh.read()


def atomic_write(path: Path, text: str) -> None:
    """Replace *path* with *text* via a temp file and ``os.replace``."""
    fd, tmp_name = tempfile.mkstemp(
        dir=str(path.parent), prefix=f".{path.name}.{os.getpid()}.", suffix=".tmp",
    )
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding=_ENCODING, errors=_ERRORS, newline="") as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        if path.exists():
            shutil.copymode(path, tmp)
        else:
            os.chmod(tmp, 0o644)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def rewrite_file(path: Path, transform: Callable[[str], str]) -> bool:
    """Run *transform* over the file; write back only if the text changed."""
    original = read_text(path)
    updated = transform(original)
    if updated == original:
        return False
    atomic_write(path, updated)
    return True


def patch_file(path: Path, rules: list[Rule]) -> RewriteResult:
    if not path.is_file():
        return RewriteResult(path, MISSING)

    hits = 0

    def _transform(text: str) -> str:
        nonlocal hits
        new_text, hits = apply_rules(text, rules)
        return new_text

    changed = rewrite_file(path, _transform)
    logger.debug("%s: %d substitution(s), changed=%s", path, hits, changed)
    return RewriteResult(path, APPLIED if changed else UNCHANGED, hits)
