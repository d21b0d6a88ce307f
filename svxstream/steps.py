"""Step results and the end-of-run summary."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DONE = "done"
SKIPPED = "skipped"
WARNING = "warning"
FAILED = "failed"

_GLYPHS = {DONE: "✓", SKIPPED: "–", WARNING: "⚠", FAILED: "✗"}


class SetupError(Exception):
    """Base class for setup errors."""


class PrecheckError(SetupError):
    """Raised before any mutation when the host cannot be provisioned."""


@dataclass
class SetupStep:
    name: str
    status: str = DONE  # done, skipped, warning, failed
    detail: str = ""

    def line(self) -> str:
        glyph = _GLYPHS.get(self.status, "?")
        return f"  {glyph} {self.name}: {self.detail}" if self.detail else f"  {glyph} {self.name}"


@dataclass
class SetupReport:
    steps: list[SetupStep] = field(default_factory=list)

    def add(self, step: SetupStep) -> SetupStep:
        """Record *step*, echo it to the operator and return it."""
        self.steps.append(step)
        logger.info("%s [%s] %s", step.name, step.status, step.detail)
        print(step.line(), flush=True)
        return step

    def extend(self, steps: list[SetupStep]) -> None:
        for step in steps:
            self.add(step)

    def count(self, status: str) -> int:
        return sum(1 for s in self.steps if s.status == status)

    def summary(self) -> str:
        lines = ["Summary:"]
        lines.extend(s.line() for s in self.steps)
        lines.append(
            f"  {self.count(DONE)} done, {self.count(SKIPPED)} skipped, "
            f"{self.count(WARNING)} warning(s), {self.count(FAILED)} failed"
        )
        return "\n".join(lines)
