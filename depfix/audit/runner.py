"""Runs `<pm> audit --json` and extracts the JSON document from its output."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from ..logging import get_logger

_LOCKFILES = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
)

_AUDIT_ARGS = ("audit", "--json")

_SUMMARY_MARKERS = ("metadata", "advisories", "vulnerabilities", "auditSummary")

logger = get_logger("audit.runner")


@dataclass
class CommandResult:
    """Captured output of a package-manager process."""

    stdout: str
    stderr: str
    exit_code: int


@dataclass
class AuditRun:
    """Raw audit output for one project."""

    pm: str
    raw_json: Optional[str]
    exit_code: int


CommandRunner = Callable[[Sequence[str], Path], CommandResult]


def detect_package_manager(root: str | Path) -> str:
    root_path = Path(root)
    for lockfile, pm in _LOCKFILES:
        if (root_path / lockfile).exists():
            return pm
    return "npm"


def _default_runner(args: Sequence[str], cwd: Path) -> CommandResult:
    try:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise RuntimeError(f"Unable to locate '{args[0]}'. Is it installed and on PATH?") from exc
    return CommandResult(
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
        exit_code=completed.returncode,
    )


def extract_json(stdout: Optional[str], stderr: Optional[str]) -> Optional[str]:
    """Return the most plausible JSON document from audit output."""
    combined = "\n".join(part for part in (stdout, stderr) if part)
    trimmed = combined.strip()
    if not trimmed:
        return None

    # A single document, possibly wrapped in warnings. Unindented `{` lines mean JSON lines.
    start = trimmed.find("{")
    if start >= 0:
        end = trimmed.rfind("}") + 1
        if end > start:
            candidate = trimmed[start:end]
            if "\n{" not in candidate:
                return candidate

    # yarn classic prints JSON lines; the summary line carries the counts.
    lines = [line.strip() for line in trimmed.splitlines() if line.strip().startswith("{")]
    for line in reversed(lines):
        if any(marker in line for marker in _SUMMARY_MARKERS):
            return line
    return lines[-1] if lines else None


def run_audit(root: str | Path, runner: CommandRunner | None = None) -> AuditRun:
    """Run the detected package manager's audit in JSON mode."""
    root_path = Path(root).expanduser().resolve()
    pm = detect_package_manager(root_path)
    args = [pm, *_AUDIT_ARGS]
    logger.debug("Running %s in %s", " ".join(args), root_path)
    result = (runner or _default_runner)(args, root_path)
    return AuditRun(pm=pm, raw_json=extract_json(result.stdout, result.stderr), exit_code=result.exit_code)


__all__ = [
    "AuditRun",
    "CommandResult",
    "CommandRunner",
    "detect_package_manager",
    "extract_json",
    "run_audit",
]
