"""Normalises package-manager audit JSON into severity counts."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

SEVERITY_ORDER = ("low", "moderate", "high", "critical")
TOP_PACKAGES = 5


@dataclass(frozen=True)
class PackageImpact:
    name: str
    count: int


@dataclass
class AuditSummary:
    """Severity counts and the most affected packages."""

    counts: Dict[str, int] = field(default_factory=lambda: {sev: 0 for sev in SEVERITY_ORDER})
    impacted_packages: List[PackageImpact] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.counts.values())


def normalize_severity(value: str | None) -> str:
    if value and value.lower() in SEVERITY_ORDER:
        return value.lower()
    return "low"


def severity_at_least(severity: str, minimum: str) -> bool:
    return SEVERITY_ORDER.index(severity) >= SEVERITY_ORDER.index(minimum)


def _count(
    entries: Mapping[str, Any], name_field: str | None, minimum: str, summary: AuditSummary, packages: Counter
) -> None:
    for key, entry in entries.items():
        if not isinstance(entry, dict):
            continue
        severity = entry.get("severity")
        name = entry.get(name_field) if name_field else key
        if severity not in SEVERITY_ORDER or not isinstance(name, str) or not name:
            continue
        if not severity_at_least(severity, minimum):
            continue
        summary.counts[severity] += 1
        packages[name] += 1


def summarize_audit(data: Any, min_severity: str = "low") -> AuditSummary:
    """Summarise npm v7+ (`vulnerabilities`), legacy (`advisories`) or metadata-only output."""
    minimum = normalize_severity(min_severity)
    summary = AuditSummary()
    packages: Counter = Counter()

    if not isinstance(data, dict):
        return summary

    vulnerabilities = data.get("vulnerabilities")
    advisories = data.get("advisories")
    metadata = data.get("metadata")
    if isinstance(vulnerabilities, dict) and vulnerabilities:
        _count(vulnerabilities, None, minimum, summary, packages)
    elif isinstance(advisories, dict) and advisories:
        _count(advisories, "module_name", minimum, summary, packages)
    elif isinstance(metadata, dict) and isinstance(metadata.get("vulnerabilities"), dict):
        meta_counts = metadata["vulnerabilities"]
        for severity in SEVERITY_ORDER:
            value = meta_counts.get(severity)
            if isinstance(value, int) and not isinstance(value, bool) and severity_at_least(severity, minimum):
                summary.counts[severity] += value
    else:
        # yarn classic summary line: {"type": "auditSummary", "data": {"vulnerabilities": {...}}}
        nested = data.get("data")
        if data.get("type") == "auditSummary" and isinstance(nested, dict):
            return summarize_audit({"metadata": nested}, minimum)

    ranked = sorted(packages.items(), key=lambda item: (-item[1], item[0]))
    summary.impacted_packages = [PackageImpact(name, count) for name, count in ranked[:TOP_PACKAGES]]
    return summary


def should_fail(summary: AuditSummary) -> bool:
    """Counts are already filtered by the minimum severity."""
    return summary.total > 0


def format_summary(summary: AuditSummary, pm: str = "npm") -> List[str]:
    counts = summary.counts
    lines = [
        "Vulnerability summary:",
        "  " + ", ".join(f"{sev}: {counts[sev]}" for sev in SEVERITY_ORDER),
    ]
    if summary.impacted_packages:
        lines.append("Top affected packages:")
        lines.extend(f"  {pkg.name}: {pkg.count} issue(s)" for pkg in summary.impacted_packages)
    else:
        lines.append("No vulnerable packages found at or above the selected severity.")
    lines.extend(
        [
            "What to do next:",
            f"  - Run `{pm} audit fix` to apply safe automatic fixes."
            if pm in {"npm", "pnpm"}
            else f"  - Upgrade the affected packages with `{pm}`.",
            "  - For remaining issues, review advisories and consider upgrading major versions or replacing packages.",
            "  - If you cannot upgrade immediately, use overrides/resolutions with care and track them for cleanup.",
        ]
    )
    return lines


__all__ = [
    "AuditSummary",
    "PackageImpact",
    "SEVERITY_ORDER",
    "format_summary",
    "normalize_severity",
    "severity_at_least",
    "should_fail",
    "summarize_audit",
]
