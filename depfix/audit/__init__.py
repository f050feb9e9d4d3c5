"""Dependency audit helpers."""

from .runner import AuditRun, CommandResult, detect_package_manager, extract_json, run_audit
from .summarize import AuditSummary, PackageImpact, format_summary, should_fail, summarize_audit

__all__ = [
    "AuditRun",
    "AuditSummary",
    "CommandResult",
    "PackageImpact",
    "detect_package_manager",
    "extract_json",
    "format_summary",
    "run_audit",
    "should_fail",
    "summarize_audit",
]
