"""Environment variable discovery and template rendering."""

from .patterns import ACCESS_PATTERNS, AccessPattern, KeyMatch, KeyMatcher
from .registry import KeyRegistry
from .render import GROUP_RULES, PrefixRule, group_keys, parse_template_keys, render_env_file, render_template
from .scanner import EnvScanner, scan
from .workspaces import detect_workspaces

__all__ = [
    "ACCESS_PATTERNS",
    "AccessPattern",
    "EnvScanner",
    "GROUP_RULES",
    "KeyMatch",
    "KeyMatcher",
    "KeyRegistry",
    "PrefixRule",
    "detect_workspaces",
    "group_keys",
    "parse_template_keys",
    "render_env_file",
    "render_template",
    "scan",
]
