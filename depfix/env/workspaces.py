"""Workspace discovery for monorepos (pnpm, npm/yarn workspaces, Turbo layouts)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Set

import yaml

from ..logging import get_logger, log_skipped

_FALLBACK_BASES = ("apps", "packages")

logger = get_logger("env.workspaces")


def _read_pnpm_globs(root: Path) -> List[str]:
    path = root / "pnpm-workspace.yaml"
    if not path.exists():
        return []
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        log_skipped(logger, "workspace manifest", path, exc)
        return []
    if not isinstance(data, dict):
        return []
    packages = data.get("packages")
    if not isinstance(packages, list):
        return []
    return [str(item).strip() for item in packages if isinstance(item, str)]


def _read_package_json_globs(root: Path) -> List[str]:
    path = root / "package.json"
    if not path.exists():
        return []
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        log_skipped(logger, "workspace manifest", path, exc)
        return []
    if not isinstance(payload, dict):
        return []
    workspaces = payload.get("workspaces")
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages")
    if not isinstance(workspaces, list):
        return []
    return [item.strip() for item in workspaces if isinstance(item, str)]


def read_workspace_globs(root: Path) -> List[str]:
    globs: List[str] = []
    for pattern in _read_pnpm_globs(root) + _read_package_json_globs(root):
        if pattern and pattern not in globs:
            globs.append(pattern)
    return globs


def _package_dirs(root: Path, base: str) -> List[str]:
    base_path = root / base
    if not base_path.is_dir():
        return []
    found: List[str] = []
    for child in sorted(base_path.iterdir()):
        if child.is_dir() and (child / "package.json").exists():
            found.append(f"{base}/{child.name}")
    return found


def expand_glob(root: Path, pattern: str) -> List[str]:
    """Expand a plain directory or a `dir/*` pattern relative to `root`."""
    normalised = pattern.replace("\\", "/").rstrip("/")
    if normalised.startswith("!"):
        return []
    if "*" not in normalised:
        return [normalised] if (root / normalised).is_dir() else []
    if not normalised.endswith("/*") or "*" in normalised[:-2]:
        return []
    return _package_dirs(root, normalised[:-2].rstrip("/"))


def detect_workspaces(root: str | Path) -> List[str]:
    """Return workspace paths relative to `root`, sorted."""
    root_path = Path(root)
    found: Set[str] = set()
    for pattern in read_workspace_globs(root_path):
        found.update(expand_glob(root_path, pattern))

    if not found:
        for base in _FALLBACK_BASES:
            found.update(_package_dirs(root_path, base))

    return sorted(found)


__all__ = ["detect_workspaces", "expand_glob", "read_workspace_globs"]
