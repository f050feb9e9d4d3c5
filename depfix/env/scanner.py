"""Directory walking and per-line key extraction."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence, Tuple

from ..logging import get_logger, log_skipped
from ..models import DEFAULT_MAX_CONTEXT, SNIPPET_LIMIT, KeyContext, ScanResult
from .patterns import KeyMatcher, is_declaration_file
from .registry import KeyRegistry

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "bower_components",
    "jspm_packages",
    ".pnpm-store",
    ".yarn",
    "dist",
    "build",
    "out",
    "coverage",
    ".next",
    ".nuxt",
    ".svelte-kit",
    ".astro",
    ".turbo",
    ".vercel",
    ".output",
    ".cache",
    ".parcel-cache",
    ".venv",
    "venv",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".tox",
    "target",
    "vendor",
    ".idea",
    ".vscode",
}

_SOURCE_SUFFIXES = {
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".ts",
    ".tsx",
    ".mts",
    ".cts",
    ".vue",
    ".svelte",
    ".astro",
    ".html",
    ".py",
    ".rb",
    ".go",
    ".rs",
    ".java",
    ".kt",
    ".php",
    ".sh",
    ".bash",
    ".zsh",
    ".yml",
    ".yaml",
    ".toml",
    ".json",
}

logger = get_logger("env.scanner")


def _depth_order(rel_path: str) -> Tuple[int, str]:
    return (rel_path.count("/"), rel_path)


def _iter_files(root: Path, excluded: Iterable[str]) -> Iterator[Tuple[str, Path]]:
    skip = set(excluded)

    def _on_error(exc: OSError) -> None:
        log_skipped(logger, "directory", exc.filename, exc)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        dirnames[:] = sorted(name for name in dirnames if name not in skip)

        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            yield rel_path, current_dir / filename


def classify(filename: str) -> str | None:
    """Return "declaration", "source", or None when the file is not scanned."""
    if is_declaration_file(filename):
        return "declaration"
    if Path(filename).suffix.lower() in _SOURCE_SUFFIXES:
        return "source"
    return None


def _snippet(line: str) -> str:
    return line.strip()[:SNIPPET_LIMIT]


def _redacted(line: str) -> str:
    """Keep the `KEY=` part of a declaration; values never leave the scanner."""
    name = line.split("=", 1)[0].strip()
    return f"{name}="[:SNIPPET_LIMIT]


def _read_lines(path: Path) -> List[str] | None:
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as exc:
        log_skipped(logger, "file", path, exc)
        return None


class EnvScanner:
    """Walks a project tree and collects referenced environment variables."""

    def __init__(self, *, exclude_dirs: Sequence[str] = ()) -> None:
        self.excluded = _EXCLUDED_DIRS | set(exclude_dirs)

    def scan(
        self,
        root: str | Path,
        *,
        include_lowercase: bool = False,
        max_context: int = DEFAULT_MAX_CONTEXT,
    ) -> ScanResult:
        """Return the reconciled key set for every scannable file under `root`."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Scan root not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Scan root is not a directory: {root}")

        matcher = KeyMatcher(include_lowercase=include_lowercase)
        registry = KeyRegistry(max_context=max_context)

        candidates: List[Tuple[str, Path, str]] = []
        for rel_path, path in _iter_files(root_path, self.excluded):
            kind = classify(path.name)
            if kind is not None:
                candidates.append((rel_path, path, kind))
        # Shallow files first, then lexicographic, so capped contexts are reproducible.
        candidates.sort(key=lambda item: _depth_order(item[0]))

        files_scanned = 0
        for rel_path, path, kind in candidates:
            lines = _read_lines(path)
            if lines is None:
                continue
            files_scanned += 1
            declaration = kind == "declaration"
            suffix = path.suffix.lower()
            for number, line in enumerate(lines, start=1):
                for match in matcher.match(line, declaration=declaration, suffix=suffix):
                    if declaration:
                        context = KeyContext(file=rel_path, line=number, snippet=_redacted(line))
                        registry.record_declaration(match.key, context)
                    else:
                        context = KeyContext(file=rel_path, line=number, snippet=_snippet(line))
                        registry.record_code(match.key, context)

        result = registry.build(files_scanned)
        logger.debug(
            "Scanned %d files under %s, found %d keys", files_scanned, root_path, len(result.keys)
        )
        return result


def scan(
    root: str | Path,
    *,
    include_lowercase: bool = False,
    max_context: int = DEFAULT_MAX_CONTEXT,
    exclude_dirs: Sequence[str] = (),
) -> ScanResult:
    """Convenience wrapper around `EnvScanner.scan`."""
    return EnvScanner(exclude_dirs=exclude_dirs).scan(
        root, include_lowercase=include_lowercase, max_context=max_context
    )


__all__ = ["EnvScanner", "classify", "scan"]
