"""Pipeline orchestration for env generate / check / create flows."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .env.render import parse_template_keys, render_env_file, render_template
from .env.scanner import EnvScanner
from .env.workspaces import detect_workspaces
from .llm import DEFAULT_PROJECT_HINT, DocsGenerator, EnrichmentOptions, GenerationError, build_generator
from .logging import get_logger
from .models import (
    CheckOutcome,
    CreateOutcome,
    EnvDoc,
    GenerateOptions,
    GenerateOutcome,
    ScanResult,
    TargetOutcome,
)

GeneratorFactory = Callable[[GenerateOptions], DocsGenerator]


def _default_generator_factory(options: GenerateOptions) -> DocsGenerator:
    return build_generator(
        options.provider,
        base_url=options.base_url,
        request_timeout=options.request_timeout,
    )


class Orchestrator:
    """Coordinates scanning, optional enrichment, rendering and file output."""

    def __init__(
        self,
        scanner: EnvScanner | None = None,
        generator_factory: GeneratorFactory | None = None,
    ) -> None:
        self._scanner = scanner
        self._generator_factory = generator_factory or _default_generator_factory
        self.logger = get_logger("orchestrator")

    def run(self, options: GenerateOptions) -> GenerateOutcome:
        """Dispatch to check mode or generate mode."""
        if options.check:
            return self.check(options)
        return self.generate(options)

    def generate(self, options: GenerateOptions) -> GenerateOutcome:
        """Scan every target, render its template and write it (always overwriting)."""
        if options.dry_run:
            self.logger.info("Starting dry run (no files will be written).")
        outcomes: List[TargetOutcome] = []
        for label, root in self.resolve_targets(options):
            outcomes.append(self._generate_target(label, root, options))
        if options.dry_run:
            self.logger.info("Finished dry run.")
        return GenerateOutcome(targets=outcomes, dry_run=options.dry_run)

    def check(self, options: GenerateOptions) -> GenerateOutcome:
        """Verify each existing template declares every scanned key."""
        outcomes: List[TargetOutcome] = []
        for label, root in self.resolve_targets(options):
            scan = self.scan(root, options)
            output = root / options.out
            result = self.check_template(output, scan)
            if result.ok:
                self.logger.info("%s contains all required environment variables.", output)
            elif result.reason == "missing-file":
                self.logger.error(
                    "%s does not exist. Run 'depfix env generate' to create it.", output
                )
            else:
                self.logger.error(
                    "%s is missing the following environment variables: %s",
                    output,
                    ", ".join(result.missing),
                )
            outcomes.append(
                TargetOutcome(
                    label=label,
                    root=root,
                    output=output,
                    scan=scan,
                    written=False,
                    content="",
                    check=result,
                )
            )
        return GenerateOutcome(targets=outcomes, dry_run=options.dry_run)

    def scan(self, root: Path, options: GenerateOptions) -> ScanResult:
        scanner = self._scanner or EnvScanner(exclude_dirs=options.exclude_dirs)
        result = scanner.scan(
            root,
            include_lowercase=options.include_lowercase,
            max_context=options.max_context,
        )
        self.logger.info(
            "Scan complete: %s (%d files, %d keys)", root, result.files_scanned, len(result.keys)
        )
        return result

    @staticmethod
    def check_template(path: Path, scan: ScanResult) -> CheckOutcome:
        if not path.is_file():
            return CheckOutcome(path=path, ok=False, reason="missing-file")
        existing = parse_template_keys(path.read_text(encoding="utf-8"))
        missing = sorted(scan.keys - existing)
        if missing:
            return CheckOutcome(path=path, ok=False, missing=missing, reason="missing-keys")
        return CheckOutcome(path=path, ok=True)

    def enrich(self, scan: ScanResult, options: GenerateOptions) -> List[EnvDoc]:
        """Document every scanned key with one call to the configured backend."""
        if not scan.keys:
            return []
        generator = self._generator_factory(options)
        api_key = options.api_key or _env_api_key(generator)
        if not api_key:
            env_name = generator.api_key_env or "the provider API key variable"
            raise GenerationError(f"AI mode requires {env_name} or --api-key.")
        keys = scan.sorted_keys()
        self.logger.info("Generating descriptions for %d keys with %s", len(keys), options.provider)
        return generator.generate_docs(
            keys,
            scan.contexts,
            EnrichmentOptions(
                api_key=api_key,
                model=options.model or generator.default_model,
                project_hint=options.project_hint or DEFAULT_PROJECT_HINT,
            ),
        )

    def create_env_file(self, root: Path, scan: ScanResult, options: GenerateOptions) -> CreateOutcome:
        """Write a bare `KEY=` skeleton unless the file exists and force is off."""
        path = root / options.env_file
        exists = path.exists()
        if exists and not options.force:
            self.logger.info("%s already exists; not overwriting. Use --force to overwrite.", path)
            return CreateOutcome(path=path, written=False, reason="exists")
        if not scan.keys:
            self.logger.info("No environment variables detected; skipping %s.", path)
            return CreateOutcome(path=path, written=False, reason="no-keys")
        if options.dry_run:
            self.logger.info("Would write %s (dry-run).", path)
            return CreateOutcome(path=path, written=False, reason="dry-run")
        path.write_text(render_env_file(scan.keys), encoding="utf-8")
        self.logger.info("Wrote %s .env file to %s", "updated" if exists else "new", path)
        return CreateOutcome(path=path, written=True)

    def resolve_targets(self, options: GenerateOptions) -> List[Tuple[str, Path]]:
        root = Path(options.root).expanduser().resolve()
        targets: List[Tuple[str, Path]] = []
        if not options.skip_root:
            targets.append(("root", root))
        if options.monorepo:
            workspaces = detect_workspaces(root)
            if not workspaces:
                self.logger.info(
                    "No workspaces detected (pnpm-workspace.yaml / package.json workspaces / apps/* / packages/*)."
                )
            selected = workspaces
            if options.workspaces:
                allowed = set(options.workspaces)
                selected = [ws for ws in workspaces if ws in allowed]
                unknown = sorted(allowed.difference(workspaces))
                if unknown:
                    self.logger.warning("Unknown workspaces ignored: %s", ", ".join(unknown))
            targets.extend((rel, root / rel) for rel in selected)
        if not targets:
            raise ValueError(
                "No targets selected. Remove --skip-root or select at least one workspace."
            )
        return targets

    def _generate_target(self, label: str, root: Path, options: GenerateOptions) -> TargetOutcome:
        scan = self.scan(root, options)
        docs: Optional[List[EnvDoc]] = None
        if options.ai:
            docs = self.enrich(scan, options)
        output = root / options.out
        content = render_template(scan, docs, name=options.out)

        written = False
        if options.dry_run:
            self.logger.info("Would write environment template to %s (dry-run).", output)
        else:
            output.write_text(content, encoding="utf-8")
            written = True
            self.logger.info("Wrote environment template to %s", output)

        create = self.create_env_file(root, scan, options) if options.create else None
        return TargetOutcome(
            label=label,
            root=root,
            output=output,
            scan=scan,
            written=written,
            content=content,
            documented=len(docs or ()),
            create=create,
        )


def _env_api_key(generator: DocsGenerator) -> Optional[str]:
    env_name = generator.api_key_env
    if not env_name:
        return None
    value = os.getenv(env_name, "").strip()
    return value or None


__all__ = ["Orchestrator"]
