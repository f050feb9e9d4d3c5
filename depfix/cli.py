"""CLI entrypoints for depfix commands."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import List, Optional

from .audit.runner import run_audit
from .audit.summarize import SEVERITY_ORDER, format_summary, normalize_severity, should_fail, summarize_audit
from .config import ConfigError, DepfixConfig, load_config
from .env.scanner import EnvScanner
from .llm import GENERATORS, GenerationError
from .logging import configure_logging, get_logger
from .models import GenerateOptions, GenerateOutcome
from .orchestrator import Orchestrator

ENV_PROVIDER = "DEPFIX_AI_PROVIDER"
ENV_MODEL = "DEPFIX_AI_MODEL"


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _add_lowercase_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--include-lowercase",
        action="store_true",
        default=None,
        help="Accept lowercase/mixed-case variable names (not recommended).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="depfix",
        description="Audit dependencies and keep .env.example in sync with the code.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs (with timestamps) to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    audit_parser = subparsers.add_parser(
        "audit",
        help="Audit dependencies and summarize vulnerabilities.",
    )
    _add_verbose_option(audit_parser, suppress_default=True)
    _add_path_argument(audit_parser)
    audit_parser.add_argument(
        "--severity",
        choices=SEVERITY_ORDER,
        default=None,
        help="Minimum severity to include (default: low).",
    )
    audit_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the raw audit JSON to stdout.",
    )
    audit_parser.add_argument(
        "--fail",
        action="store_true",
        default=None,
        help="Exit with code 1 if vulnerabilities at or above --severity exist.",
    )

    env_parser = subparsers.add_parser(
        "env",
        help="Environment variable template commands.",
    )
    env_subparsers = env_parser.add_subparsers(dest="env_command", required=True)

    generate_parser = env_subparsers.add_parser(
        "generate",
        help="Generate .env.example from detected environment variable usage.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_path_argument(generate_parser)
    generate_parser.add_argument("--out", default=None, help="Output file name (default: .env.example).")
    generate_parser.add_argument(
        "--check",
        action="store_true",
        help="Verify the template contains all required vars; exit 1 if not.",
    )
    generate_parser.add_argument(
        "--create",
        action="store_true",
        help="Also create .env with blank values if it is missing.",
    )
    generate_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing .env when used with --create.",
    )
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Render templates without writing any file.",
    )
    _add_lowercase_option(generate_parser)
    generate_parser.add_argument(
        "--max-context",
        type=int,
        default=None,
        help="Source snippets kept per key for AI mode (default: 2).",
    )
    generate_parser.add_argument(
        "--ai",
        action="store_true",
        help="Add descriptions and where-to-get guidance using an AI provider.",
    )
    generate_parser.add_argument(
        "--provider",
        choices=sorted(GENERATORS),
        default=None,
        help="AI provider for --ai (default: openai).",
    )
    generate_parser.add_argument("--model", default=None, help="Model identifier for --ai.")
    generate_parser.add_argument(
        "--api-key",
        default=None,
        help="Provider API key (default: OPENAI_API_KEY or GOOGLE_API_KEY).",
    )
    generate_parser.add_argument(
        "--monorepo",
        action="store_true",
        help="Also generate a template for each detected workspace.",
    )
    generate_parser.add_argument(
        "--workspaces",
        default=None,
        help="In monorepo mode: comma-separated workspaces to include.",
    )
    generate_parser.add_argument(
        "--skip-root",
        action="store_true",
        help="In monorepo mode: skip the repository root.",
    )

    scan_parser = env_subparsers.add_parser(
        "scan",
        help="Print the environment variables the scanner detects.",
    )
    _add_verbose_option(scan_parser, suppress_default=True)
    _add_path_argument(scan_parser)
    _add_lowercase_option(scan_parser)
    scan_parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for depfix commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    logger = get_logger("cli")

    try:
        config = load_config(Path(args.path))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "audit":
        _run_audit(parser, args, config)
    elif args.command == "env" and args.env_command == "generate":
        options = resolve_generate_options(args, config)
        try:
            outcome = Orchestrator().run(options)
        except GenerationError as exc:
            logger.error("%s", exc)
            parser.exit(1, "depfix env generate failed. Run with --verbose for more details.\n")
        except (FileNotFoundError, NotADirectoryError, ValueError) as exc:
            parser.exit(1, f"{exc}\n")
        _report_generate(outcome, check=options.check)
        if not outcome.ok:
            parser.exit(1)
    elif args.command == "env" and args.env_command == "scan":
        _run_scan(parser, args, config)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def resolve_generate_options(args: argparse.Namespace, config: DepfixConfig) -> GenerateOptions:
    """Merge CLI flags over .depfix.yml over environment variables over defaults."""
    env_config = config.env
    ai_config = config.ai
    include_lowercase = args.include_lowercase
    if include_lowercase is None:
        include_lowercase = env_config.include_lowercase
    max_context = args.max_context if args.max_context is not None else env_config.max_context
    provider = args.provider or ai_config.provider or os.getenv(ENV_PROVIDER) or "openai"
    return GenerateOptions(
        root=Path(args.path),
        out=args.out or env_config.out,
        env_file=env_config.env_file,
        check=bool(args.check),
        create=bool(args.create),
        force=bool(args.force),
        dry_run=bool(args.dry_run),
        include_lowercase=bool(include_lowercase),
        max_context=max(0, max_context),
        exclude_dirs=list(env_config.exclude_dirs),
        ai=bool(args.ai),
        provider=provider.lower(),
        model=args.model or ai_config.model or os.getenv(ENV_MODEL) or None,
        api_key=(args.api_key or "").strip() or None,
        base_url=ai_config.base_url,
        request_timeout=ai_config.request_timeout,
        project_hint=ai_config.project_hint,
        monorepo=bool(args.monorepo),
        workspaces=_split_csv(args.workspaces),
        skip_root=bool(args.skip_root),
    )


def _report_generate(outcome: GenerateOutcome, *, check: bool) -> None:
    for target in outcome.targets:
        rel_path = _relativize(target.output)
        keys = len(target.scan.keys)
        if check:
            status = "ok" if target.check is not None and target.check.ok else "failed"
        elif outcome.dry_run:
            status = "dry-run"
        else:
            status = "wrote"
        print(f"{target.label:<20} {keys:>3} keys -> {rel_path} ({status})")
        if outcome.dry_run and not check:
            print(target.content, end="")


def _run_scan(parser: argparse.ArgumentParser, args: argparse.Namespace, config: DepfixConfig) -> None:
    include_lowercase = args.include_lowercase
    if include_lowercase is None:
        include_lowercase = config.env.include_lowercase
    scanner = EnvScanner(exclude_dirs=config.env.exclude_dirs)
    try:
        result = scanner.scan(
            args.path,
            include_lowercase=bool(include_lowercase),
            max_context=config.env.max_context,
        )
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")

    if args.json:
        payload = {
            "files_scanned": result.files_scanned,
            "keys": result.sorted_keys(),
            "contexts": {
                key: [
                    {"file": ctx.file, "line": ctx.line, "snippet": ctx.snippet}
                    for ctx in result.contexts.get(key, ())
                ]
                for key in result.sorted_keys()
            },
        }
        print(json.dumps(payload, indent=2))
        return

    print(f"Files scanned: {result.files_scanned}")
    print(f"Keys found: {len(result.keys)}")
    for key in result.sorted_keys():
        first = result.first_context(key)
        location = f"{first.file}:{first.line}" if first else "(no context)"
        print(f"  {key:<32} {location}")


def _run_audit(parser: argparse.ArgumentParser, args: argparse.Namespace, config: DepfixConfig) -> None:
    logger = get_logger("cli")
    severity = normalize_severity(args.severity or config.audit.severity)
    fail = args.fail if args.fail is not None else config.audit.fail

    try:
        run = run_audit(args.path)
    except RuntimeError as exc:
        parser.exit(1, f"{exc}\n")

    if not run.raw_json:
        logger.error("%s audit did not return JSON output.", run.pm)
        parser.exit(run.exit_code or 1)

    try:
        parsed = json.loads(run.raw_json)
    except json.JSONDecodeError:
        logger.error("Failed to parse %s audit JSON output.", run.pm)
        if args.json:
            print(run.raw_json)
        parser.exit(run.exit_code or 1)

    summary = summarize_audit(parsed, severity)
    for line in format_summary(summary, run.pm):
        print(line)
    if args.json:
        print(run.raw_json)
    if fail and should_fail(summary):
        parser.exit(1)


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
