"""Configuration loading for depfix (.depfix.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .models import DEFAULT_MAX_CONTEXT

CONFIG_FILENAME = ".depfix.yml"
SEVERITIES = ("low", "moderate", "high", "critical")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class EnvConfig:
    """Settings for `depfix env generate`."""

    out: str = ".env.example"
    env_file: str = ".env"
    include_lowercase: bool = False
    max_context: int = DEFAULT_MAX_CONTEXT
    exclude_dirs: List[str] = field(default_factory=list)


@dataclass
class AIConfig:
    """Enrichment backend settings. API keys are never read from the file."""

    provider: Optional[str] = None
    model: Optional[str] = None
    base_url: Optional[str] = None
    request_timeout: Optional[float] = None
    project_hint: Optional[str] = None


@dataclass
class AuditConfig:
    """Settings for `depfix audit`."""

    severity: str = "low"
    fail: bool = False


@dataclass
class DepfixConfig:
    """Represents the settings defined in .depfix.yml."""

    root: Path
    env: EnvConfig = field(default_factory=EnvConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    audit: AuditConfig = field(default_factory=AuditConfig)


def load_config(config_path: Path) -> DepfixConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DepfixConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    env = EnvConfig()
    env_data = _as_dict(data.get("env"))
    if env_data:
        env.out = _as_str(env_data.get("out")) or env.out
        env.env_file = _as_str(env_data.get("env_file")) or env.env_file
        include_lowercase = _as_bool(env_data.get("include_lowercase"))
        if include_lowercase is not None:
            env.include_lowercase = include_lowercase
        max_context = _as_int(env_data.get("max_context"))
        if max_context is not None and max_context >= 0:
            env.max_context = max_context
        env.exclude_dirs = _as_str_list(env_data.get("exclude_dirs"))

    ai_data = _as_dict(data.get("ai"))
    ai = AIConfig(
        provider=_as_str(ai_data.get("provider")),
        model=_as_str(ai_data.get("model")),
        base_url=_as_str(ai_data.get("base_url")),
        request_timeout=_as_float(ai_data.get("request_timeout")),
        project_hint=_as_str(ai_data.get("project_hint")),
    )

    audit = AuditConfig()
    audit_data = _as_dict(data.get("audit"))
    if audit_data:
        severity = _as_str(audit_data.get("severity"))
        if severity and severity.lower() in SEVERITIES:
            audit.severity = severity.lower()
        audit.fail = _as_bool(audit_data.get("fail")) or False

    return DepfixConfig(root=root, env=env, ai=ai, audit=audit)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "AIConfig",
    "AuditConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "DepfixConfig",
    "EnvConfig",
    "SEVERITIES",
    "load_config",
]
