from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from depfix.config import ConfigError, load_config


def _write_config(root: Path, body: str) -> None:
    (root / ".depfix.yml").write_text(textwrap.dedent(body), encoding="utf-8")


def test_defaults_when_file_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.root == tmp_path.resolve()
    assert config.env.out == ".env.example"
    assert config.env.env_file == ".env"
    assert config.env.include_lowercase is False
    assert config.env.max_context == 2
    assert config.ai.provider is None
    assert config.audit.severity == "low"
    assert config.audit.fail is False


def test_reads_all_sections(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
        env:
          out: .env.sample
          env_file: .env.local
          include_lowercase: true
          max_context: 4
          exclude_dirs:
            - fixtures
            - generated
        ai:
          provider: google
          model: gemini-2.5-pro
          base_url: http://localhost:9000
          request_timeout: 30
          project_hint: Next.js storefront.
        audit:
          severity: HIGH
          fail: yes
        """,
    )

    config = load_config(tmp_path)

    assert config.env.out == ".env.sample"
    assert config.env.env_file == ".env.local"
    assert config.env.include_lowercase is True
    assert config.env.max_context == 4
    assert config.env.exclude_dirs == ["fixtures", "generated"]
    assert config.ai.provider == "google"
    assert config.ai.model == "gemini-2.5-pro"
    assert config.ai.base_url == "http://localhost:9000"
    assert config.ai.request_timeout == 30.0
    assert config.ai.project_hint == "Next.js storefront."
    assert config.audit.severity == "high"
    assert config.audit.fail is True


def test_invalid_values_fall_back_to_defaults(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
        env:
          max_context: -1
          include_lowercase: maybe
        audit:
          severity: urgent
        """,
    )

    config = load_config(tmp_path)

    assert config.env.max_context == 2
    assert config.env.include_lowercase is False
    assert config.audit.severity == "low"


def test_empty_file_is_allowed(tmp_path: Path) -> None:
    _write_config(tmp_path, "")

    assert load_config(tmp_path).env.out == ".env.example"


def test_non_mapping_root_raises(tmp_path: Path) -> None:
    _write_config(tmp_path, "- just\n- a list\n")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    _write_config(tmp_path, "env: [unclosed\n")

    with pytest.raises(ConfigError):
        load_config(tmp_path)
