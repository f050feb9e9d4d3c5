"""Tests for depfix.env.render."""

from __future__ import annotations

from depfix.env.render import (
    GROUP_RULES,
    NON_SECRET_NOTE,
    SECRET_NOTE,
    group_keys,
    parse_template_keys,
    render_env_file,
    render_template,
)
from depfix.models import EnvDoc, ScanResult


def _result(*keys: str) -> ScanResult:
    return ScanResult.build(keys, files_scanned=1)


def test_bare_render_groups_by_prefix_priority() -> None:
    text = render_template(_result("CUSTOM_FLAG", "REDIS_PORT", "DB_HOST"))

    assert text == "# Database\nDB_HOST=\n\n# Redis\nREDIS_PORT=\n\n# Other\nCUSTOM_FLAG=\n"


def test_groups_follow_rule_order_and_other_is_sorted() -> None:
    groups = group_keys(
        ["ZETA", "VITE_MODE", "NEXT_PUBLIC_URL", "SMTP_HOST", "AWS_REGION", "ALPHA", "DB_NAME"]
    )

    assert [group.heading for group in groups] == [
        "Database",
        "AWS",
        "SMTP",
        "Next.js public env",
        "Vite env",
        "Other",
    ]
    assert groups[-1].keys == ["ALPHA", "ZETA"]


def test_each_key_belongs_to_exactly_one_group() -> None:
    keys = ["DB_HOST", "DB_PORT", "REDIS_URL", "OTHER"]

    groups = group_keys(keys)
    flattened = [key for group in groups for key in group.keys]

    assert sorted(flattened) == sorted(keys)
    assert len(flattened) == len(set(flattened))


def test_rule_prefixes_are_mutually_exclusive() -> None:
    prefixes = [rule.prefix for rule in GROUP_RULES]
    for prefix in prefixes:
        assert [other for other in prefixes if prefix.startswith(other)] == [prefix]


def test_zero_keys_render_placeholder() -> None:
    text = render_template(_result())

    assert text == "# .env.example\n# Add your environment variables below (e.g. PORT=3000)\n"


def test_enriched_render_emits_doc_block_and_falls_back_to_bare() -> None:
    docs = [
        EnvDoc(
            key="DB_PASSWORD",
            description="Password for the primary database user.",
            where_to_get="Your database admin console.",
            example_value="changeme",
            is_secret=True,
        ),
        EnvDoc(
            key="PORT",
            description="HTTP port the server listens on.",
            where_to_get="Pick any free local port.",
            example_value="3000",
            is_secret=False,
        ),
    ]

    text = render_template(_result("DB_PASSWORD", "PORT", "LOG_LEVEL"), docs)

    assert text == (
        "# Database\n"
        "# DB_PASSWORD\n"
        "# Password for the primary database user.\n"
        "# Where to get it: Your database admin console.\n"
        f"# {SECRET_NOTE}\n"
        "DB_PASSWORD=changeme\n"
        "\n"
        "# Other\n"
        "LOG_LEVEL=\n"
        "# PORT\n"
        "# HTTP port the server listens on.\n"
        "# Where to get it: Pick any free local port.\n"
        f"# {NON_SECRET_NOTE}\n"
        "PORT=3000\n"
    )


def test_multiline_doc_text_stays_on_one_comment_line() -> None:
    docs = [
        EnvDoc(
            key="API_KEY",
            description="First line.\nSecond line.",
            where_to_get="Dashboard\n  > Settings",
            example_value="sk-xxxx\n",
            is_secret=True,
        )
    ]

    text = render_template(_result("API_KEY"), docs)

    assert "# First line. Second line.\n" in text
    assert "# Where to get it: Dashboard > Settings\n" in text
    assert "API_KEY=sk-xxxx\n" in text


def test_rendering_is_idempotent() -> None:
    result = _result("DB_HOST", "VITE_API", "X")
    docs = [EnvDoc("X", "desc", "where", "1", False)]

    assert render_template(result, docs) == render_template(result, docs)
    assert render_template(result) == render_template(result)


def test_output_ends_with_exactly_one_newline() -> None:
    text = render_template(_result("A", "DB_B"))

    assert text.endswith("\n")
    assert not text.endswith("\n\n")
    assert all(line == line.rstrip() for line in text.splitlines())


def test_render_env_file_is_sorted_skeleton() -> None:
    assert render_env_file({"B", "A"}) == "A=\nB=\n"


def test_parse_template_keys_ignores_comments_and_values() -> None:
    content = "# Database\nDB_HOST=localhost\n\n# DB_OLD=ignored\nexport TOKEN=abc\n=broken\nnot a key\n"

    assert parse_template_keys(content) == {"DB_HOST", "TOKEN"}
