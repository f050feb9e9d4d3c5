from __future__ import annotations

from depfix.models import KeyContext
from depfix.prompting.builder import PromptBuilder


def test_build_returns_system_and_user_messages() -> None:
    contexts = {
        "DATABASE_URL": (
            KeyContext(file="src/db.ts", line=3, snippet="connect(process.env.DATABASE_URL)"),
            KeyContext(file="src/other.ts", line=9, snippet="process.env.DATABASE_URL"),
        )
    }

    messages = PromptBuilder().build(
        ["DATABASE_URL", "PORT"], contexts, project_hint="  Internal billing API.  "
    )

    assert [message.role for message in messages] == ["system", "user"]
    system, user = (message.content for message in messages)
    assert "secret" in system.lower()
    assert "where_to_get" in system
    assert "- DATABASE_URL" in user
    assert "src/db.ts:3" in user
    assert "connect(process.env.DATABASE_URL)" in user
    assert "src/other.ts" not in user
    assert "- PORT" in user
    assert "(no context)" in user
    assert user.rstrip().endswith("Project hint: Internal billing API.")


def test_messages_serialise_to_role_content_dicts() -> None:
    messages = PromptBuilder().build(["PORT"], {}, project_hint="hint")

    assert messages[1].as_dict() == {"role": "user", "content": messages[1].content}


def test_custom_templates_directory(tmp_path) -> None:
    (tmp_path / "system.j2").write_text("sys\n", encoding="utf-8")
    (tmp_path / "user.j2").write_text(
        "{% for entry in entries %}{{ entry.key }};{% endfor %}{{ project_hint }}\n",
        encoding="utf-8",
    )

    messages = PromptBuilder(templates_dir=tmp_path).build(["A", "B"], {}, project_hint="x")

    assert messages[0].content == "sys"
    assert messages[1].content == "A;B;x"


def test_declared_values_never_reach_the_prompt(repo_builder) -> None:
    repo_builder.write_env({"OPENAI_API_KEY": "sk-live-REALSECRET123"})
    repo_builder.write({"src/app.js": "const client = new OpenAI(process.env.OPENAI_API_KEY);\n"})
    result = repo_builder.scan()

    messages = PromptBuilder().build(result.sorted_keys(), result.contexts, project_hint="hint")

    user = messages[1].content
    assert "REALSECRET123" not in user
    assert "src/app.js:1" in user
