"""Tests for the `textassist settings` subcommands."""

from __future__ import annotations

import json

from click.testing import CliRunner

from textassist.cli import cli as cli_module


def _run_cli(tmp_path, args: list[str], **kwargs):
    runner = CliRunner()
    return runner.invoke(
        cli_module.cli, ["--config-dir", str(tmp_path / "cfg"), *args], **kwargs
    )


def test_settings_group_help_renders(tmp_path):
    result = _run_cli(tmp_path, ["settings"])
    assert result.exit_code == 0
    assert "Inspect and edit TextAssist settings" in result.output
    assert "providers" in result.output


def test_version_command(tmp_path):
    result = _run_cli(tmp_path, ["version"])
    assert result.exit_code == 0
    assert "TextAssist version" in result.output


def test_init_creates_file_once(tmp_path):
    first = _run_cli(tmp_path, ["settings", "init"])
    assert first.exit_code == 0
    assert "Created default settings" in first.output
    assert (tmp_path / "cfg" / "settings.json").exists()

    second = _run_cli(tmp_path, ["settings", "init"])
    assert second.exit_code == 0
    assert "already exists" in second.output


def test_show_json_emits_settings_document(tmp_path):
    result = _run_cli(tmp_path, ["settings", "show", "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["currentProviderConfig"]["providerName"] == "Ollama"
    assert len(payload["availableProviderConfigs"]) == 5


def test_show_summary(tmp_path):
    result = _run_cli(tmp_path, ["settings", "show"])
    assert result.exit_code == 0
    assert "Current provider: Ollama" in result.output
    assert "Not selected" in result.output
    assert "English -> Ukrainian" in result.output


def test_metadata_json(tmp_path):
    result = _run_cli(tmp_path, ["settings", "metadata", "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["providerTypes"] == ["open-ai-compatible", "ollama"]
    assert payload["authTypes"] == ["none", "api-key", "bearer"]
    assert payload["settingsFile"] == str(tmp_path / "cfg" / "settings.json")


def test_provider_add_list_use_remove_roundtrip(tmp_path):
    add_result = _run_cli(
        tmp_path,
        [
            "settings",
            "providers",
            "add",
            "Groq",
            "--base-url",
            "https://api.groq.com/openai/",
            "--token-env",
            "GROQ_API_KEY",
            "--header",
            "X-Team=alpha",
        ],
    )
    assert add_result.exit_code == 0, add_result.output
    assert "Added provider 'Groq'" in add_result.output

    list_result = _run_cli(tmp_path, ["settings", "providers", "list", "--json"])
    assert list_result.exit_code == 0
    rows = json.loads(list_result.output)
    assert len(rows) == 6
    groq = rows[-1]
    assert groq["providerName"] == "Groq"
    assert groq["authType"] == "bearer"
    assert groq["loadAuthTokenFromEnv"] is True
    assert groq["envVarTokenName"] == "GROQ_API_KEY"
    assert groq["useCustomHeaders"] is True
    assert groq["headers"] == {"X-Team": "alpha"}
    assert groq["modelsEndpoint"] == "v1/models"

    use_result = _run_cli(tmp_path, ["settings", "providers", "use", "Groq"])
    assert use_result.exit_code == 0
    assert "Current provider: Groq" in use_result.output

    blocked = _run_cli(tmp_path, ["settings", "providers", "remove", groq["providerId"]])
    assert blocked.exit_code == 1
    assert "cannot delete current provider" in blocked.output

    _run_cli(tmp_path, ["settings", "providers", "use", "Ollama"])
    removed = _run_cli(tmp_path, ["settings", "providers", "remove", "Groq"])
    assert removed.exit_code == 0
    assert "Removed provider 'Groq'" in removed.output


def test_provider_list_table_marks_current(tmp_path):
    result = _run_cli(tmp_path, ["settings", "providers", "list"], env={"COLUMNS": "200"})
    assert result.exit_code == 0
    assert "OpenRouter.ai" in result.output
    assert "$OPENAI_API_KEY" in result.output
    ollama_line = next(line for line in result.output.splitlines() if "Ollama" in line)
    assert "*" in ollama_line


def test_provider_add_duplicate_fails(tmp_path):
    result = _run_cli(
        tmp_path,
        ["settings", "providers", "add", "OpenAI", "--base-url", "https://example.com/"],
    )
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_provider_add_invalid_url_fails(tmp_path):
    result = _run_cli(
        tmp_path,
        ["settings", "providers", "add", "Broken", "--base-url", "https://example.com"],
    )
    assert result.exit_code == 1
    assert "trailing slash" in result.output


def test_provider_update_and_show(tmp_path):
    update = _run_cli(
        tmp_path,
        [
            "settings",
            "providers",
            "update",
            "Ollama",
            "--base-url",
            "http://10.0.0.2:11434/",
            "--model",
            "llama3",
            "--model",
            "qwen2",
        ],
    )
    assert update.exit_code == 0, update.output

    show = _run_cli(tmp_path, ["settings", "providers", "show", "Ollama", "--json"])
    payload = json.loads(show.output)
    assert payload["baseUrl"] == "http://10.0.0.2:11434/"
    assert payload["useCustomModels"] is True
    assert payload["customModels"] == ["llama3", "qwen2"]

    current = json.loads(_run_cli(tmp_path, ["settings", "show", "--json"]).output)
    assert current["currentProviderConfig"]["baseUrl"] == "http://10.0.0.2:11434/"


def test_provider_show_unknown(tmp_path):
    result = _run_cli(tmp_path, ["settings", "providers", "show", "Nope"])
    assert result.exit_code == 1
    assert "provider not found" in result.output


def test_provider_bad_header(tmp_path):
    result = _run_cli(
        tmp_path,
        ["settings", "providers", "update", "OpenAI", "--header", "no-separator"],
    )
    assert result.exit_code == 2
    assert "Invalid header" in result.output


def test_inference_set_and_show(tmp_path):
    result = _run_cli(
        tmp_path, ["settings", "inference", "set", "--timeout", "90", "--markdown"]
    )
    assert result.exit_code == 0
    assert "timeout 90s, retries 3, markdown on" in result.output

    shown = json.loads(_run_cli(tmp_path, ["settings", "inference"]).output)
    assert shown == {"timeout": 90, "maxRetries": 3, "useMarkdownForOutput": True}

    rejected = _run_cli(tmp_path, ["settings", "inference", "set", "--max-retries", "42"])
    assert rejected.exit_code == 1
    assert "max retries" in rejected.output.lower()


def test_model_set(tmp_path):
    result = _run_cli(tmp_path, ["settings", "model", "set", "llama3.1", "--temperature", "0.8"])
    assert result.exit_code == 0
    assert "Model: llama3.1" in result.output

    shown = json.loads(_run_cli(tmp_path, ["settings", "model"]).output)
    assert shown == {"name": "llama3.1", "useTemperature": True, "temperature": 0.8}

    rejected = _run_cli(tmp_path, ["settings", "model", "set", "--temperature", "3"])
    assert rejected.exit_code == 1


def test_languages_commands(tmp_path):
    listed = _run_cli(tmp_path, ["settings", "languages"])
    assert listed.exit_code == 0
    assert "English (default input)" in listed.output
    assert "Ukrainian (default output)" in listed.output

    added = _run_cli(tmp_path, ["settings", "languages", "add", "Esperanto"])
    assert added.exit_code == 0
    assert added.output.startswith("16 languages")

    blocked = _run_cli(tmp_path, ["settings", "languages", "remove", "english"])
    assert blocked.exit_code == 1
    assert "cannot remove default input language" in blocked.output

    switched = _run_cli(tmp_path, ["settings", "languages", "default-output", "esperanto"])
    assert switched.exit_code == 0
    assert "Default output language: Esperanto" in switched.output

    removed = _run_cli(tmp_path, ["settings", "languages", "remove", "Ukrainian"])
    assert removed.exit_code == 0
    assert "Ukrainian" not in removed.output


def test_reset_requires_confirmation(tmp_path):
    _run_cli(tmp_path, ["settings", "languages", "add", "Esperanto"])

    aborted = _run_cli(tmp_path, ["settings", "reset"], input="n\n")
    assert aborted.exit_code == 1
    languages = json.loads(_run_cli(tmp_path, ["settings", "languages", "list", "--json"]).output)
    assert "Esperanto" in languages["languages"]

    reset = _run_cli(tmp_path, ["settings", "reset", "--yes"])
    assert reset.exit_code == 0
    languages = json.loads(_run_cli(tmp_path, ["settings", "languages", "list", "--json"]).output)
    assert "Esperanto" not in languages["languages"]


def test_model_set_rejects_nan_temperature(tmp_path):
    result = _run_cli(
        tmp_path, ["settings", "model", "set", "--no-temperature", "--temperature", "nan"]
    )
    assert result.exit_code == 1
    assert "finite" in result.output

    shown = json.loads(_run_cli(tmp_path, ["settings", "show", "--json"]).output)
    assert shown["modelConfig"]["temperature"] == 0.5
