# byte_vision/tests/cli/test_cli_commands.py
"""
Tests for the typer CLI: `args`, `complete`, `config` and `serve`.
"""
import sys

import pytest
from typer.testing import CliRunner

from byte_vision.cli import app
from byte_vision.utils.config_loader import SWITCH_OPTIONS, VALUE_OPTIONS

runner = CliRunner()


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for flag_key, value_key in list(VALUE_OPTIONS.values()) + list(
        SWITCH_OPTIONS.values()
    ):
        monkeypatch.delenv(flag_key, raising=False)
        monkeypatch.delenv(value_key, raising=False)
    for key in ("LLamaCliPath", "TimeOutSeconds", "HttpPort", "BYTE_VISION_ENV_FILE"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _write_env(directory, name, lines):
    path = directory / name
    path.write_text("\n".join(lines), encoding="utf-8")
    return str(path)


@pytest.fixture
def env_file(clean_env):
    return _write_env(
        clean_env,
        "test.env",
        [
            f"LLamaCliPath={sys.executable}",
            "TimeOutSeconds=30",
            "CtxSizeCmd=--ctx-size",
            "CtxSizeVal=40960",
            "PromptCmd=-c",
        ],
    )


@pytest.fixture
def interpreter_env_file(clean_env):
    """Only the prompt flag is configured, so the interpreter accepts the argv."""
    return _write_env(
        clean_env,
        "interpreter.env",
        [f"LLamaCliPath={sys.executable}", "TimeOutSeconds=30", "PromptCmd=-c"],
    )


def test_args_shows_resolved_vector(env_file):
    result = runner.invoke(app, ["args", "hello", "--env-file", env_file])

    assert result.exit_code == 0, result.output
    assert "--ctx-size" in result.output
    assert "40960" in result.output
    assert "hello" in result.output


def test_args_applies_override(env_file):
    result = runner.invoke(
        app, ["args", "hello", "-e", env_file, "--ctx-size", "2048"]
    )

    assert result.exit_code == 0, result.output
    assert "2048" in result.output
    assert "40960" not in result.output


def test_complete_prints_output(interpreter_env_file):
    result = runner.invoke(
        app, ["complete", "print('pong')", "-e", interpreter_env_file]
    )

    assert result.exit_code == 0, result.output
    assert "pong" in result.output


def test_complete_empty_prompt_exits_nonzero(env_file):
    result = runner.invoke(app, ["complete", "", "-e", env_file])

    assert result.exit_code == 1
    assert "Prompt cannot be empty" in result.output


def test_config_lists_options(env_file):
    result = runner.invoke(app, ["config", "-e", env_file])

    assert result.exit_code == 0, result.output
    assert "ctx_size" in result.output
    assert "Server settings" in result.output


def test_bad_env_file_path_exits_with_config_error(tmp_path):
    result = runner.invoke(app, ["config", "-e", str(tmp_path)])

    assert result.exit_code == 2
    assert "Configuration error" in result.output


def test_complete_reports_process_failure(env_file):
    # The interpreter rejects --ctx-size, so llama-cli "fails".
    result = runner.invoke(app, ["complete", "print('pong')", "-e", env_file])

    assert result.exit_code == 1
    assert "Error generating completion: exit status 2" in result.output


def test_serve_with_malformed_port_exits_with_error(clean_env):
    env_file = _write_env(
        clean_env, "bad-port.env", [f"LLamaCliPath={sys.executable}", "HttpPort=:abc"]
    )

    result = runner.invoke(app, ["serve", "-e", env_file])

    assert result.exit_code == 2
    assert "Cannot start server" in result.output
    assert "HttpPort" in result.output
