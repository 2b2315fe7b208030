# byte_vision/tests/utils/test_config_loader.py
"""
Tests for loading settings and llama-cli options from the env file.
"""
import pytest

from byte_vision.exceptions import ConfigurationError
from byte_vision.utils.config_loader import (
    ENV_FILE_VARIABLE,
    SWITCH_OPTIONS,
    VALUE_OPTIONS,
    build_llama_cli_config,
    load_config,
    parse_bool,
    read_env,
)

ENV_TEXT = """\
LLamaCliPath=/opt/llama/llama-cli
ModelPath=/opt/models
AppLogPath=/var/log/byte-vision
TimeOutSeconds=120
HttpPort=127.0.0.1:9090
EndPoint=/mcp

ModelCmd=--model
ModelFullPathVal=/opt/models/base.gguf
CtxSizeCmd=--ctx-size
CtxSizeVal=40960
TemperatureCmd=--temp
TemperatureVal=0.8
PromptCmd=--prompt
PromptCmdEnabled=true
PromptText="You are a helpful assistant."
FlashAttentionCmd=--flash-attn
FlashAttentionCmdEnabled=T
NoConversationCmd=-no-cnv
NoConversationCmdEnabled=yes
"""


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Keep the real environment and working directory out of the loader."""
    for flag_key, value_key in list(VALUE_OPTIONS.values()) + list(
        SWITCH_OPTIONS.values()
    ):
        monkeypatch.delenv(flag_key, raising=False)
        monkeypatch.delenv(value_key, raising=False)
    for key in (
        ENV_FILE_VARIABLE,
        "PromptCmdEnabled",
        "LLamaCliPath",
        "ModelPath",
        "AppLogPath",
        "TimeOutSeconds",
        "HttpPort",
        "EndPoint",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def env_file(clean_env):
    path = clean_env / "byte-vision-cfg.env"
    path.write_text(ENV_TEXT, encoding="utf-8")
    return path


@pytest.mark.parametrize("raw", ["1", "t", "T", "TRUE", "true", "True"])
def test_parse_bool_true_spellings(raw):
    assert parse_bool(raw) is True


@pytest.mark.parametrize("raw", ["0", "f", "F", "FALSE", "false", "False"])
def test_parse_bool_false_spellings(raw):
    assert parse_bool(raw, fallback=True) is False


@pytest.mark.parametrize("raw", [None, "", "yes", "on", " true", "tRuE"])
def test_parse_bool_unrecognised_uses_fallback(raw):
    assert parse_bool(raw) is False
    assert parse_bool(raw, fallback=True) is True


def test_load_config_from_file(env_file):
    settings, cli_config = load_config(str(env_file))

    assert settings.llama_cli_path == "/opt/llama/llama-cli"
    assert settings.model_path == "/opt/models"
    assert settings.app_log_path == "/var/log/byte-vision"
    assert settings.effective_timeout() == 120
    assert settings.bind_address() == ("127.0.0.1", 9090)
    assert settings.end_point == "/mcp"

    assert cli_config.model.flag == "--model"
    assert cli_config.model.value == "/opt/models/base.gguf"
    assert cli_config.ctx_size.value == "40960"
    assert cli_config.temperature.value == "0.8"
    assert cli_config.prompt.value == "You are a helpful assistant."
    assert cli_config.prompt_enabled is True
    assert cli_config.flash_attention.enabled is True
    # "yes" is not an accepted boolean spelling.
    assert cli_config.no_conversation.enabled is False
    assert cli_config.threads.flag == ""


def test_default_env_file_in_working_directory(env_file):
    settings, cli_config = load_config()
    assert settings.llama_cli_path == "/opt/llama/llama-cli"
    assert cli_config.ctx_size.value == "40960"


def test_env_file_variable_selects_file(clean_env, monkeypatch):
    other = clean_env / "other.env"
    other.write_text("LLamaCliPath=/usr/bin/llama\nThreadsVal=6\n", encoding="utf-8")
    monkeypatch.setenv(ENV_FILE_VARIABLE, str(other))

    settings, cli_config = load_config()

    assert settings.llama_cli_path == "/usr/bin/llama"
    assert cli_config.threads.value == "6"


def test_process_environment_overrides_file(env_file, monkeypatch):
    monkeypatch.setenv("CtxSizeVal", "2048")
    monkeypatch.setenv("TimeOutSeconds", "45")

    settings, cli_config = load_config(str(env_file))

    assert cli_config.ctx_size.value == "2048"
    assert settings.timeout_seconds == 45


def test_missing_env_file_yields_unset_options(clean_env):
    settings, cli_config = load_config(str(clean_env / "absent.env"))

    assert settings.llama_cli_path == ""
    assert settings.effective_timeout() == 300
    assert settings.end_point == "/mcp-completion"
    assert cli_config.ctx_size.flag == ""
    assert cli_config.ctx_size.value == ""
    assert cli_config.flash_attention.enabled is False


def test_directory_as_env_file_is_rejected(clean_env):
    with pytest.raises(ConfigurationError):
        read_env(str(clean_env))


def test_build_llama_cli_config_from_mapping():
    cli_config = build_llama_cli_config(
        {
            "BatchCmd": "--batch-size",
            "BatchCmdVal": "512",
            "MemLockCmd": "--mlock",
            "MemLockCmdEnabled": "1",
            "RandomSeedCmd": "--seed",
            "RandomSeedCmdVal": "42",
        }
    )
    assert cli_config.batch_size.flag == "--batch-size"
    assert cli_config.batch_size.value == "512"
    assert cli_config.mlock.enabled is True
    assert cli_config.seed.value == "42"
    assert cli_config.prompt_enabled is False
