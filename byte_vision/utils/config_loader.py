# byte_vision/utils/config_loader.py
"""
Loads server and llama-cli configuration from the env file and environment.

The env file (default `byte-vision-cfg.env`) uses one variable per flag token
and one per value or enabled bit, e.g. `CtxSizeCmd=--ctx-size` and
`CtxSizeVal=40960`. Variables already present in the process environment take
precedence over the file. A missing env file is not an error; every option
simply stays unset.
"""
import os
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from dotenv import dotenv_values

from byte_vision.exceptions import ConfigurationError
from byte_vision.schemas.llama_cli import LlamaCliConfig, SwitchOption, ValueOption
from byte_vision.schemas.settings import DEFAULT_ENV_FILE, AppSettings
from byte_vision.utils.logger import setup_logger

logger = setup_logger(__name__)

ENV_FILE_VARIABLE = "BYTE_VISION_ENV_FILE"

# option name -> (flag variable, value variable)
VALUE_OPTIONS: Dict[str, Tuple[str, str]] = {
    "model": ("ModelCmd", "ModelFullPathVal"),
    "threads": ("ThreadsCmd", "ThreadsVal"),
    "gpu_layers": ("GPULayersCmd", "GPULayersVal"),
    "ctx_size": ("CtxSizeCmd", "CtxSizeVal"),
    "batch_size": ("BatchCmd", "BatchCmdVal"),
    "predict": ("PredictCmd", "PredictVal"),
    "temperature": ("TemperatureCmd", "TemperatureVal"),
    "top_k": ("TopKCmd", "TopKVal"),
    "top_p": ("TopPCmd", "TopPVal"),
    "repeat_penalty": ("RepeatPenaltyCmd", "RepeatPenaltyVal"),
    "prompt": ("PromptCmd", "PromptText"),
    "prompt_file": ("PromptFileCmd", "PromptFileVal"),
    "log_file": ("ModelLogFileCmd", "ModelLogFileNameVal"),
    "prompt_cache": ("PromptCacheCmd", "PromptCacheVal"),
    "chat_template": ("ChatTemplateCmd", "ChatTemplateVal"),
    "rope_scaling": ("RopeScalingCmd", "RopeScalingCmdVal"),
    "rope_scale": ("RopeScaleCmd", "RopeScaleVal"),
    "yarn_orig_ctx": ("YarnOrigContextCmd", "YarnOrigContextCmdVal"),
    "keep": ("KeepCmd", "KeepVal"),
    "threads_batch": ("ThreadsBatchCmd", "ThreadsBatchVal"),
    "ubatch_size": ("UBatchCmd", "UBatchCmdVal"),
    "main_gpu": ("MainGPUCmd", "MainGPUVal"),
    "split_mode": ("SplitModeCmd", "SplitModeCmdVal"),
    "repeat_last_n": ("RepeatLastPenaltyCmd", "RepeatLastPenaltyVal"),
    "min_p": ("MinPCmd", "MinPVal"),
    "seed": ("RandomSeedCmd", "RandomSeedCmdVal"),
    "reverse_prompt": ("ReversePromptCmd", "ReversePromptVal"),
    "in_prefix": ("InPrefixCmd", "InPrefixVal"),
    "in_suffix": ("InSuffixCmd", "InSuffixVal"),
}

# option name -> (flag variable, enabled variable)
SWITCH_OPTIONS: Dict[str, Tuple[str, str]] = {
    "multiline_input": ("MultilineInputCmd", "MultilineInputCmdEnabled"),
    "flash_attention": ("FlashAttentionCmd", "FlashAttentionCmdEnabled"),
    "no_display_prompt": ("NoDisplayPromptCmd", "NoDisplayPromptEnabled"),
    "escape_newlines": ("EscapeNewLinesCmd", "EscapeNewLinesCmdEnabled"),
    "no_conversation": ("NoConversationCmd", "NoConversationCmdEnabled"),
    "no_context_shift": ("NoContextShiftCmd", "NoContextShiftCmdEnabled"),
    "prompt_cache_all": ("PromptCacheAllCmd", "PromptCacheAllEnabled"),
    "mlock": ("MemLockCmd", "MemLockCmdEnabled"),
    "no_mmap": ("NoMMApCmd", "NoMMApCmdEnabled"),
    "log_verbose": ("LogVerboseCmd", "LogVerboseEnabled"),
}

_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}


def parse_bool(raw: Optional[str], fallback: bool = False) -> bool:
    """Parse a boolean the way the env file format has always accepted them.

    Only the exact spellings 1/t/T/TRUE/true/True and 0/f/F/FALSE/false/False
    are recognised; anything else (including empty) returns `fallback`.
    """
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    return fallback


def resolve_env_file(env_file: Optional[str] = None) -> Path:
    return Path(env_file or os.environ.get(ENV_FILE_VARIABLE) or DEFAULT_ENV_FILE)


def read_env(env_file: Optional[str] = None) -> Dict[str, str]:
    """Merge the env file under the process environment.

    :param env_file: Path of the env file; defaults to `$BYTE_VISION_ENV_FILE`
        or `byte-vision-cfg.env` in the working directory.
    :return: A flat mapping of variable name to string value.
    :raises ConfigurationError: If the env file exists but cannot be read.
    """
    path = resolve_env_file(env_file)
    merged: Dict[str, str] = {}
    if path.is_file():
        try:
            file_values = dotenv_values(path, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Failed to read env file {path}: {e}") from e
        merged.update({k: v for k, v in file_values.items() if v is not None})
        logger.info(f"Loaded {len(merged)} settings from {path}")
    elif path.exists():
        raise ConfigurationError(f"Env file path {path} is not a regular file.")
    else:
        logger.warning(f"Env file {path} not found; using environment only.")
    merged.update(os.environ)
    return merged


def build_llama_cli_config(env: Mapping[str, str]) -> LlamaCliConfig:
    """Build the llama-cli option set from a flat variable mapping."""
    fields: Dict[str, object] = {}
    for name, (flag_key, value_key) in VALUE_OPTIONS.items():
        fields[name] = ValueOption(
            flag=env.get(flag_key, ""), value=env.get(value_key, "")
        )
    for name, (flag_key, enabled_key) in SWITCH_OPTIONS.items():
        fields[name] = SwitchOption(
            flag=env.get(flag_key, ""), enabled=parse_bool(env.get(enabled_key))
        )
    fields["prompt_enabled"] = parse_bool(env.get("PromptCmdEnabled"))
    return LlamaCliConfig(**fields)


def load_config(env_file: Optional[str] = None) -> Tuple[AppSettings, LlamaCliConfig]:
    """Load both configuration objects from the same env file.

    :param env_file: Optional explicit env file path.
    :return: `(AppSettings, LlamaCliConfig)`, both frozen.
    """
    path = resolve_env_file(env_file)
    env = read_env(str(path))
    settings = AppSettings(_env_file=path if path.is_file() else None)
    cli_config = build_llama_cli_config(env)
    logger.debug(
        "Configuration loaded",
        extra={
            "env_file": str(path),
            "llama_cli_path": settings.llama_cli_path,
            "timeout_seconds": settings.effective_timeout(),
        },
    )
    return settings, cli_config
