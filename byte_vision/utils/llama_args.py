# byte_vision/utils/llama_args.py
"""
Builds the llama-cli argument vector for one completion request.

`resolve()` merges the static configuration with the request's overrides.
The order of the emitted flags is fixed:

1. model, threads, GPU layers, context size, batch size
2. predict, temperature, top-k, top-p, repeat penalty
3. the prompt: a prompt file if given, else the prompt text (never both,
   and never the configured default prompt)
4. the model log file
5. configured switches: multiline input, flash attention, prompt cache,
   no-display-prompt, escape newlines, no conversation, no context shift
6. remaining configured options (chat template, RoPE/YaRN, sampling extras,
   ...) which have no per-request override

For a value option, an override that is set and non-zero wins and is
stringified here (integers in base 10, floats with two decimals). Otherwise
the configured default is used verbatim, but only if it parses as a positive
number of the option's type. A default that does not parse is treated as
absent, so `resolve()` never raises.
"""
import math
import re
from typing import List, Optional

from byte_vision.schemas.completion import CompletionArguments
from byte_vision.schemas.llama_cli import LlamaCliConfig, SwitchOption, ValueOption

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INFINITY_SPELLINGS = {"inf", "infinity"}


def parse_int(raw: str) -> Optional[int]:
    """Strict integer parse: optional sign and ASCII digits within int64 range."""
    if not _INT_RE.fullmatch(raw):
        return None
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def parse_float(raw: str) -> Optional[float]:
    """Strict float parse; surrounding whitespace and underscores are rejected.

    A finite literal too large for a double (e.g. `1e400`) is out of range and
    rejected, while an explicit `inf` spelling is accepted.
    """
    if not raw or raw != raw.strip() or "_" in raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    if math.isinf(value) and raw.lstrip("+-").lower() not in _INFINITY_SPELLINGS:
        return None
    return value


def _positive(value) -> bool:
    # NaN compares false, so it counts as unset like zero does.
    return value is not None and value > 0


def _int_option(
    args: List[str], option: ValueOption, override: Optional[int]
) -> None:
    if _positive(override):
        args.extend([option.flag, f"{override:d}"])
    elif _positive(parse_int(option.value)):
        args.extend([option.flag, option.value])


def _float_option(
    args: List[str], option: ValueOption, override: Optional[float]
) -> None:
    if _positive(override):
        args.extend([option.flag, f"{override:.2f}"])
    elif _positive(parse_float(option.value)):
        args.extend([option.flag, option.value])


def _str_option(args: List[str], option: ValueOption, override: Optional[str]) -> None:
    if override:
        args.extend([option.flag, override])
    elif option.value:
        args.extend([option.flag, option.value])


def _switch(args: List[str], option: SwitchOption) -> None:
    if option.enabled:
        args.append(option.flag)


def _extra_value(args: List[str], option: ValueOption) -> None:
    if option.flag and option.value:
        args.extend([option.flag, option.value])


def _extra_switch(args: List[str], option: SwitchOption) -> None:
    if option.flag and option.enabled:
        args.append(option.flag)


def resolve(config: LlamaCliConfig, overrides: CompletionArguments) -> List[str]:
    """Produce the ordered llama-cli argument vector for a request.

    The caller is expected to have rejected empty prompts already.

    :param config: The static llama-cli configuration.
    :type config: LlamaCliConfig
    :param overrides: The request's prompt and optional overrides.
    :type overrides: CompletionArguments
    :return: A fresh list of command-line arguments (without the executable).
    :rtype: List[str]
    """
    args: List[str] = []

    # Core model & performance
    _str_option(args, config.model, overrides.model)
    _int_option(args, config.threads, overrides.threads)
    _int_option(args, config.gpu_layers, overrides.gpu_layers)
    _int_option(args, config.ctx_size, overrides.ctx_size)
    _int_option(args, config.batch_size, overrides.batch_size)

    # Generation control
    _int_option(args, config.predict, overrides.predict)
    _float_option(args, config.temperature, overrides.temperature)
    _int_option(args, config.top_k, overrides.top_k)
    _float_option(args, config.top_p, overrides.top_p)
    _float_option(args, config.repeat_penalty, overrides.repeat_penalty)

    # Exactly one prompt source; the configured default prompt never competes.
    if overrides.prompt_file:
        args.extend([config.prompt_file.flag, overrides.prompt_file])
    elif overrides.prompt:
        args.extend([config.prompt.flag, overrides.prompt])

    _str_option(args, config.log_file, overrides.log_file)

    _switch(args, config.multiline_input)
    _switch(args, config.flash_attention)
    if config.prompt_cache.value:
        args.extend([config.prompt_cache.flag, config.prompt_cache.value])
    _switch(args, config.no_display_prompt)
    _switch(args, config.escape_newlines)
    _switch(args, config.no_conversation)
    _switch(args, config.no_context_shift)

    for option in (
        config.chat_template,
        config.rope_scaling,
        config.rope_scale,
        config.yarn_orig_ctx,
        config.keep,
        config.threads_batch,
        config.ubatch_size,
        config.main_gpu,
        config.split_mode,
        config.repeat_last_n,
        config.min_p,
        config.seed,
        config.reverse_prompt,
        config.in_prefix,
        config.in_suffix,
    ):
        _extra_value(args, option)
    for switch in (
        config.prompt_cache_all,
        config.mlock,
        config.no_mmap,
        config.log_verbose,
    ):
        _extra_switch(args, switch)

    return args
