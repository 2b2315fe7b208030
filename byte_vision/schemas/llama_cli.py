# byte_vision/schemas/llama_cli.py
"""
Pydantic schemas for the statically configured llama-cli options.

Every option is a pair of a flag token and its configured value (or enabled
bit). Flag tokens come from configuration as well, so the same logical option
can be mapped onto a different command-line switch without code changes.
"""
from pydantic import BaseModel, ConfigDict, Field


class ValueOption(BaseModel):
    """A flag that takes a value, e.g. `--ctx-size 40960`.

    The value is kept as the raw configured string; numeric options are
    validated by the argument resolver, not here.
    """

    model_config = ConfigDict(frozen=True)

    flag: str = Field("", description="Command-line switch, e.g. '--ctx-size'.")
    value: str = Field("", description="Configured default value, verbatim.")


class SwitchOption(BaseModel):
    """A flag without a value, e.g. `--flash-attn`."""

    model_config = ConfigDict(frozen=True)

    flag: str = Field("", description="Command-line switch, e.g. '--flash-attn'.")
    enabled: bool = Field(False, description="Whether the switch is emitted.")


class LlamaCliConfig(BaseModel):
    """The full set of configured llama-cli options.

    Built once at startup and shared read-only across requests.
    """

    model_config = ConfigDict(frozen=True)

    # Core model & performance
    model: ValueOption = Field(default_factory=ValueOption)
    threads: ValueOption = Field(default_factory=ValueOption)
    gpu_layers: ValueOption = Field(default_factory=ValueOption)
    ctx_size: ValueOption = Field(default_factory=ValueOption)
    batch_size: ValueOption = Field(default_factory=ValueOption)

    # Generation control
    predict: ValueOption = Field(default_factory=ValueOption)
    temperature: ValueOption = Field(default_factory=ValueOption)
    top_k: ValueOption = Field(default_factory=ValueOption)
    top_p: ValueOption = Field(default_factory=ValueOption)
    repeat_penalty: ValueOption = Field(default_factory=ValueOption)

    # Prompt input. `prompt.value` is the configured default prompt text; it
    # is never emitted once a request supplies its own prompt.
    prompt: ValueOption = Field(default_factory=ValueOption)
    prompt_enabled: bool = False
    prompt_file: ValueOption = Field(default_factory=ValueOption)

    # Model-side logging
    log_file: ValueOption = Field(default_factory=ValueOption)

    # Static-only switches, emitted in this order after the per-request options
    multiline_input: SwitchOption = Field(default_factory=SwitchOption)
    flash_attention: SwitchOption = Field(default_factory=SwitchOption)
    prompt_cache: ValueOption = Field(default_factory=ValueOption)
    no_display_prompt: SwitchOption = Field(default_factory=SwitchOption)
    escape_newlines: SwitchOption = Field(default_factory=SwitchOption)
    no_conversation: SwitchOption = Field(default_factory=SwitchOption)
    no_context_shift: SwitchOption = Field(default_factory=SwitchOption)

    # Extended static-only options
    chat_template: ValueOption = Field(default_factory=ValueOption)
    rope_scaling: ValueOption = Field(default_factory=ValueOption)
    rope_scale: ValueOption = Field(default_factory=ValueOption)
    yarn_orig_ctx: ValueOption = Field(default_factory=ValueOption)
    keep: ValueOption = Field(default_factory=ValueOption)
    threads_batch: ValueOption = Field(default_factory=ValueOption)
    ubatch_size: ValueOption = Field(default_factory=ValueOption)
    main_gpu: ValueOption = Field(default_factory=ValueOption)
    split_mode: ValueOption = Field(default_factory=ValueOption)
    repeat_last_n: ValueOption = Field(default_factory=ValueOption)
    min_p: ValueOption = Field(default_factory=ValueOption)
    seed: ValueOption = Field(default_factory=ValueOption)
    reverse_prompt: ValueOption = Field(default_factory=ValueOption)
    in_prefix: ValueOption = Field(default_factory=ValueOption)
    in_suffix: ValueOption = Field(default_factory=ValueOption)
    prompt_cache_all: SwitchOption = Field(default_factory=SwitchOption)
    mlock: SwitchOption = Field(default_factory=SwitchOption)
    no_mmap: SwitchOption = Field(default_factory=SwitchOption)
    log_verbose: SwitchOption = Field(default_factory=SwitchOption)
