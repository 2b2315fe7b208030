# byte_vision/schemas/settings.py
"""
Application-level settings using pydantic-settings.

These values control the server itself rather than llama-cli: where the
executable lives, where to log, which port and endpoint to serve on, and how
long a completion may run. They are read from the process environment and the
`byte-vision-cfg.env` file, using the same variable names as the llama-cli
options so a single env file configures everything.
"""
from typing import Optional, Tuple

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from byte_vision.exceptions import ConfigurationError
from byte_vision.utils.llama_args import parse_int

DEFAULT_ENV_FILE = "byte-vision-cfg.env"
DEFAULT_TIMEOUT_SECONDS = 300


class AppSettings(BaseSettings):
    """
    Server configuration.

    :ivar llama_cli_path: Full path to the llama-cli executable.
    :ivar model_path: Directory where model files are stored.
    :ivar app_log_path: Directory for the application log file.
    :ivar app_log_file_name: Name of the application log file.
    :ivar prompt_cache_path: Directory for prompt cache files.
    :ivar http_port: Listen address, e.g. ":8080" or "127.0.0.1:8080".
    :ivar end_point: HTTP path of the MCP endpoint.
    :ivar timeout_seconds: Per-request completion timeout in whole seconds.
    """

    model_config = SettingsConfigDict(
        env_file=DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    llama_cli_path: str = Field(
        "", validation_alias=AliasChoices("LLamaCliPath", "llama_cli_path")
    )
    model_path: str = Field("", validation_alias=AliasChoices("ModelPath", "model_path"))
    app_log_path: str = Field(
        "logs", validation_alias=AliasChoices("AppLogPath", "app_log_path")
    )
    app_log_file_name: str = Field(
        "byte-vision-mcp.log",
        validation_alias=AliasChoices("AppLogFileName", "app_log_file_name"),
    )
    prompt_cache_path: str = Field(
        "", validation_alias=AliasChoices("PromptCachePath", "prompt_cache_path")
    )
    http_port: str = Field(
        ":8080", validation_alias=AliasChoices("HttpPort", "http_port")
    )
    end_point: str = Field(
        "/mcp-completion", validation_alias=AliasChoices("EndPoint", "end_point")
    )
    timeout_seconds: int = Field(
        DEFAULT_TIMEOUT_SECONDS,
        validation_alias=AliasChoices("TimeOutSeconds", "timeout_seconds"),
    )

    @field_validator("timeout_seconds", mode="before")
    @classmethod
    def _lenient_timeout(cls, v):
        # An unparsable value falls back to the default instead of failing startup.
        if isinstance(v, str):
            parsed = parse_int(v)
            return DEFAULT_TIMEOUT_SECONDS if parsed is None else parsed
        return v

    @field_validator("end_point")
    @classmethod
    def _leading_slash(cls, v: str) -> str:
        v = v.strip() or "/mcp-completion"
        return v if v.startswith("/") else f"/{v}"

    def effective_timeout(self) -> int:
        """The request timeout, with non-positive values replaced by 300."""
        if self.timeout_seconds <= 0:
            return DEFAULT_TIMEOUT_SECONDS
        return self.timeout_seconds

    def bind_address(self) -> Tuple[str, int]:
        """Split `http_port` into (host, port); a bare ':8080' binds all interfaces.

        :raises ConfigurationError: If the port is not a number in 0-65535.
        """
        raw = self.http_port.strip() or ":8080"
        host: Optional[str]
        if ":" in raw:
            host, _, port = raw.rpartition(":")
        else:
            host, port = "", raw
        parsed = parse_int(port)
        if parsed is None or not 0 <= parsed <= 65535:
            raise ConfigurationError(f"Invalid HttpPort {self.http_port!r}.")
        return (host or "0.0.0.0", parsed)
