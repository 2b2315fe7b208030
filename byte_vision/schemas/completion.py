# byte_vision/schemas/completion.py
"""
Pydantic schemas for the `generate_completion` tool: its input arguments and
the MCP tool response envelope.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class CompletionArguments(BaseModel):
    """
    Per-request overrides for a completion.

    Only `prompt` is required. Omitted fields are None; a zero or empty value
    is treated exactly like an omitted one, so the configured default applies
    (a caller cannot request e.g. `top_k=0` through this path).
    """

    prompt: str = Field("", description="The prompt text to generate completion for")

    # Core model & performance
    model: Optional[str] = Field(None, description="Model path (overrides default)")
    threads: Optional[int] = Field(None, description="CPU threads for generation")
    gpu_layers: Optional[int] = Field(None, description="GPU acceleration layers")
    ctx_size: Optional[int] = Field(None, description="Context window size")
    batch_size: Optional[int] = Field(None, description="Batch processing size")

    # Generation control
    predict: Optional[int] = Field(None, description="Number of tokens to generate")
    temperature: Optional[float] = Field(
        None, description="Creativity/randomness control"
    )
    top_k: Optional[int] = Field(None, description="Top-K sampling")
    top_p: Optional[float] = Field(None, description="Top-P (nucleus) sampling")
    repeat_penalty: Optional[float] = Field(None, description="Repetition penalty")

    # Input/output
    prompt_file: Optional[str] = Field(None, description="Prompt from file")
    log_file: Optional[str] = Field(None, description="Output logging")


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResponse(BaseModel):
    """MCP `tools/call` result. Tool-level errors are reported as text content."""

    content: List[TextContent] = Field(default_factory=list)
    isError: bool = False

    @classmethod
    def text(cls, text: str, *, is_error: bool = False) -> "ToolResponse":
        return cls(content=[TextContent(text=text)], isError=is_error)
