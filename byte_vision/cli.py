# byte_vision/cli.py
"""
Command-line interface for the Byte Vision MCP server.

Besides `serve`, the CLI can run a single completion locally and show the
exact llama-cli argument vector a request would produce, which is the
quickest way to check an env file.
"""
import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text
from typing_extensions import Annotated

from byte_vision.exceptions import ByteVisionError
from byte_vision.schemas.completion import CompletionArguments
from byte_vision.services.completion import CompletionService
from byte_vision.utils.config_loader import load_config
from byte_vision.utils.llama_args import resolve
from byte_vision.utils.logger import setup_logger

app = typer.Typer(
    name="byte-vision",
    help="MCP server for text completion through a local llama-cli.",
    add_completion=False,
)
console = Console()
logger = setup_logger(__name__)

EnvFile = Annotated[
    Optional[str],
    typer.Option("--env-file", "-e", help="Env file (default: byte-vision-cfg.env)."),
]
Model = Annotated[Optional[str], typer.Option(help="Model path override.")]
Threads = Annotated[Optional[int], typer.Option(help="CPU threads.")]
GpuLayers = Annotated[Optional[int], typer.Option(help="GPU layers to offload.")]
CtxSize = Annotated[Optional[int], typer.Option(help="Context window size.")]
BatchSize = Annotated[Optional[int], typer.Option(help="Batch size.")]
Predict = Annotated[Optional[int], typer.Option(help="Tokens to generate.")]
Temperature = Annotated[Optional[float], typer.Option(help="Sampling temperature.")]
TopK = Annotated[Optional[int], typer.Option(help="Top-K sampling.")]
TopP = Annotated[Optional[float], typer.Option(help="Top-P sampling.")]
RepeatPenalty = Annotated[Optional[float], typer.Option(help="Repetition penalty.")]
PromptFile = Annotated[Optional[str], typer.Option(help="Read the prompt from a file.")]
LogFile = Annotated[Optional[str], typer.Option(help="llama-cli log file.")]


def _load(env_file: Optional[str]):
    try:
        return load_config(env_file)
    except ByteVisionError as e:
        console.print(f"Configuration error: {e}", style="bold red", markup=False)
        raise typer.Exit(code=2)


@app.command()
def serve(env_file: EnvFile = None) -> None:
    """
    Runs the MCP HTTP server until interrupted.
    """
    from byte_vision.serve import run_server

    try:
        run_server(env_file)
    except ByteVisionError as e:
        console.print(f"Cannot start server: {e}", style="bold red", markup=False)
        raise typer.Exit(code=2)


@app.command()
def complete(
    prompt: Annotated[str, typer.Argument(help="Prompt text.")],
    env_file: EnvFile = None,
    model: Model = None,
    threads: Threads = None,
    gpu_layers: GpuLayers = None,
    ctx_size: CtxSize = None,
    batch_size: BatchSize = None,
    predict: Predict = None,
    temperature: Temperature = None,
    top_k: TopK = None,
    top_p: TopP = None,
    repeat_penalty: RepeatPenalty = None,
    prompt_file: PromptFile = None,
    log_file: LogFile = None,
) -> None:
    """
    Runs a single completion with llama-cli and prints the output.
    """
    settings, cli_config = _load(env_file)
    arguments = CompletionArguments(
        prompt=prompt,
        model=model,
        threads=threads,
        gpu_layers=gpu_layers,
        ctx_size=ctx_size,
        batch_size=batch_size,
        predict=predict,
        temperature=temperature,
        top_k=top_k,
        top_p=top_p,
        repeat_penalty=repeat_penalty,
        prompt_file=prompt_file,
        log_file=log_file,
    )
    service = CompletionService(settings, cli_config)
    response = asyncio.run(service.generate(arguments))
    text = "\n".join(item.text for item in response.content)
    if response.isError:
        console.print(text, style="bold red", markup=False)
        raise typer.Exit(code=1)
    typer.echo(text)


@app.command(name="args")
def show_args(
    prompt: Annotated[str, typer.Argument(help="Prompt text.")],
    env_file: EnvFile = None,
    model: Model = None,
    threads: Threads = None,
    gpu_layers: GpuLayers = None,
    ctx_size: CtxSize = None,
    batch_size: BatchSize = None,
    predict: Predict = None,
    temperature: Temperature = None,
    top_k: TopK = None,
    top_p: TopP = None,
    repeat_penalty: RepeatPenalty = None,
    prompt_file: PromptFile = None,
    log_file: LogFile = None,
) -> None:
    """
    Shows the llama-cli command a request would run, without running it.
    """
    settings, cli_config = _load(env_file)
    arguments = CompletionArguments(
        prompt=prompt,
        model=model,
        threads=threads,
        gpu_layers=gpu_layers,
        ctx_size=ctx_size,
        batch_size=batch_size,
        predict=predict,
        temperature=temperature,
        top_k=top_k,
        top_p=top_p,
        repeat_penalty=repeat_penalty,
        prompt_file=prompt_file,
        log_file=log_file,
    )
    argv = resolve(cli_config, arguments)

    table = Table(title=f"llama-cli: {settings.llama_cli_path or '<not configured>'}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Argument", style="cyan")
    for index, token in enumerate(argv):
        table.add_row(str(index), Text(token))
    console.print(table)


@app.command(name="config")
def show_config(env_file: EnvFile = None) -> None:
    """
    Shows the loaded server settings and every configured llama-cli option.
    """
    settings, cli_config = _load(env_file)

    server_table = Table(title="Server settings")
    server_table.add_column("Setting", style="cyan")
    server_table.add_column("Value", style="magenta")
    for key, value in settings.model_dump().items():
        server_table.add_row(key, Text(str(value)))
    server_table.add_row("effective_timeout", str(settings.effective_timeout()))
    console.print(server_table)

    options_table = Table(title="llama-cli options")
    options_table.add_column("Option", style="cyan")
    options_table.add_column("Flag", style="green")
    options_table.add_column("Value / enabled", style="magenta")
    for name, option in cli_config.model_dump().items():
        if not isinstance(option, dict):
            options_table.add_row(name, "", str(option))
            continue
        setting = option.get("value", option.get("enabled"))
        if option.get("flag") or setting:
            options_table.add_row(
                name, Text(option.get("flag", "")), Text(str(setting))
            )
    console.print(options_table)
