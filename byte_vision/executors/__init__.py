from .llama_cli_exec import execute

__all__ = ["execute"]
