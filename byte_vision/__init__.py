"""
Byte Vision MCP core package.

An MCP server that answers text-completion requests by running a local
llama-cli binary with per-request argument overrides.
"""

__version__ = "1.0.0"

__all__ = [
    "executors",
    "schemas",
    "services",
    "utils",
    "web",
]
