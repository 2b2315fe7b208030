from .completion import CompletionService

__all__ = ["CompletionService"]
