# byte_vision/schemas/__init__.py
"""
The `schemas` package defines the Pydantic models and result types used for
configuration, request arguments, the MCP envelope and execution outcomes.
"""
