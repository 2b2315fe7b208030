# byte_vision/utils/__init__.py
"""
Helper modules supporting the server: configuration loading, logging,
request contexts and llama-cli argument resolution.
"""
