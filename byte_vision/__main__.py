# byte_vision/__main__.py
"""
Allows the CLI to be started with `python -m byte_vision`.
"""
from byte_vision.cli import app

if __name__ == "__main__":
    app()
