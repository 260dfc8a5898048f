"""
Command-line interface for the hostwatch package.
"""

from .main import main_cli

__all__ = [
    "main_cli",
]
