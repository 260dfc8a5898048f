"""
System interaction utilities.

Bounded-time command execution used to read host facts that psutil does not
cover.
"""

from .commands import command_output, run_command

__all__ = [
    "command_output",
    "run_command",
]
