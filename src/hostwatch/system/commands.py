"""
Command execution utilities.

Host facts that psutil does not expose (CPU brand on macOS, GPU models) are
read from OS tools. Every call is bounded by a timeout and never raises.
"""

import logging
import shutil
import subprocess
from typing import Sequence, Tuple

logger = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT = 5.0


def run_command(args: Sequence[str], timeout: float = DEFAULT_COMMAND_TIMEOUT) -> Tuple[int, str, str]:
    """Execute a command and capture its output with robust error handling.

    Args:
        args: Argument vector; the first element is the executable.
        timeout: Seconds to wait before the process is killed.

    Returns:
        Tuple of (return_code, stdout_string, stderr_string).
        return_code is -1 for execution errors and timeouts.
    """
    if not args:
        return -1, "", "Error: empty command"

    executable = args[0]
    if shutil.which(executable) is None:
        logger.debug(f"Command not found: {executable}")
        return -1, "", f"Error: Command not found '{executable}'"

    logger.debug(f"Executing command: {' '.join(args)}")
    try:
        process = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
        return process.returncode, process.stdout, process.stderr
    except subprocess.TimeoutExpired:
        logger.warning(f"Command '{executable}' timed out after {timeout}s")
        return -1, "", f"Error: timed out after {timeout}s"
    except Exception as e:
        logger.error(f"Unexpected error while running '{executable}': {type(e).__name__}: {e}", exc_info=True)
        return -1, "", f"An unexpected error occurred: {e}"


def command_output(args: Sequence[str], timeout: float = DEFAULT_COMMAND_TIMEOUT) -> str:
    """Return stripped stdout of a successful command, or an empty string."""
    returncode, stdout, _ = run_command(args, timeout=timeout)
    if returncode != 0:
        return ""
    return stdout.strip()
