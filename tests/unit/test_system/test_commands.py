"""
Unit tests for bounded command execution.
"""

import sys

import pytest

from hostwatch.system import command_output, run_command


@pytest.mark.unit
class TestRunCommand:
    """Test cases for run_command and command_output."""

    def test_success(self):
        returncode, stdout, _ = run_command([sys.executable, "-c", "print('hello')"])

        assert returncode == 0
        assert stdout.strip() == "hello"

    def test_missing_executable(self):
        returncode, stdout, stderr = run_command(["definitely-not-a-real-binary-xyz"])

        assert returncode == -1
        assert stdout == ""
        assert "Command not found" in stderr

    def test_empty_command(self):
        assert run_command([])[0] == -1

    @pytest.mark.slow
    def test_timeout(self):
        returncode, _, stderr = run_command([sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.2)

        assert returncode == -1
        assert "timed out" in stderr

    def test_command_output_failure_is_empty(self):
        assert command_output([sys.executable, "-c", "import sys; sys.exit(3)"]) == ""

    def test_command_output_strips(self):
        assert command_output([sys.executable, "-c", "print('  gpu  ')"]) == "gpu"
