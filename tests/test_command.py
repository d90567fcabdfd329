"""Tests for command library."""

import pytest

from flux_helm.command import Command, run
from flux_helm.exceptions import AnnotationException, CommandException


async def test_command() -> None:
    """Test stdout parsing of a command."""
    result = await run(Command(["echo", "Hello"]))
    assert result == "Hello\n"


async def test_command_stdin() -> None:
    """Test passing input to a command."""
    result = await run(Command(["sed", "s/Hello/Goodbye/"]), stdin="Hello\n")
    assert result == "Goodbye\n"


async def test_failed_command() -> None:
    """Test a failing command."""
    with pytest.raises(CommandException, match="return code 1"):
        await run(Command(["/bin/false"]))


async def test_failed_command_output() -> None:
    """Test the output of a failing command is included in the error."""
    cmd = Command(
        ["sh", "-c", "echo some-details >&2; exit 3"], exc=AnnotationException
    )
    with pytest.raises(AnnotationException, match="some-details"):
        await run(cmd)


async def test_command_timeout() -> None:
    """Test a command that does not finish in time is stopped."""
    cmd = Command(["sleep", "10"], exc=AnnotationException)
    with pytest.raises(AnnotationException, match="timed out"):
        await run(cmd, timeout=0.2)


def test_command_string() -> None:
    """Test rendering a command for debugging."""
    cmd = Command(["kubectl", "annotate", "key=some value"])
    assert str(cmd) == "kubectl annotate 'key=some value'"


async def test_failed_command_status() -> None:
    """Test the exit status and stderr of a failing command are kept."""
    cmd = Command(["sh", "-c", "echo oops >&2; exit 2"])
    with pytest.raises(CommandException) as exc_info:
        await run(cmd)
    assert exc_info.value.returncode == 2
    assert exc_info.value.stderr == "oops\n"


async def test_missing_command_status() -> None:
    """Test a command that does not exist fails with status 127."""
    with pytest.raises(CommandException) as exc_info:
        await run(Command(["command-does-not-exist-xyz"]))
    assert exc_info.value.returncode == 127
    assert "not found" in (exc_info.value.stderr or "")
