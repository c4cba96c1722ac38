"""Async subprocess utilities.

Provides non-blocking subprocess execution for command-backed tasks, so a
running command never stalls the event loop that drives other tasks.

This module offers two functions:
    - run_command: Execute commands with list arguments (no shell)
    - run_shell_command: Execute shell command strings (supports pipes, etc.)

Example:
    >>> from depgate.utils.async_subprocess import run_command
    >>> stdout, stderr, code = await run_command("git", "status", cwd="/repo")
    >>> if code == 0:
    ...     print(stdout)
"""

import asyncio
import subprocess
from pathlib import Path


async def _communicate(
    process: asyncio.subprocess.Process,
    timeout: float | None,
) -> tuple[str, str]:
    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        process.kill()
        await process.wait()
        raise

    stdout = (stdout_bytes or b"").decode("utf-8", errors="replace")
    stderr = (stderr_bytes or b"").decode("utf-8", errors="replace")
    return stdout, stderr


async def run_command(
    *args: str,
    cwd: Path | str | None = None,
    check: bool = True,
    timeout: float | None = None,
) -> tuple[str, str, int]:
    """Run a command asynchronously without shell interpolation.

    Args:
        *args: Command and arguments as separate strings
        cwd: Working directory for command execution
        check: If True, raise CalledProcessError on a non-zero exit code
        timeout: Maximum seconds to wait. The process is killed if exceeded.

    Returns:
        Tuple of (stdout, stderr, return_code)

    Raises:
        subprocess.CalledProcessError: If check=True and the command fails
        TimeoutError: If timeout is exceeded
        FileNotFoundError: If the executable is not found
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await _communicate(process, timeout)

    if check and process.returncode != 0:
        raise subprocess.CalledProcessError(process.returncode, args, stdout, stderr)

    return stdout, stderr, process.returncode or 0


async def run_shell_command(
    command: str,
    *,
    cwd: Path | str | None = None,
    check: bool = True,
    timeout: float | None = None,
) -> tuple[str, str, int]:
    """Run a shell command asynchronously.

    Same as run_command but the string is passed to the system shell, so
    pipes, redirects and variable expansion work.

    Warning:
        Quote any interpolated values to avoid command injection.
    """
    process = await asyncio.create_subprocess_shell(
        command,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await _communicate(process, timeout)

    if check and process.returncode != 0:
        raise subprocess.CalledProcessError(process.returncode, command, stdout, stderr)

    return stdout, stderr, process.returncode or 0
