"""Run rule actions in a sub-shell."""

import logging
import os
import platform
import subprocess

from .errors import ShellError

logger = logging.getLogger(__name__)


def shell_command(script: str, shell: str | None = None) -> list[str]:
    """Command line that runs ``script`` with the platform's shell."""
    system = platform.system()
    if shell:
        return [shell, "-c", script]
    if system == "Windows":
        return ["powershell", "-Command", script]
    if system in ("Linux", "Darwin"):
        return [os.environ.get("SHELL") or "/bin/sh", "-c", script]
    raise ShellError(f"unsupported operating system '{system}'")


def run_script(script: str, shell: str | None = None) -> int:
    """Run a script with inherited stdio and return its exit code."""
    cmd = shell_command(script, shell)
    logger.debug("running %s", cmd[:-1])
    try:
        result = subprocess.run(cmd, check=False)
    except OSError as e:
        raise ShellError(f"unable to start shell '{cmd[0]}': {e}") from e
    return result.returncode
