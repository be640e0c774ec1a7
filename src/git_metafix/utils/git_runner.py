"""
Centralized git command runner.

Every git subprocess started by git-metafix goes through ``run_git_command``
so that dubious-ownership handling, timeouts, debug logging and failure
logging behave the same everywhere.
"""

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from ..errors import GitCommandError, GitTimeoutError
from .exception_logger import ExceptionLogger

logger = logging.getLogger(__name__)


def get_git_environment(
    project_dir: Path, extra_env: Optional[Dict[str, str]] = None
) -> Dict[str, str]:
    """
    Get environment variables for git commands to handle dubious ownership.

    Repositories owned by another user (sudo, containers, CI checkouts) are
    rejected by git unless listed in safe.directory. The entry is injected
    at index 0 and any GIT_CONFIG_* entries from the caller are shifted up.

    Args:
        project_dir: Path to the repository working tree
        extra_env: Additional variables to set for this invocation

    Returns:
        Dictionary of environment variables for git commands
    """
    env = os.environ.copy()

    env["GIT_CONFIG_KEY_0"] = "safe.directory"
    env["GIT_CONFIG_VALUE_0"] = str(project_dir.resolve())

    config_count = 1
    for key in os.environ:
        if key.startswith("GIT_CONFIG_KEY_"):
            idx = key.replace("GIT_CONFIG_KEY_", "")
            if idx.isdigit():
                new_idx = int(idx) + 1
                env[f"GIT_CONFIG_KEY_{new_idx}"] = os.environ[key]
                if f"GIT_CONFIG_VALUE_{idx}" in os.environ:
                    env[f"GIT_CONFIG_VALUE_{new_idx}"] = os.environ[
                        f"GIT_CONFIG_VALUE_{idx}"
                    ]
                config_count = max(config_count, new_idx + 1)

    env["GIT_CONFIG_COUNT"] = str(config_count)

    if extra_env:
        env.update(extra_env)

    return env


def run_git_command(
    cmd: List[str],
    cwd: Path,
    check: bool = True,
    capture_output: bool = True,
    timeout: Optional[float] = None,
    env: Optional[Dict[str, str]] = None,
) -> subprocess.CompletedProcess:
    """
    Run a git command with proper environment handling.

    Args:
        cmd: Git command as a list (e.g., ["git", "status"])
        cwd: Working directory for the command
        check: Whether to raise GitCommandError on non-zero exit
        capture_output: Whether to capture stdout and stderr
        timeout: Optional timeout in seconds
        env: Extra environment variables for this command

    Returns:
        CompletedProcess instance with the command result

    Raises:
        GitCommandError: If check=True and the command fails
        GitTimeoutError: If the timeout is exceeded
    """
    if not cmd or cmd[0] != "git":
        raise ValueError("Command must start with 'git'")

    logger.debug("Running %s (cwd=%s)", " ".join(cmd), cwd)

    try:
        return subprocess.run(
            cmd,
            cwd=cwd,
            check=check,
            capture_output=capture_output,
            text=True,
            timeout=timeout,
            env=get_git_environment(cwd, env),
        )
    except subprocess.CalledProcessError as e:
        _log_git_failure(e, cmd, cwd)
        raise GitCommandError.from_called_process_error(e) from e
    except subprocess.TimeoutExpired as e:
        _log_git_timeout(e, cmd, cwd, timeout)
        raise GitTimeoutError(cmd, timeout) from e


def _log_git_failure(
    exception: subprocess.CalledProcessError, cmd: List[str], cwd: Path
) -> None:
    """Log a git command failure with full context."""
    logger.debug(
        "git command failed (%s): %s", exception.returncode, " ".join(cmd)
    )
    exception_logger = ExceptionLogger.get_instance()
    if exception_logger:
        exception_logger.log_exception(
            exception,
            context={
                "git_command": " ".join(cmd),
                "cwd": str(cwd),
                "returncode": exception.returncode,
                "stdout": getattr(exception, "stdout", ""),
                "stderr": getattr(exception, "stderr", ""),
            },
        )


def _log_git_timeout(
    exception: subprocess.TimeoutExpired,
    cmd: List[str],
    cwd: Path,
    timeout: Optional[float],
) -> None:
    """Log a git command timeout with full context."""
    logger.debug("git command timed out after %ss: %s", timeout, " ".join(cmd))
    exception_logger = ExceptionLogger.get_instance()
    if exception_logger:
        exception_logger.log_exception(
            exception,
            context={"git_command": " ".join(cmd), "cwd": str(cwd), "timeout": timeout},
        )


def is_git_repository(project_dir: Path) -> bool:
    """
    Check if a directory is inside a git repository.

    Args:
        project_dir: Path to check

    Returns:
        True if the directory is a git repository, False otherwise
    """
    try:
        run_git_command(["git", "rev-parse", "--git-dir"], cwd=project_dir)
        return True
    except (GitCommandError, FileNotFoundError):
        return False


def find_git_tool(tool: str) -> Optional[str]:
    """Return the path of a ``git-<tool>`` executable on PATH, if any."""
    return shutil.which(f"git-{tool}")
