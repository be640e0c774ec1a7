"""Exception taxonomy for the identity rewrite workflow.

Every error carries the process exit code the CLI should use. Some of them
(empty repository, no matching commits, user cancellation) are not failures
at all: they short-circuit the workflow and exit 0.
"""

import subprocess
from typing import List, Optional


class MetafixError(Exception):
    """Base class for all workflow errors."""

    exit_code = 1
    # Rendered as a plain notice instead of an error panel
    is_notice = False


class PathNotFoundError(MetafixError):
    """Raised when the repository path does not exist."""

    pass


class NotARepositoryError(MetafixError):
    """Raised when the path exists but is not inside a git repository."""

    pass


class ConfigError(MetafixError):
    """Raised when the configuration file cannot be loaded."""

    pass


class EmptyRepositoryError(MetafixError):
    """Raised when the repository has no commits; nothing to rewrite."""

    exit_code = 0
    is_notice = True


class InvalidInputError(MetafixError):
    """Raised for unpaired or missing old/new identity values."""

    pass


class InvalidEmailFormatError(MetafixError):
    """Raised when an email address fails syntax validation."""

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field} format: {value!r}")


class UserCancelledError(MetafixError):
    """Raised when the user declines a confirmation prompt."""

    exit_code = 0
    is_notice = True


class DirtyWorktreeError(MetafixError):
    """Raised when the selected rewrite tool cannot run on a dirty working tree."""

    pass


class NoMatchingCommitsError(MetafixError):
    """Raised when no commit carries the old email or name."""

    exit_code = 0
    is_notice = True


class RewriteToolFailedError(MetafixError):
    """Raised when git filter-repo / git filter-branch exits non-zero."""

    def __init__(
        self, message: str, returncode: Optional[int] = None, stderr: str = ""
    ):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class PushFailedError(MetafixError):
    """Raised by push helpers; the reconciler downgrades it to a warning."""

    def __init__(self, message: str, remediation: Optional[List[str]] = None):
        self.remediation = remediation or []
        super().__init__(message)


class GitCommandError(MetafixError):
    """A git invocation exited non-zero."""

    def __init__(self, cmd: List[str], returncode: int, stderr: str = ""):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(
            f"git command failed ({returncode}): {' '.join(cmd)}{detail}"
        )

    @classmethod
    def from_called_process_error(
        cls, exc: subprocess.CalledProcessError
    ) -> "GitCommandError":
        stderr = exc.stderr or ""
        if isinstance(stderr, bytes):
            stderr = stderr.decode("utf-8", errors="replace")
        return cls(list(exc.cmd), exc.returncode, stderr)


class GitTimeoutError(MetafixError):
    """A git invocation exceeded its timeout."""

    def __init__(self, cmd: List[str], timeout: Optional[float]):
        self.cmd = cmd
        self.timeout = timeout
        super().__init__(f"git command timed out after {timeout}s: {' '.join(cmd)}")
