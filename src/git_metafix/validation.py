"""Validation of the rewrite request and of the target repository."""

import logging
import re
from pathlib import Path
from typing import Optional, TYPE_CHECKING

from .config import TimeoutsConfig
from .errors import (
    DirtyWorktreeError,
    EmptyRepositoryError,
    GitCommandError,
    InvalidEmailFormatError,
    InvalidInputError,
    NotARepositoryError,
    PathNotFoundError,
    UserCancelledError,
)
from .models import RewriteRequest
from .prompting import Prompter
from .repository import GitRepository
from .utils.git_runner import is_git_repository

if TYPE_CHECKING:
    from .display import WorkflowDisplay
    from .strategies import RewriteStrategy

logger = logging.getLogger(__name__)

# local-part@domain.tld, top-level label of two or more letters
EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")


def is_valid_email(value: str) -> bool:
    return EMAIL_PATTERN.fullmatch(value) is not None


def validate_email(field: str, value: str) -> str:
    """Return ``value`` if it is a syntactically valid email address.

    Raises:
        InvalidEmailFormatError: naming ``field`` when it is not
    """
    if not is_valid_email(value):
        raise InvalidEmailFormatError(field, value)
    return value


def check_pairing(request: RewriteRequest) -> None:
    """Every old value needs its new value and vice versa.

    Raises:
        InvalidInputError: for an unpaired field, or when neither an old
            email nor an old name is given
    """
    pairs = (
        ("OLD_EMAIL", request.old_email, "NEW_EMAIL", request.new_email),
        ("OLD_NAME", request.old_name, "NEW_NAME", request.new_name),
    )
    for old_label, old_value, new_label, new_value in pairs:
        if old_value and not new_value:
            raise InvalidInputError(
                f"{new_label} must be provided when {old_label} is specified"
            )
        if new_value and not old_value:
            raise InvalidInputError(
                f"{old_label} must be provided when {new_label} is specified"
            )

    if not request.old_email and not request.old_name:
        raise InvalidInputError("Must specify either OLD_EMAIL or OLD_NAME to change")


def validate_request(request: RewriteRequest) -> RewriteRequest:
    """Full request validation: pairing first, then email syntax."""
    check_pairing(request)
    if request.old_email:
        validate_email("old email", request.old_email)
    if request.new_email:
        validate_email("new email", request.new_email)
    return request


def resolve_repository(
    path: Optional[Path], timeouts: Optional[TimeoutsConfig] = None
) -> GitRepository:
    """
    Locate the repository to operate on.

    Args:
        path: Repository path, or None for the current directory
        timeouts: Timeouts applied to git commands on the repository

    Returns:
        GitRepository rooted at the working tree's top level

    Raises:
        PathNotFoundError: if ``path`` does not exist or is not a directory
        NotARepositoryError: if ``path`` is not inside a git working tree
    """
    target = (path or Path.cwd()).expanduser()
    if not target.is_dir():
        raise PathNotFoundError(f"Directory does not exist: {target}")

    if not is_git_repository(target):
        raise NotARepositoryError(f"Not a git repository: {target}")

    try:
        top_level = GitRepository(target, timeouts).top_level()
    except GitCommandError as e:
        # Bare repositories have a git dir but no working tree
        raise NotARepositoryError(
            f"Not a git working tree: {target} ({e.stderr.strip() or 'no top level'})"
        ) from e

    logger.debug("Resolved repository %s -> %s", target, top_level)
    return GitRepository(top_level, timeouts)


def ensure_has_commits(repo: GitRepository) -> None:
    if not repo.has_commits():
        raise EmptyRepositoryError(
            "No commits found in this repository. Nothing to rewrite."
        )


def confirm_clean_worktree(
    repo: GitRepository,
    prompter: Prompter,
    display: "WorkflowDisplay",
    strategy: "RewriteStrategy",
) -> None:
    """
    Check the working tree before ``strategy`` rewrites history.

    git filter-branch refuses to run on a dirty tree, so that is an error up
    front. git filter-repo runs anyway and resets the tree to the rewritten
    HEAD, so the user has to agree to lose the uncommitted changes.

    Raises:
        DirtyWorktreeError: if the tree is dirty and the tool cannot run on it
        UserCancelledError: if the user declines to discard the changes
    """
    if not repo.is_dirty():
        return

    tool = f"git {strategy.kind.value}"
    display.warning("You have uncommitted changes in your working directory!")
    display.file_list("Uncommitted files:", repo.status_porcelain())

    if not strategy.discards_uncommitted_changes:
        raise DirtyWorktreeError(
            f"{tool} cannot rewrite a working tree with uncommitted changes. "
            "Commit or stash them first."
        )

    display.warning(
        f"{tool} will discard these uncommitted changes.",
        "Commit or stash them first to keep them.",
    )
    if not prompter.confirm_risky("Discard the uncommitted changes and continue?"):
        raise UserCancelledError(
            "Operation cancelled. Please commit or stash your changes first."
        )
