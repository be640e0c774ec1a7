"""Rewrite via git filter-repo email/name callbacks (substring replacement)."""

import logging
from typing import List

from ..errors import GitCommandError, GitTimeoutError, RewriteToolFailedError
from ..models import RewriteRequest, StrategyKind
from ..repository import GitRepository
from ..utils.git_runner import find_git_tool
from .base import RewriteStrategy

logger = logging.getLogger(__name__)


def replace_callback(variable: str, old: str, new: str) -> str:
    """Callback body replacing ``old`` with ``new`` inside ``variable``.

    Values are embedded as bytes literals, so quotes or backslashes in them
    cannot change the callback's code.
    """
    return (
        f"return {variable}.replace("
        f"{old.encode('utf-8')!r}, {new.encode('utf-8')!r})"
    )


class FilterRepoStrategy(RewriteStrategy):
    """Single git filter-repo pass over every ref.

    filter-repo rewrites tag objects itself, and it removes the ``origin``
    remote so that rewritten history is not pushed by accident.
    """

    kind = StrategyKind.FILTER_REPO
    substring_semantics = True
    discards_uncommitted_changes = True

    @staticmethod
    def is_available() -> bool:
        return find_git_tool("filter-repo") is not None

    @property
    def removes_remotes(self) -> bool:
        return True

    def build_command(self, request: RewriteRequest) -> List[str]:
        # --force: the repository is not a fresh clone
        cmd = ["filter-repo", "--force"]
        if request.wants_email:
            cmd += [
                "--email-callback",
                replace_callback("email", request.old_email, request.new_email),
            ]
        if request.wants_name:
            cmd += [
                "--name-callback",
                replace_callback("name", request.old_name, request.new_name),
            ]
        return cmd

    def rewrite(self, repo: GitRepository, request: RewriteRequest) -> None:
        cmd = self.build_command(request)
        logger.info("Rewriting history with git filter-repo in %s", repo.path)
        try:
            repo.run_rewrite_tool(*cmd)
        except GitCommandError as e:
            raise RewriteToolFailedError(
                "git filter-repo failed", returncode=e.returncode, stderr=e.stderr
            ) from e
        except GitTimeoutError as e:
            raise RewriteToolFailedError(
                f"git filter-repo did not finish within {e.timeout}s"
            ) from e
