"""Rewrite via git filter-branch --env-filter (exact-match replacement)."""

import logging
import shlex
from typing import List

from ..errors import GitCommandError, GitTimeoutError, RewriteToolFailedError
from ..models import RewriteRequest, StrategyKind
from ..repository import GitRepository
from .base import RewriteStrategy

logger = logging.getLogger(__name__)

BACKUP_REFS_PREFIX = "refs/original/"


def _exact_replace(variable: str, old: str, new: str) -> str:
    return (
        f'if [ "${variable}" = {shlex.quote(old)} ]; then\n'
        f"    export {variable}={shlex.quote(new)}\n"
        f"fi"
    )


def build_env_filter(request: RewriteRequest) -> str:
    """Shell snippet replacing committer/author fields equal to the old values."""
    clauses = []
    if request.wants_email:
        for role in ("COMMITTER", "AUTHOR"):
            clauses.append(
                _exact_replace(f"GIT_{role}_EMAIL", request.old_email, request.new_email)
            )
    if request.wants_name:
        for role in ("COMMITTER", "AUTHOR"):
            clauses.append(
                _exact_replace(f"GIT_{role}_NAME", request.old_name, request.new_name)
            )
    return "\n".join(clauses)


class FilterBranchStrategy(RewriteStrategy):
    """git filter-branch over all branches and tags.

    Tags are carried over with ``--tag-name-filter cat``. The refs/original/
    backup refs are deleted afterwards so the old history is no longer
    reachable from any ref.
    """

    kind = StrategyKind.FILTER_BRANCH
    substring_semantics = False
    discards_uncommitted_changes = False

    @staticmethod
    def is_available() -> bool:
        # Ships with git itself
        return True

    def build_command(self, request: RewriteRequest) -> List[str]:
        return [
            "filter-branch",
            "-f",
            "--env-filter",
            build_env_filter(request),
            "--tag-name-filter",
            "cat",
            "--",
            "--branches",
            "--tags",
        ]

    def rewrite(self, repo: GitRepository, request: RewriteRequest) -> None:
        cmd = self.build_command(request)
        logger.info("Rewriting history with git filter-branch in %s", repo.path)
        try:
            repo.run_rewrite_tool(*cmd, env={"FILTER_BRANCH_SQUELCH_WARNING": "1"})
        except GitCommandError as e:
            raise RewriteToolFailedError(
                "git filter-branch failed", returncode=e.returncode, stderr=e.stderr
            ) from e
        except GitTimeoutError as e:
            raise RewriteToolFailedError(
                f"git filter-branch did not finish within {e.timeout}s"
            ) from e

        self.delete_backup_refs(repo)

    @staticmethod
    def delete_backup_refs(repo: GitRepository) -> List[str]:
        refs = repo.list_refs(BACKUP_REFS_PREFIX)
        for ref in refs:
            repo.delete_ref(ref)
        logger.debug("Deleted %d backup refs", len(refs))
        return refs
