"""History rewrite strategies and the engine that runs them.

Selection is a single availability probe: git filter-repo when it is on
PATH, git filter-branch otherwise. Both rewrite every branch and tag.
"""

import logging

from ..errors import RewriteToolFailedError
from ..models import RewriteOutcome, RewriteRequest
from ..repository import GitRepository
from .base import RewriteStrategy
from .filter_branch import FilterBranchStrategy
from .filter_repo import FilterRepoStrategy

logger = logging.getLogger(__name__)

__all__ = [
    "RewriteStrategy",
    "FilterRepoStrategy",
    "FilterBranchStrategy",
    "select_strategy",
    "run_rewrite",
]


def select_strategy(preference: str = "auto") -> RewriteStrategy:
    """
    Pick the rewrite strategy.

    Args:
        preference: "auto", "filter-repo" or "filter-branch"

    Raises:
        RewriteToolFailedError: if filter-repo is forced but not installed
        ValueError: for an unknown preference
    """
    if preference == "filter-branch":
        return FilterBranchStrategy()

    if preference == "filter-repo":
        if not FilterRepoStrategy.is_available():
            raise RewriteToolFailedError(
                "git filter-repo was requested but is not installed "
                "(pip install git-filter-repo)"
            )
        return FilterRepoStrategy()

    if preference != "auto":
        raise ValueError(f"Unknown rewrite strategy: {preference}")

    if FilterRepoStrategy.is_available():
        return FilterRepoStrategy()

    logger.debug("git-filter-repo not found on PATH, falling back to filter-branch")
    return FilterBranchStrategy()


def run_rewrite(
    repo: GitRepository, strategy: RewriteStrategy, request: RewriteRequest
) -> RewriteOutcome:
    """Run ``strategy`` and measure what changed.

    ``commits_rewritten`` counts commits reachable from a branch or tag before
    the rewrite that no longer are afterwards; ``tags_recreated`` lists tags
    whose object id changed.
    """
    commits_before = repo.reachable_commits()
    tags_before = {tag.name: tag.object_id for tag in repo.list_tags()}

    strategy.rewrite(repo, request)

    commits_after = repo.reachable_commits()
    tags_after = {tag.name: tag.object_id for tag in repo.list_tags()}

    recreated = [
        name
        for name, object_id in tags_before.items()
        if name in tags_after and tags_after[name] != object_id
    ]
    missing = [name for name in tags_before if name not in tags_after]
    if missing:
        logger.warning("Tags missing after rewrite: %s", ", ".join(missing))

    return RewriteOutcome(
        strategy_used=strategy.kind,
        commits_rewritten=len(commits_before - commits_after),
        tags_recreated=recreated,
    )
