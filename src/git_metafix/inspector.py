"""
Pre-flight inspection.

Captures the repository state the reconciler needs after the rewrite
(remotes, tags, upstream), counts the commits the request matches and
collects risk warnings. Nothing here rewrites anything; the only network
access is a best-effort fetch of the primary remote.
"""

import logging
from typing import Optional

from .config import Config
from .errors import GitCommandError, GitTimeoutError
from .models import (
    MatchCounts,
    PreflightReport,
    RepositorySnapshot,
    RewriteRequest,
    pick_remote,
)
from .repository import GitRepository
from .strategies import RewriteStrategy

logger = logging.getLogger(__name__)


def take_snapshot(repo: GitRepository, config: Config) -> RepositorySnapshot:
    """Record branch, remotes, upstream and tags before the rewrite."""
    snapshot = RepositorySnapshot(
        top_level_path=repo.path,
        has_commits=repo.has_commits(),
        current_branch=repo.current_branch(),
        tags=repo.list_tags(),
        remotes=repo.list_remotes(),
    )

    remote = pick_remote(snapshot.remotes, config.default_remote)
    if remote is not None:
        snapshot.inspected_remote = remote.name
    if remote is not None and config.fetch_before_inspect:
        try:
            repo.fetch(remote.name)
        except (GitCommandError, GitTimeoutError) as e:
            logger.debug("Fetch of %s failed: %s", remote.name, e)
            snapshot.fetch_failed = True
        else:
            try:
                snapshot.remote_tags = repo.ls_remote_tags(remote.name)
            except (GitCommandError, GitTimeoutError) as e:
                logger.debug("Listing tags on %s failed: %s", remote.name, e)

    snapshot.upstream = repo.upstream()
    if snapshot.upstream:
        snapshot.upstream_object_id = repo.resolve(snapshot.upstream)

    if remote is not None and snapshot.current_branch != "HEAD":
        tracking = snapshot.upstream or f"{remote.name}/{snapshot.current_branch}"
        snapshot.ahead_count = repo.count_ahead(tracking, snapshot.current_branch)

    return snapshot


def count_matches(repo: GitRepository, request: RewriteRequest) -> MatchCounts:
    """Count commits whose author email / name equals the old values.

    Author fields that merely contain the old value are counted separately
    as partial matches.
    """
    counts = MatchCounts()
    for author_name, author_email, _committer_name, _committer_email in (
        repo.iter_identities()
    ):
        if request.wants_email:
            if author_email == request.old_email:
                counts.email_matches += 1
            elif request.old_email in author_email:
                counts.partial_email_matches += 1
        if request.wants_name:
            if author_name == request.old_name:
                counts.name_matches += 1
            elif request.old_name in author_name:
                counts.partial_name_matches += 1
    return counts


def inspect(
    repo: GitRepository,
    request: RewriteRequest,
    config: Config,
    strategy: Optional[RewriteStrategy] = None,
) -> PreflightReport:
    """Snapshot the repository, count matches and collect warnings."""
    snapshot = take_snapshot(repo, config)
    counts = count_matches(repo, request)
    report = PreflightReport(snapshot=snapshot, counts=counts)

    if not snapshot.remotes:
        report.warn("No remotes configured.")
    elif snapshot.fetch_failed:
        report.warn(
            "Could not fetch from remote (network issue or no tracking branch).",
            "Unpushed commit count may be out of date.",
        )
    if snapshot.ahead_count:
        report.warn(
            f"Your local branch is {snapshot.ahead_count} commits ahead of remote.",
            "These unpushed commits will have their metadata changed.",
        )

    if snapshot.tags:
        report.warn(
            f"Found {len(snapshot.tags)} tags: they will be recreated to point "
            "to the new commit SHAs after the rewrite.",
            "Tag names will remain the same.",
        )

    partial = counts.partial_email_matches + counts.partial_name_matches
    if partial and strategy is not None:
        if strategy.substring_semantics:
            detail = (
                f"git {strategy.kind.value} replaces substrings, "
                "so these fields will be rewritten too."
            )
        else:
            detail = (
                f"git {strategy.kind.value} only replaces exact matches, "
                "so these fields will be left unchanged."
            )
        report.warn(
            f"{partial} commits contain the old value only as part of a "
            "larger author email or name.",
            detail,
        )

    logger.debug(
        "Pre-flight: %d email matches, %d name matches, %d partial",
        counts.email_matches,
        counts.name_matches,
        partial,
    )
    return report
