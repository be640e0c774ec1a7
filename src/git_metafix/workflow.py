"""
The identity rewrite workflow.

Strictly sequential: validate the repository, collect and validate the
request, inspect, rewrite, reconcile. Each step either completes or raises a
MetafixError; nothing is mutated before the final confirmation.

Running two instances against the same repository at the same time is not
supported and may corrupt its state.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .collector import collect_request
from .config import Config
from .display import WorkflowDisplay
from .errors import NoMatchingCommitsError, UserCancelledError
from .inspector import inspect
from .models import PreflightReport, RewriteOutcome, RewriteRequest
from .prompting import Prompter
from .reconciler import Reconciler
from .repository import GitRepository
from .strategies import RewriteStrategy, run_rewrite, select_strategy
from .utils.exception_logger import ExceptionLogger
from .validation import (
    confirm_clean_worktree,
    ensure_has_commits,
    resolve_repository,
    validate_request,
)

logger = logging.getLogger(__name__)


def _dirty_tree_consequence(strategy: RewriteStrategy) -> str:
    tool = f"git {strategy.kind.value}"
    if strategy.discards_uncommitted_changes:
        return f"{tool} would discard them."
    return f"{tool} refuses to run until they are committed or stashed."


@dataclass
class PreparedRewrite:
    """Everything known just before the rewrite is confirmed."""

    repo: GitRepository
    request: RewriteRequest
    strategy: RewriteStrategy
    report: PreflightReport


class IdentityRewriteWorkflow:
    """Rewrites author/committer identity across a repository's history."""

    def __init__(
        self,
        config: Config,
        prompter: Prompter,
        display: Optional[WorkflowDisplay] = None,
        strategy_preference: Optional[str] = None,
    ):
        self.config = config
        self.prompter = prompter
        self.display = display or WorkflowDisplay()
        self.strategy_preference = strategy_preference or config.strategy

    def prepare(self, seed: RewriteRequest, dry_run: bool = False) -> PreparedRewrite:
        """Validate, collect and inspect without changing history.

        Raises:
            PathNotFoundError, NotARepositoryError, EmptyRepositoryError,
            DirtyWorktreeError, UserCancelledError, InvalidInputError,
            InvalidEmailFormatError, NoMatchingCommitsError,
            RewriteToolFailedError
        """
        repo = resolve_repository(seed.repository_path, self.config.timeouts)
        ExceptionLogger.initialize(repo.git_dir())
        self.display.info(f"Repository: {repo.path}")

        ensure_has_commits(repo)

        strategy = select_strategy(self.strategy_preference)

        self.display.section("Repository status check")
        if dry_run:
            if repo.is_dirty():
                self.display.warning(
                    "You have uncommitted changes in your working directory!",
                    _dirty_tree_consequence(strategy),
                )
        else:
            confirm_clean_worktree(repo, self.prompter, self.display, strategy)

        request = validate_request(collect_request(seed, self.prompter))

        self.display.info("Checking remote status and tags...")
        report = inspect(repo, request, self.config, strategy)
        self._show_report(request, strategy, report)

        if report.counts.is_empty:
            raise NoMatchingCommitsError("No commits found to modify. Exiting.")

        return PreparedRewrite(
            repo=repo, request=request, strategy=strategy, report=report
        )

    def _show_report(
        self,
        request: RewriteRequest,
        strategy: RewriteStrategy,
        report: PreflightReport,
    ) -> None:
        snapshot = report.snapshot
        if snapshot.remotes:
            self.display.remotes_table(snapshot.remotes)
        if snapshot.tags:
            self.display.tags_table(f"{len(snapshot.tags)} tags", snapshot.tags)
        for message, detail in report.warnings:
            self.display.warning(message, detail)

        self.display.console.print()
        self.display.request_summary(request)
        self.display.match_counts(request, report.counts)
        self.display.info(f"Rewrite tool: git {strategy.kind.value}")

    def preview(self, seed: RewriteRequest) -> PreparedRewrite:
        """Dry run: report what a rewrite would touch."""
        prepared = self.prepare(seed, dry_run=True)
        counts = prepared.report.counts
        self.display.success(
            f"A rewrite would affect {counts.email_matches} commits by email "
            f"and {counts.name_matches} by name; nothing was changed."
        )
        return prepared

    def run(self, seed: RewriteRequest, push: Optional[bool] = None) -> RewriteOutcome:
        """Run the whole workflow.

        Args:
            seed: identity values and repository path from flags/environment
            push: True/False to decide the push question up front, None to ask

        Returns:
            RewriteOutcome of the successful rewrite
        """
        self.display.title("Git Commit Metadata Fix")
        self.display.danger("WARNING: This rewrites Git history and changes commit hashes!")

        prepared = self.prepare(seed)

        self.display.console.print()
        if not self.prompter.confirm_risky("This will rewrite Git history. Continue?"):
            raise UserCancelledError("Operation cancelled.")

        self.display.section("Starting email/name replacement")
        if prepared.strategy.removes_remotes and prepared.report.snapshot.remotes:
            self.display.info(
                f"git {prepared.strategy.kind.value} removes remotes; "
                "they will be restored afterwards."
            )
        outcome = run_rewrite(prepared.repo, prepared.strategy, prepared.request)
        logger.info(
            "Rewrote %d commits with %s",
            outcome.commits_rewritten,
            outcome.strategy_used.value,
        )
        self.display.outcome(outcome)

        Reconciler(
            prepared.repo,
            prepared.report.snapshot,
            self.prompter,
            self.display,
            self.config,
        ).run(push=push)

        return outcome
