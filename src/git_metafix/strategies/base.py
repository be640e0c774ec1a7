"""Common contract for history rewrite strategies."""

from abc import ABC, abstractmethod
from typing import List

from ..models import RewriteRequest, StrategyKind
from ..repository import GitRepository


class RewriteStrategy(ABC):
    """Rewrites author/committer identity across all branches and tags.

    Implementations wrap one external tool. ``rewrite`` either completes or
    raises RewriteToolFailedError; there is no rollback beyond what the tool
    itself guarantees.
    """

    kind: StrategyKind
    # True: old value replaced wherever it occurs inside a field.
    # False: only fields exactly equal to the old value are replaced.
    substring_semantics: bool
    # True: runs on a dirty tree and discards uncommitted changes.
    # False: refuses to run on a dirty tree.
    discards_uncommitted_changes: bool

    @staticmethod
    @abstractmethod
    def is_available() -> bool:
        """Whether the underlying tool can be run."""

    @abstractmethod
    def build_command(self, request: RewriteRequest) -> List[str]:
        """Arguments passed to ``git``."""

    @abstractmethod
    def rewrite(self, repo: GitRepository, request: RewriteRequest) -> None:
        """Rewrite the history of ``repo``."""

    @property
    def removes_remotes(self) -> bool:
        return False
