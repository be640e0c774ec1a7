"""Value types for one identity rewrite invocation.

Nothing here persists: every object is created for a single run and thrown
away when the command exits.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple


class StrategyKind(str, Enum):
    """History rewrite tool used for a run."""

    FILTER_REPO = "filter-repo"
    FILTER_BRANCH = "filter-branch"


@dataclass
class RewriteRequest:
    """Old/new identity values plus the repository to operate on.

    Empty strings are normalised to None so that "set" always means
    "non-empty".
    """

    repository_path: Optional[Path] = None
    old_email: Optional[str] = None
    new_email: Optional[str] = None
    old_name: Optional[str] = None
    new_name: Optional[str] = None

    def __post_init__(self) -> None:
        for attr in ("old_email", "new_email", "old_name", "new_name"):
            value = getattr(self, attr)
            if value is not None:
                value = value.strip()
            setattr(self, attr, value or None)

    @property
    def wants_email(self) -> bool:
        return bool(self.old_email and self.new_email)

    @property
    def wants_name(self) -> bool:
        return bool(self.old_name and self.new_name)

    @property
    def is_empty(self) -> bool:
        return not any((self.old_email, self.new_email, self.old_name, self.new_name))


@dataclass(frozen=True)
class TagRef:
    """A tag name and the object id it resolves to."""

    name: str
    object_id: str

    @property
    def short_id(self) -> str:
        return self.object_id[:7]


@dataclass(frozen=True)
class RemoteRef:
    """A configured remote with its fetch and push URLs."""

    name: str
    fetch_url: str
    push_url: str

    @property
    def url(self) -> str:
        # Restoration treats fetch/push as one URL
        return self.fetch_url or self.push_url


@dataclass
class RepositorySnapshot:
    """Repository state captured before the rewrite."""

    top_level_path: Path
    has_commits: bool
    current_branch: str
    tags: List[TagRef] = field(default_factory=list)
    remotes: List[RemoteRef] = field(default_factory=list)
    ahead_count: Optional[int] = None
    upstream: Optional[str] = None  # e.g. "origin/main"
    upstream_object_id: Optional[str] = None
    fetch_failed: bool = False
    inspected_remote: Optional[str] = None
    # Tags published on inspected_remote at inspection time; None if unknown
    remote_tags: Optional[Dict[str, str]] = None


@dataclass
class MatchCounts:
    """How many historical commits carry the old identity values."""

    email_matches: int = 0
    name_matches: int = 0
    partial_email_matches: int = 0
    partial_name_matches: int = 0

    @property
    def is_empty(self) -> bool:
        return self.email_matches == 0 and self.name_matches == 0


@dataclass
class RewriteOutcome:
    """Result of a successful rewrite pass."""

    strategy_used: StrategyKind
    commits_rewritten: int
    tags_recreated: List[str] = field(default_factory=list)


@dataclass
class PreflightReport:
    """Everything the inspector learned, plus the warnings it raised."""

    snapshot: RepositorySnapshot
    counts: MatchCounts
    warnings: List[Tuple[str, str]] = field(default_factory=list)

    def warn(self, message: str, detail: str = "") -> None:
        self.warnings.append((message, detail))


def pick_remote(remotes: List[RemoteRef], preferred: str = "origin") -> Optional[RemoteRef]:
    """``preferred`` when configured, otherwise the first remote."""
    for remote in remotes:
        if remote.name == preferred:
            return remote
    return remotes[0] if remotes else None
