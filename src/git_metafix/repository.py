"""
Typed access to one git repository through the git command line.

Provides the queries the rewrite workflow needs (tags, remotes, upstream,
identity scans, dirtiness) and the few mutations outside the rewrite tool
itself (remote restoration, backup ref deletion, push). Uses
run_git_command() from git_runner for all git operations.
"""

import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .config import TimeoutsConfig
from .models import RemoteRef, TagRef
from .utils.git_runner import run_git_command

logger = logging.getLogger(__name__)

# Field separator for --format strings; cannot occur in identity fields
_SEP = "\x1f"


class GitRepository:
    """A git working tree rooted at ``path``."""

    def __init__(self, path: Path, timeouts: Optional[TimeoutsConfig] = None):
        self.path = path
        self.timeouts = timeouts or TimeoutsConfig()

    def git(
        self,
        *args: str,
        check: bool = True,
        timeout: Optional[float] = None,
        env: Optional[Dict[str, str]] = None,
    ):
        """Run ``git <args>`` in this repository."""
        return run_git_command(
            ["git", *args],
            cwd=self.path,
            check=check,
            timeout=timeout if timeout is not None else self.timeouts.git_query,
            env=env,
        )

    def _lines(self, *args: str) -> List[str]:
        result = self.git(*args)
        return [line for line in result.stdout.splitlines() if line.strip()]

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def top_level(self) -> Path:
        return Path(self.git("rev-parse", "--show-toplevel").stdout.strip())

    def git_dir(self) -> Path:
        git_dir = Path(self.git("rev-parse", "--git-dir").stdout.strip())
        if not git_dir.is_absolute():
            git_dir = self.path / git_dir
        return git_dir

    def has_commits(self) -> bool:
        result = self.git("rev-parse", "--verify", "--quiet", "HEAD", check=False)
        return result.returncode == 0

    def current_branch(self) -> str:
        """Current branch name, or ``HEAD`` when detached."""
        return self.git("rev-parse", "--abbrev-ref", "HEAD").stdout.strip()

    def upstream(self) -> Optional[str]:
        """Upstream of the current branch (e.g. ``origin/main``), if any."""
        result = self.git(
            "rev-parse",
            "--abbrev-ref",
            "--symbolic-full-name",
            "@{u}",
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def resolve(self, rev: str) -> Optional[str]:
        result = self.git("rev-parse", "--verify", "--quiet", rev, check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    # ------------------------------------------------------------------
    # Working tree
    # ------------------------------------------------------------------

    def status_porcelain(self) -> List[str]:
        """Uncommitted changes, one ``git status --porcelain`` line each."""
        result = self.git("status", "--porcelain")
        return [line for line in result.stdout.splitlines() if line.strip()]

    def is_dirty(self) -> bool:
        # Tracked changes only, untracked files survive a rewrite untouched
        result = self.git("diff-index", "--quiet", "HEAD", "--", check=False)
        return result.returncode != 0

    # ------------------------------------------------------------------
    # Refs
    # ------------------------------------------------------------------

    def list_tags(self) -> List[TagRef]:
        """All tags, in refname order, with the object id each resolves to."""
        tags = []
        for line in self._lines(
            "for-each-ref",
            f"--format=%(refname:short){_SEP}%(objectname)",
            "refs/tags",
        ):
            name, object_id = line.split(_SEP, 1)
            tags.append(TagRef(name=name, object_id=object_id))
        return tags

    def list_refs(self, prefix: str) -> List[str]:
        return self._lines("for-each-ref", "--format=%(refname)", prefix)

    def delete_ref(self, ref: str) -> None:
        self.git("update-ref", "-d", ref)

    def reachable_commits(self) -> Set[str]:
        """Ids of every commit reachable from a local branch or tag."""
        return set(self._lines("rev-list", "--branches", "--tags"))

    def count_commits(self, rev: str = "HEAD") -> int:
        return int(self.git("rev-list", "--count", rev).stdout.strip())

    def count_ahead(self, upstream: str, branch: str) -> Optional[int]:
        """Commits on ``branch`` not on ``upstream``; None if either is missing."""
        result = self.git(
            "rev-list", "--count", f"{upstream}..{branch}", check=False
        )
        if result.returncode != 0:
            return None
        return int(result.stdout.strip())

    # ------------------------------------------------------------------
    # Identities
    # ------------------------------------------------------------------

    def iter_identities(self) -> Iterator[Tuple[str, str, str, str]]:
        """Yield (author name, author email, committer name, committer email)
        for every commit reachable from any ref."""
        for line in self._lines(
            "log", "--all", f"--format=%an{_SEP}%ae{_SEP}%cn{_SEP}%ce"
        ):
            fields = line.split(_SEP)
            if len(fields) != 4:
                logger.debug("Skipping malformed identity line: %r", line)
                continue
            yield fields[0], fields[1], fields[2], fields[3]

    # ------------------------------------------------------------------
    # Remotes
    # ------------------------------------------------------------------

    def list_remotes(self) -> List[RemoteRef]:
        """Configured remotes in ``git remote -v`` order."""
        fetch_urls: Dict[str, str] = {}
        push_urls: Dict[str, str] = {}
        order: List[str] = []
        for line in self._lines("remote", "-v"):
            name, rest = line.split("\t", 1)
            url, _, direction = rest.rpartition(" ")
            if not url:
                url, direction = rest, "(fetch)"
            if name not in order:
                order.append(name)
            if direction == "(push)":
                push_urls[name] = url
            else:
                fetch_urls[name] = url
        return [
            RemoteRef(
                name=name,
                fetch_url=fetch_urls.get(name, push_urls.get(name, "")),
                push_url=push_urls.get(name, fetch_urls.get(name, "")),
            )
            for name in order
        ]

    def add_remote(self, name: str, url: str) -> None:
        self.git("remote", "add", name, url)

    def set_remote_url(self, name: str, url: str) -> None:
        self.git("remote", "set-url", name, url)

    def fetch(self, remote: str) -> None:
        # Never block on a credential prompt during inspection
        self.git(
            "fetch",
            remote,
            timeout=self.timeouts.fetch,
            env={"GIT_TERMINAL_PROMPT": "0"},
        )

    def ls_remote_tags(self, remote: str) -> Dict[str, str]:
        """Tag name -> object id as currently published on ``remote``."""
        result = self.git(
            "ls-remote",
            "--tags",
            remote,
            timeout=self.timeouts.fetch,
            env={"GIT_TERMINAL_PROMPT": "0"},
        )
        tags = {}
        for line in result.stdout.splitlines():
            if "\t" not in line:
                continue
            object_id, ref = line.split("\t", 1)
            if ref.endswith("^{}") or not ref.startswith("refs/tags/"):
                continue
            tags[ref[len("refs/tags/") :]] = object_id
        return tags

    def run_rewrite_tool(self, *args: str, env: Optional[Dict[str, str]] = None):
        """Run a history rewrite command with the (possibly unbounded) rewrite timeout."""
        return run_git_command(
            ["git", *args], cwd=self.path, timeout=self.timeouts.rewrite, env=env
        )

    def push(self, *args: str) -> None:
        """Run ``git push <args>``; raises GitCommandError / GitTimeoutError."""
        self.git("push", *args, timeout=self.timeouts.push)

