"""
Post-flight reconciliation.

After the rewrite has succeeded, restores collaborator-visible metadata
(remotes), reports tags and commit counts, and optionally pushes. Every step
here is best-effort: failures are reported as warnings, because the
hard-to-reverse part already completed.
"""

import logging
from typing import List, Optional

from .config import Config
from .display import WorkflowDisplay
from .errors import GitCommandError, GitTimeoutError, PushFailedError
from .models import RemoteRef, RepositorySnapshot, TagRef, pick_remote
from .prompting import Prompter
from .repository import GitRepository

logger = logging.getLogger(__name__)


class Reconciler:
    """Restores remotes, reports the new state and handles the push."""

    def __init__(
        self,
        repo: GitRepository,
        snapshot: RepositorySnapshot,
        prompter: Prompter,
        display: WorkflowDisplay,
        config: Config,
    ):
        self.repo = repo
        self.snapshot = snapshot
        self.prompter = prompter
        self.display = display
        self.config = config

    def run(self, push: Optional[bool] = None) -> None:
        """Run every post-flight step.

        Args:
            push: True/False to decide the push question up front, None to ask
        """
        self.verify_tags()
        self.restore_remotes()
        if not self.snapshot.remotes:
            self.offer_remote()
        self.report_commits()

        if self._should_push(push):
            self.push_all()
        else:
            self.manual_instructions()

    # ------------------------------------------------------------------
    # Tags and remotes
    # ------------------------------------------------------------------

    def verify_tags(self) -> List[TagRef]:
        self.display.section("Verifying tags after rewrite")
        try:
            tags = self.repo.list_tags()
        except (GitCommandError, GitTimeoutError) as e:
            self.display.warning(f"Could not list tags: {e}")
            return []

        if not tags:
            self.display.info("No tags to update.")
            return tags

        self.display.tags_table(f"{len(tags)} tags after rewrite", tags)
        current = {tag.name for tag in tags}
        missing = [tag.name for tag in self.snapshot.tags if tag.name not in current]
        if missing:
            self.display.warning("Tags missing after rewrite: " + ", ".join(missing))
        else:
            self.display.success("All tag names preserved.")
        return tags

    def restore_remotes(self) -> List[str]:
        """Re-add remotes the rewrite tool removed; returns restored names."""
        if not self.snapshot.remotes:
            return []

        self.display.section("Restoring remote configuration")
        try:
            current = {remote.name: remote for remote in self.repo.list_remotes()}
        except (GitCommandError, GitTimeoutError) as e:
            self.display.warning(f"Could not list remotes: {e}")
            return []

        restored = []
        for remote in self.snapshot.remotes:
            existing = current.get(remote.name)
            try:
                if existing is None:
                    self.repo.add_remote(remote.name, remote.url)
                    restored.append(remote.name)
                elif existing.url != remote.url:
                    self.repo.set_remote_url(remote.name, remote.url)
                    restored.append(remote.name)
            except (GitCommandError, GitTimeoutError) as e:
                self.display.warning(
                    f"Could not restore remote '{remote.name}': {e}",
                    f"Restore it manually: git remote add {remote.name} {remote.url}",
                )

        if restored:
            self.display.success("Remotes restored: " + ", ".join(restored))
        else:
            self.display.info("Remotes unchanged.")
        return restored

    def offer_remote(self) -> Optional[RemoteRef]:
        if not self.prompter.interactive or self.prompter.assume_yes:
            return None
        if not self.prompter.confirm(
            "No remotes were configured before. Would you like to add one now?"
        ):
            return None

        name = self.prompter.ask("Enter remote name", default="origin") or "origin"
        url = self.prompter.ask(
            "Enter repository URL (e.g., https://github.com/username/repo.git)"
        )
        if not url:
            self.display.info("No URL provided, skipping remote setup.")
            return None

        try:
            self.repo.add_remote(name, url)
        except (GitCommandError, GitTimeoutError) as e:
            self.display.warning(f"Could not add remote '{name}': {e}")
            return None
        self.display.success(f"Added remote '{name}': {url}")
        return RemoteRef(name=name, fetch_url=url, push_url=url)

    def report_commits(self) -> Optional[int]:
        self.display.section("Post-change repository status")
        try:
            total = self.repo.count_commits("HEAD")
        except (GitCommandError, GitTimeoutError) as e:
            self.display.warning(f"Could not count commits: {e}")
            return None

        self.display.danger(
            f"IMPORTANT: All {total} commits now have different hashes and "
            "need to be force-pushed!"
        )
        self.display.info(
            "Use git push --force-with-lease, never a plain push: it refuses to "
            "overwrite the remote if someone else pushed in the meantime."
        )
        self.display.next_steps(
            [
                "Verify the changes: git log --pretty=format:'%h %an <%ae> %s'",
                "Push changes to remote: git push --force-with-lease",
                "Notify collaborators to re-clone or rebase their work",
            ]
        )
        return total

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    def _should_push(self, push: Optional[bool]) -> bool:
        if push is not None:
            return push
        if not self.prompter.interactive or self.prompter.assume_yes:
            return False
        return self.prompter.confirm("Do you want to push the changes to remote now?")

    def _push_target(self, remotes: List[RemoteRef]) -> RemoteRef:
        """The upstream's remote when the branch tracked one, else the default."""
        upstream = self.snapshot.upstream
        if upstream:
            for remote in remotes:
                if upstream.startswith(remote.name + "/"):
                    return remote
        return pick_remote(remotes, self.config.default_remote)

    def branch_push_args(self, remote: RemoteRef) -> List[str]:
        branch = self.snapshot.current_branch
        upstream = self.snapshot.upstream
        if upstream and upstream.startswith(remote.name + "/"):
            remote_branch = upstream[len(remote.name) + 1 :]
            expected = self.snapshot.upstream_object_id
            if expected:
                lease = f"--force-with-lease=refs/heads/{remote_branch}:{expected}"
            else:
                lease = "--force-with-lease"
            return [lease, "--set-upstream", remote.name, f"{branch}:{remote_branch}"]
        # Nothing upstream to diverge from
        return ["--set-upstream", remote.name, branch]

    def tag_push_args(self, remote: RemoteRef, tags: List[TagRef]) -> List[str]:
        published = self.snapshot.remote_tags
        if published is None or remote.name != self.snapshot.inspected_remote:
            return ["--force-with-lease", remote.name, "--tags"]

        args = []
        refspecs = []
        for tag in tags:
            # Empty expectation: the tag must not exist on the remote yet
            expected = published.get(tag.name, "")
            args.append(f"--force-with-lease=refs/tags/{tag.name}:{expected}")
            refspecs.append(f"refs/tags/{tag.name}:refs/tags/{tag.name}")
        return args + [remote.name] + refspecs

    def _remediation(self, remote: RemoteRef) -> List[str]:
        return [
            "Set up authentication (SSH keys, personal access tokens)",
            "Check if the remote URL is correct: git remote -v",
            f"Try pushing manually: git push --force-with-lease {remote.name}",
            f"Push tags separately: git push --force-with-lease {remote.name} --tags",
        ]

    def push_branch(self, remote: RemoteRef) -> None:
        if self.snapshot.current_branch == "HEAD":
            raise PushFailedError(
                "HEAD is detached; check out a branch before pushing.",
                self._remediation(remote),
            )
        args = self.branch_push_args(remote)
        self.display.info("Executing: git push " + " ".join(args))
        try:
            self.repo.push(*args)
        except (GitCommandError, GitTimeoutError) as e:
            raise PushFailedError(
                f"Failed to push changes to '{remote.name}': {e}",
                self._remediation(remote),
            ) from e

    def push_tags(self, remote: RemoteRef, tags: List[TagRef]) -> None:
        args = self.tag_push_args(remote, tags)
        try:
            self.repo.push(*args)
        except (GitCommandError, GitTimeoutError) as e:
            raise PushFailedError(
                f"Failed to push tags to '{remote.name}': {e}",
                [
                    "Push them manually: "
                    f"git push --force-with-lease {remote.name} --tags"
                ],
            ) from e

    def push_all(self) -> bool:
        """Push the branch and then the tags; returns True if all succeeded."""
        try:
            remotes = self.repo.list_remotes()
        except (GitCommandError, GitTimeoutError) as e:
            self.display.warning(f"Could not list remotes: {e}")
            return False
        if not remotes:
            self.display.warning("No remotes configured in this repository.")
            self.display.info("To push changes, you need to add a remote first:")
            self.display.command("git remote add origin <your-repository-url>")
            self.display.command("git push --force-with-lease origin")
            return False

        self.display.remotes_table(remotes)
        remote = self._push_target(remotes)
        self.display.info(f"Using remote: {remote.name}")

        try:
            self.push_branch(remote)
        except PushFailedError as e:
            logger.warning("Branch push failed: %s", e)
            self.display.push_failure(e)
            return False
        self.display.success(f"Successfully pushed commits to remote '{remote.name}'!")

        try:
            tags = self.repo.list_tags()
        except (GitCommandError, GitTimeoutError) as e:
            self.display.warning(
                f"Could not list tags: {e}",
                f"Push them manually: git push --force-with-lease {remote.name} --tags",
            )
            return False
        if not tags:
            return True
        self.display.info("Pushing updated tags...")
        try:
            self.push_tags(remote, tags)
        except PushFailedError as e:
            logger.warning("Tag push failed: %s", e)
            self.display.push_failure(e)
            return False
        self.display.success(f"Successfully pushed tags to remote '{remote.name}'!")
        return True

    def manual_instructions(self) -> None:
        self.display.console.print()
        self.display.warning("Remember to push your changes when ready.")
        try:
            remotes = self.repo.list_remotes()
            has_tags = bool(self.repo.list_tags())
        except (GitCommandError, GitTimeoutError) as e:
            # Fall back to what was there before the rewrite
            logger.warning("Could not read remotes/tags: %s", e)
            remotes = self.snapshot.remotes
            has_tags = bool(self.snapshot.tags)
        branch = self.snapshot.current_branch

        if not remotes:
            self.display.info("No remotes configured. Add one first:")
            self.display.command("git remote add origin <your-repository-url>")
            self.display.command(f"git push --set-upstream origin {branch}")
            if has_tags:
                self.display.command("git push origin --tags")
            return

        remote = self._push_target(remotes)
        self.display.info("Run:")
        self.display.command("git push " + " ".join(self.branch_push_args(remote)))
        if has_tags:
            self.display.command(f"git push --force-with-lease {remote.name} --tags")
