"""Tests for post-rewrite reconciliation: remotes, push arguments, failures."""

from pathlib import Path
from unittest.mock import Mock

from git_metafix.config import Config
from git_metafix.errors import GitCommandError, GitTimeoutError
from git_metafix.models import RemoteRef, RepositorySnapshot, TagRef
from git_metafix.reconciler import Reconciler

ORIGIN = RemoteRef("origin", "git@example.com:me/repo.git", "git@example.com:me/repo.git")
MIRROR = RemoteRef("mirror", "https://mirror.example/repo.git", "https://mirror.example/repo.git")


def make_snapshot(**overrides) -> RepositorySnapshot:
    values = dict(
        top_level_path=Path("/repo"),
        has_commits=True,
        current_branch="main",
        tags=[TagRef("v1.0", "a" * 40)],
        remotes=[ORIGIN, MIRROR],
    )
    values.update(overrides)
    return RepositorySnapshot(**values)


class TestRestoreRemotes:
    def setup_method(self):
        self.repo = Mock()
        self.prompter = Mock(interactive=True, assume_yes=False)

    def test_missing_remotes_are_re_added(self, display):
        # filter-repo removed origin, mirror survived
        self.repo.list_remotes.return_value = [MIRROR]
        reconciler = Reconciler(self.repo, make_snapshot(), self.prompter, display, Config())

        restored = reconciler.restore_remotes()

        assert restored == ["origin"]
        self.repo.add_remote.assert_called_once_with("origin", ORIGIN.url)
        assert "Remotes restored: origin" in display.output()

    def test_changed_url_is_reset(self, display):
        self.repo.list_remotes.return_value = [
            RemoteRef("origin", "file:///elsewhere", "file:///elsewhere"),
            MIRROR,
        ]
        reconciler = Reconciler(self.repo, make_snapshot(), self.prompter, display, Config())

        assert reconciler.restore_remotes() == ["origin"]
        self.repo.set_remote_url.assert_called_once_with("origin", ORIGIN.url)

    def test_nothing_to_restore_without_prior_remotes(self, display):
        reconciler = Reconciler(
            self.repo, make_snapshot(remotes=[]), self.prompter, display, Config()
        )

        assert reconciler.restore_remotes() == []
        self.repo.list_remotes.assert_not_called()

    def test_restore_failure_is_a_warning(self, display):
        self.repo.list_remotes.return_value = []
        self.repo.add_remote.side_effect = GitCommandError(["git", "remote"], 3, "locked")
        reconciler = Reconciler(self.repo, make_snapshot(), self.prompter, display, Config())

        assert reconciler.restore_remotes() == []
        assert "Could not restore remote 'origin'" in display.output()


class TestPushArguments:
    def test_tracked_branch_uses_explicit_lease(self, display):
        snapshot = make_snapshot(upstream="origin/main", upstream_object_id="b" * 40)
        reconciler = Reconciler(Mock(), snapshot, Mock(), display, Config())

        args = reconciler.branch_push_args(ORIGIN)

        assert args == [
            f"--force-with-lease=refs/heads/main:{'b' * 40}",
            "--set-upstream",
            "origin",
            "main:main",
        ]

    def test_untracked_branch_uses_plain_push(self, display):
        reconciler = Reconciler(Mock(), make_snapshot(), Mock(), display, Config())

        assert reconciler.branch_push_args(ORIGIN) == ["--set-upstream", "origin", "main"]

    def test_tag_leases_use_published_values(self, display):
        snapshot = make_snapshot(
            inspected_remote="origin", remote_tags={"v1.0": "c" * 40}
        )
        reconciler = Reconciler(Mock(), snapshot, Mock(), display, Config())
        tags = [TagRef("v1.0", "d" * 40), TagRef("v2.0", "e" * 40)]

        args = reconciler.tag_push_args(ORIGIN, tags)

        assert f"--force-with-lease=refs/tags/v1.0:{'c' * 40}" in args
        # Not published yet: must still be absent on the remote
        assert "--force-with-lease=refs/tags/v2.0:" in args
        assert "refs/tags/v2.0:refs/tags/v2.0" in args

    def test_tag_push_without_inspection_data(self, display):
        reconciler = Reconciler(Mock(), make_snapshot(), Mock(), display, Config())

        assert reconciler.tag_push_args(ORIGIN, []) == ["--force-with-lease", "origin", "--tags"]

    def test_push_target_follows_upstream_remote(self, display):
        snapshot = make_snapshot(upstream="mirror/main")
        reconciler = Reconciler(Mock(), snapshot, Mock(), display, Config())

        assert reconciler._push_target([ORIGIN, MIRROR]).name == "mirror"


class TestPush:
    def setup_method(self):
        self.repo = Mock()
        self.repo.list_remotes.return_value = [ORIGIN]
        self.repo.list_tags.return_value = [TagRef("v1.0", "f" * 40)]

    def test_push_failure_is_reported_not_raised(self, display):
        self.repo.push.side_effect = GitCommandError(["git", "push"], 1, "denied")
        reconciler = Reconciler(self.repo, make_snapshot(), Mock(), display, Config())

        assert reconciler.push_all() is False

        output = display.output()
        assert "Failed to push changes to 'origin'" in output
        assert "Set up authentication" in output

    def test_branch_then_tags(self, display):
        reconciler = Reconciler(self.repo, make_snapshot(), Mock(), display, Config())

        assert reconciler.push_all() is True
        assert self.repo.push.call_count == 2
        assert self.repo.push.call_args_list[1].args[-1] == "--tags"

    def test_detached_head_cannot_push(self, display):
        reconciler = Reconciler(
            self.repo, make_snapshot(current_branch="HEAD"), Mock(), display, Config()
        )

        assert reconciler.push_all() is False
        self.repo.push.assert_not_called()

    def test_no_push_without_prompting_when_non_interactive(self, display):
        prompter = Mock(interactive=False, assume_yes=False)
        reconciler = Reconciler(self.repo, make_snapshot(), prompter, display, Config())

        assert reconciler._should_push(None) is False
        prompter.confirm.assert_not_called()

    def test_manual_instructions_show_lease_command(self, display):
        snapshot = make_snapshot(upstream="origin/main", upstream_object_id="b" * 40)
        reconciler = Reconciler(self.repo, snapshot, Mock(), display, Config())

        reconciler.manual_instructions()

        output = display.output()
        assert "git push --force-with-lease=refs/heads/main:" in output
        assert "git push --force-with-lease origin --tags" in output


class TestOfferRemote:
    def test_adds_remote_from_answers(self, display, scripted_prompter):
        repo = Mock()
        prompter = scripted_prompter(
            answers=["", "https://example.com/me/repo.git"], confirms=[True]
        )
        reconciler = Reconciler(repo, make_snapshot(remotes=[]), prompter, display, Config())

        remote = reconciler.offer_remote()

        # Empty answer falls back to the default name
        assert remote.name == "origin"
        repo.add_remote.assert_called_once_with("origin", "https://example.com/me/repo.git")

    def test_skipped_with_assume_yes(self, display, scripted_prompter):
        reconciler = Reconciler(
            Mock(), make_snapshot(remotes=[]), scripted_prompter(assume_yes=True), display, Config()
        )
        assert reconciler.offer_remote() is None


class TestBestEffortAfterRewrite:
    def setup_method(self):
        self.timeout = GitTimeoutError(["git", "for-each-ref"], 30)
        self.repo = Mock()

    def test_commit_count_timeout_is_a_warning(self, display):
        self.repo.count_commits.side_effect = self.timeout
        reconciler = Reconciler(self.repo, make_snapshot(), Mock(), display, Config())

        assert reconciler.report_commits() is None
        assert "Could not count commits" in display.output()

    def test_push_all_survives_remote_listing_failure(self, display):
        self.repo.list_remotes.side_effect = self.timeout
        reconciler = Reconciler(self.repo, make_snapshot(), Mock(), display, Config())

        assert reconciler.push_all() is False
        self.repo.push.assert_not_called()

    def test_push_all_survives_tag_listing_failure(self, display):
        self.repo.list_remotes.return_value = [ORIGIN]
        self.repo.list_tags.side_effect = GitCommandError(["git", "for-each-ref"], 128, "broken")
        reconciler = Reconciler(self.repo, make_snapshot(), Mock(), display, Config())

        assert reconciler.push_all() is False
        assert self.repo.push.call_count == 1
        assert "git push --force-with-lease origin --tags" in display.output()

    def test_manual_instructions_fall_back_to_snapshot(self, display):
        self.repo.list_remotes.side_effect = self.timeout
        reconciler = Reconciler(self.repo, make_snapshot(), Mock(), display, Config())

        reconciler.manual_instructions()

        output = display.output()
        assert "git push --set-upstream origin main" in output
        assert "git push --force-with-lease origin --tags" in output

    def test_run_completes_when_every_query_fails(self, display):
        for method in ("list_tags", "list_remotes", "count_commits"):
            getattr(self.repo, method).side_effect = self.timeout
        prompter = Mock(interactive=False, assume_yes=False)
        reconciler = Reconciler(self.repo, make_snapshot(), prompter, display, Config())

        reconciler.run(push=None)

        output = display.output()
        assert "Could not list tags" in output
        assert "Could not list remotes" in output
        assert "Remember to push your changes when ready." in output
