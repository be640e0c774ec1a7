"""Tests for rewrite strategy commands and selection."""

import ast
from unittest.mock import Mock, patch

import pytest

from git_metafix.errors import GitCommandError, RewriteToolFailedError
from git_metafix.models import RewriteRequest, StrategyKind
from git_metafix.strategies import (
    FilterBranchStrategy,
    FilterRepoStrategy,
    select_strategy,
)
from git_metafix.strategies.filter_branch import build_env_filter
from git_metafix.strategies.filter_repo import replace_callback

EMAIL_REQUEST = RewriteRequest(old_email="old@co.example", new_email="new@co.example")
FULL_REQUEST = RewriteRequest(
    old_email="old@co.example",
    new_email="new@co.example",
    old_name="Old Name",
    new_name="New Name",
)


class TestFilterRepoCommand:
    def test_email_only_command(self):
        cmd = FilterRepoStrategy().build_command(EMAIL_REQUEST)

        assert cmd[:2] == ["filter-repo", "--force"]
        assert "--email-callback" in cmd
        assert "--name-callback" not in cmd

    def test_name_callback_added_when_requested(self):
        cmd = FilterRepoStrategy().build_command(FULL_REQUEST)

        callback = cmd[cmd.index("--name-callback") + 1]
        assert callback == "return name.replace(b'Old Name', b'New Name')"

    def test_callback_is_substring_replacement(self):
        body = replace_callback("email", "old@co.example", "new@co.example")
        namespace = {}
        exec(f"def callback(email):\n    {body}", namespace)

        assert namespace["callback"](b"bot+old@co.example") == b"bot+new@co.example"
        assert namespace["callback"](b"other@co.example") == b"other@co.example"

    def test_callback_cannot_be_escaped_by_quotes(self):
        body = replace_callback("name", "O'Brien\\", "x'); import os; ('")

        # Still a single return of a replace() call on two bytes literals
        tree = ast.parse(body)
        assert len(tree.body) == 1
        call = tree.body[0].value
        assert [ast.literal_eval(arg) for arg in call.args] == [
            "O'Brien\\".encode(),
            b"x'); import os; ('",
        ]

    def test_failure_raises_rewrite_tool_failed(self):
        repo = Mock()
        repo.run_rewrite_tool.side_effect = GitCommandError(
            ["git", "filter-repo"], 2, "boom"
        )

        with pytest.raises(RewriteToolFailedError) as exc_info:
            FilterRepoStrategy().rewrite(repo, EMAIL_REQUEST)

        assert exc_info.value.returncode == 2
        assert exc_info.value.stderr == "boom"


class TestFilterBranchCommand:
    def test_env_filter_uses_exact_comparisons(self):
        script = build_env_filter(EMAIL_REQUEST)

        assert 'if [ "$GIT_COMMITTER_EMAIL" = old@co.example ]; then' in script
        assert 'if [ "$GIT_AUTHOR_EMAIL" = old@co.example ]; then' in script
        assert "export GIT_AUTHOR_EMAIL=new@co.example" in script
        assert "GIT_AUTHOR_NAME" not in script

    def test_env_filter_quotes_names(self):
        script = build_env_filter(FULL_REQUEST)

        assert "export GIT_AUTHOR_NAME='New Name'" in script
        assert "\"$GIT_COMMITTER_NAME\" = 'Old Name'" in script

    def test_command_covers_all_branches_and_tags(self):
        cmd = FilterBranchStrategy().build_command(EMAIL_REQUEST)

        assert cmd[0] == "filter-branch"
        assert cmd[cmd.index("--tag-name-filter") + 1] == "cat"
        assert cmd[-3:] == ["--", "--branches", "--tags"]

    def test_backup_refs_deleted_after_rewrite(self):
        repo = Mock()
        repo.list_refs.return_value = [
            "refs/original/refs/heads/main",
            "refs/original/refs/tags/v1",
        ]

        FilterBranchStrategy().rewrite(repo, EMAIL_REQUEST)

        _, kwargs = repo.run_rewrite_tool.call_args
        assert kwargs["env"] == {"FILTER_BRANCH_SQUELCH_WARNING": "1"}
        repo.list_refs.assert_called_once_with("refs/original/")
        assert repo.delete_ref.call_count == 2

    def test_failure_keeps_backup_refs(self):
        repo = Mock()
        repo.run_rewrite_tool.side_effect = GitCommandError(["git"], 1, "dirty")

        with pytest.raises(RewriteToolFailedError):
            FilterBranchStrategy().rewrite(repo, EMAIL_REQUEST)

        repo.delete_ref.assert_not_called()


class TestSelectStrategy:
    @patch("git_metafix.strategies.filter_repo.find_git_tool", return_value="/usr/bin/git-filter-repo")
    def test_auto_prefers_filter_repo(self, _mock_find):
        assert select_strategy("auto").kind == StrategyKind.FILTER_REPO

    @patch("git_metafix.strategies.filter_repo.find_git_tool", return_value=None)
    def test_auto_falls_back_to_filter_branch(self, _mock_find):
        assert select_strategy("auto").kind == StrategyKind.FILTER_BRANCH

    @patch("git_metafix.strategies.filter_repo.find_git_tool", return_value=None)
    def test_forced_filter_repo_missing(self, _mock_find):
        with pytest.raises(RewriteToolFailedError, match="not installed"):
            select_strategy("filter-repo")

    @patch("git_metafix.strategies.filter_repo.find_git_tool", return_value="/x")
    def test_forced_filter_branch(self, _mock_find):
        assert select_strategy("filter-branch").kind == StrategyKind.FILTER_BRANCH

    def test_unknown_preference(self):
        with pytest.raises(ValueError):
            select_strategy("bfg")

    def test_semantics_flags(self):
        assert FilterRepoStrategy.substring_semantics is True
        assert FilterBranchStrategy.substring_semantics is False
        assert FilterRepoStrategy().removes_remotes
        assert not FilterBranchStrategy().removes_remotes
        assert FilterRepoStrategy.discards_uncommitted_changes is True
        assert FilterBranchStrategy.discards_uncommitted_changes is False
