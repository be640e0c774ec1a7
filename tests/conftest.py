"""
Shared pytest fixtures for git-metafix tests.

Provides throwaway git repositories with controlled identities, isolation
from the developer's git configuration, and scripted prompt answers.
"""

import io
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from rich.console import Console

from git_metafix.display import WorkflowDisplay
from git_metafix.prompting import Prompter
from git_metafix.utils.exception_logger import ExceptionLogger


@pytest.fixture(autouse=True)
def isolated_git_config(tmp_path_factory, monkeypatch):
    """Keep the developer's global/system git config out of the tests."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(home / ".gitconfig"))
    for var in ("OLD_EMAIL", "NEW_EMAIL", "OLD_NAME", "NEW_NAME", "REPO_PATH"):
        monkeypatch.delenv(var, raising=False)
    ExceptionLogger.reset()
    yield
    ExceptionLogger.reset()


class TestRepo:
    """A scratch repository driven through the git CLI."""

    __test__ = False

    def __init__(self, path: Path):
        self.path = path

    def git(self, *args: str, env: Optional[Dict[str, str]] = None) -> str:
        full_env = os.environ.copy()
        full_env.update(env or {})
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            check=True,
            capture_output=True,
            text=True,
            env=full_env,
        )
        return result.stdout.strip()

    def commit(
        self,
        message: str,
        author_name: str = "Test User",
        author_email: str = "test@example.com",
        committer_name: Optional[str] = None,
        committer_email: Optional[str] = None,
    ) -> str:
        """Create a commit with the given identities and return its id."""
        target = self.path / "file.txt"
        with open(target, "a") as f:
            f.write(message + "\n")
        self.git("add", "file.txt")
        self.git(
            "commit",
            "-m",
            message,
            env={
                "GIT_AUTHOR_NAME": author_name,
                "GIT_AUTHOR_EMAIL": author_email,
                "GIT_COMMITTER_NAME": committer_name or author_name,
                "GIT_COMMITTER_EMAIL": committer_email or author_email,
            },
        )
        return self.git("rev-parse", "HEAD")

    def author_emails(self) -> List[str]:
        return self.git("log", "--all", "--format=%ae").splitlines()

    def committer_emails(self) -> List[str]:
        return self.git("log", "--all", "--format=%ce").splitlines()

    def author_names(self) -> List[str]:
        return self.git("log", "--all", "--format=%an").splitlines()

    def tags(self) -> Dict[str, str]:
        output = self.git("for-each-ref", "--format=%(refname:short) %(objectname)", "refs/tags")
        return dict(line.split(" ", 1) for line in output.splitlines() if line)

    def refs(self, prefix: str) -> List[str]:
        return self.git("for-each-ref", "--format=%(refname)", prefix).splitlines()


@pytest.fixture
def make_repo(tmp_path):
    """Factory creating an initialized (empty) repository on branch main."""

    def _make(name: str = "repo") -> TestRepo:
        path = tmp_path / name
        path.mkdir()
        repo = TestRepo(path)
        repo.git("init")
        repo.git("symbolic-ref", "HEAD", "refs/heads/main")
        repo.git("config", "user.name", "Test User")
        repo.git("config", "user.email", "test@example.com")
        repo.git("config", "commit.gpgsign", "false")
        repo.git("config", "tag.gpgsign", "false")
        return repo

    return _make


class ScriptedPrompter(Prompter):
    """Answers prompts from fixed lists; fails on unexpected questions."""

    def __init__(
        self,
        answers: Optional[List[str]] = None,
        confirms: Optional[List[bool]] = None,
        assume_yes: bool = False,
    ):
        super().__init__(assume_yes=assume_yes)
        self.answers = list(answers or [])
        self.confirms = list(confirms or [])
        self.asked: List[str] = []

    def ask(self, message: str, default: Optional[str] = None) -> str:
        self.asked.append(message)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {message}")
        return self.answers.pop(0)

    def confirm(self, message: str) -> bool:
        self.asked.append(message)
        if not self.confirms:
            raise AssertionError(f"Unexpected confirmation: {message}")
        return self.confirms.pop(0)

    def choose(self, message: str, options: List[str]) -> str:
        return self.ask(message)


@pytest.fixture
def scripted_prompter():
    return ScriptedPrompter


@pytest.fixture
def display():
    """WorkflowDisplay writing into a buffer; read it with ``display.output()``."""
    buffer = io.StringIO()
    workflow_display = WorkflowDisplay(Console(file=buffer, width=200, soft_wrap=True))
    workflow_display.output = buffer.getvalue
    return workflow_display
