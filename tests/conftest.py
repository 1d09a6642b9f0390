"""
Shared fixtures: throw-away git repositories for integration tests.
"""

import subprocess
from pathlib import Path

import pytest


def git(repo: Path, *args: str) -> str:
    """Run git inside ``repo`` and return stdout."""
    proc = subprocess.run(
        ["git", *args],
        cwd=str(repo),
        check=True,
        capture_output=True,
        text=True,
    )
    return proc.stdout


def commit_file(repo: Path, name: str, content: str, message: str) -> str:
    """Write ``name``, commit it and return the new HEAD revision."""
    (repo / name).write_text(content)
    git(repo, "add", name)
    git(repo, "commit", "-m", message)
    return git(repo, "rev-parse", "HEAD").strip()


@pytest.fixture
def git_env(monkeypatch, tmp_path):
    """Isolate git from the user's configuration and give commits an identity."""
    global_config = tmp_path / "gitconfig"
    global_config.write_text("")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(global_config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")


@pytest.fixture
def origin_repo(git_env, tmp_path):
    """A non-bare origin repository with a single commit."""
    repo = tmp_path / "origin" / "testRepo"
    repo.mkdir(parents=True)
    git(repo, "init")
    commit_file(repo, "test.txt", "Hello World\n", "First commit")
    return repo


@pytest.fixture
def jail_dir(tmp_path):
    return tmp_path / "jail"


@pytest.fixture
def add_commit(git_env):
    """Function committing a file to a repository: ``add_commit(repo, name, content, message)``."""
    return commit_file
