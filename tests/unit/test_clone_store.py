"""Unit tests for the local clone store."""

import shutil

import pytest

from notifier.models.repository import RepositoryRef
from notifier.services.clone_store import CloneFailure, CloneStore
from notifier.services.git_runner import ProcessFailure


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def test_path_for_uses_handle(jail_dir):
    store = CloneStore(jail_dir)
    repo = RepositoryRef(url="https://github.com/barwin/git-notifications.git")

    assert store.path_for(repo) == jail_dir / "git-notifications.git"
    assert store.exists(repo) is False


def test_ensure_jail_creates_directory(tmp_path):
    store = CloneStore(tmp_path / "nested" / "jail")

    store.ensure_jail()
    store.ensure_jail()

    assert (tmp_path / "nested" / "jail").is_dir()


def test_git_for_binds_git_dir(jail_dir):
    captured = {}

    def factory(**options):
        captured.update(options)
        return object()

    store = CloneStore(jail_dir, runner_factory=factory)
    repo = RepositoryRef(url="/tmp/origin/testRepo")

    store.git_for(repo, **{"no-pager": True})

    assert captured == {"git-dir": str(jail_dir / "testRepo"), "no-pager": True}


@pytest.mark.asyncio
async def test_partial_clone_removed_on_failure(jail_dir):
    """A directory left behind by a failed clone is cleaned up."""

    class PartialCloneGit:
        async def run(self, command, options=None, args=None):
            target = args[-1]
            (jail_dir / "broken").mkdir(parents=True)
            assert target == str(jail_dir / "broken")
            raise ProcessFailure("clone died", exit_code=128, stderr="fatal: early EOF")

    store = CloneStore(jail_dir, runner_factory=lambda **_: PartialCloneGit())
    repo = RepositoryRef(url="https://example.org/team/broken")

    with pytest.raises(CloneFailure) as exc_info:
        await store.clone_if_missing(repo)

    assert exc_info.value.exit_code == 128
    assert "early EOF" in exc_info.value.stderr
    assert not (jail_dir / "broken").exists()


@requires_git
class TestCloneIfMissing:
    """Test cloning against real repositories."""

    @pytest.mark.asyncio
    async def test_clones_into_jail(self, origin_repo, jail_dir):
        store = CloneStore(jail_dir)
        repo = RepositoryRef(url=str(origin_repo))

        cloned = await store.clone_if_missing(repo)

        assert cloned is True
        assert (jail_dir / "testRepo").is_dir()
        # bare clone: metadata only, no working files
        assert (jail_dir / "testRepo" / "HEAD").is_file()
        assert not (jail_dir / "testRepo" / "test.txt").exists()

    @pytest.mark.asyncio
    async def test_second_clone_is_noop(self, origin_repo, jail_dir):
        store = CloneStore(jail_dir)
        repo = RepositoryRef(url=str(origin_repo))

        await store.clone_if_missing(repo)
        cloned_again = await store.clone_if_missing(repo)

        assert cloned_again is False
        assert (jail_dir / "testRepo").is_dir()

    @pytest.mark.asyncio
    async def test_nonexistent_source_fails_without_directory(self, git_env, tmp_path, jail_dir):
        store = CloneStore(jail_dir)
        repo = RepositoryRef(url=f"file://{tmp_path / 'noexist'}")

        with pytest.raises(CloneFailure) as exc_info:
            await store.clone_if_missing(repo)

        assert isinstance(exc_info.value, ProcessFailure)
        assert not (jail_dir / "noexist").exists()
