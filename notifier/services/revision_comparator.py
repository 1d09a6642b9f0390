"""
Revision comparator.

Determines the branch checked out in the local clone, its local tip and
the tip of the same branch at origin. State is re-derived on every poll;
the local clone's HEAD is the only record of what was last seen.
"""

from notifier.models.repository import RepositoryRef
from notifier.models.revision import RevisionCheck, RevisionPair
from notifier.services.clone_store import CloneStore
from notifier.services.git_runner import ProcessFailure
from notifier.utils.logging import get_logger


logger = get_logger(__name__)


class SyncFailure(Exception):
    """A revision comparison or fetch step failed for an existing clone."""

    def __init__(self, message: str, repository: str = "", step: str = ""):
        super().__init__(message)
        self.repository = repository
        self.step = step


class RevisionComparator:
    """Compares the local clone of a repository with its origin."""

    def __init__(self, clone_store: CloneStore):
        self.clone_store = clone_store

    async def _git(self, repo: RepositoryRef, step: str, command: str, options, args) -> str:
        git = self.clone_store.git_for(repo)
        try:
            return await git.run(command, options, args)
        except ProcessFailure as e:
            raise SyncFailure(
                f"{step} failed for {repo.handle}: {e}",
                repository=repo.url,
                step=step,
            ) from e

    async def resolve_branch(self, repo: RepositoryRef) -> str:
        """Name of the branch HEAD points at in the local clone."""
        output = await self._git(repo, "resolve_branch", "symbolic-ref", {"short": True}, ["HEAD"])
        return output.strip()

    async def resolve_local_head(self, repo: RepositoryRef) -> str:
        output = await self._git(repo, "resolve_local_head", "rev-parse", {}, ["HEAD"])
        return output.strip()

    async def resolve_remote_head(self, repo: RepositoryRef, branch: str) -> str:
        """
        Tip revision of ``branch`` at origin.

        ``ls-remote`` answers with ``<revision>\\t<ref>`` lines; only the
        revision of the first line is kept.

        Raises:
            SyncFailure: If the query fails or origin has no such branch
        """
        output = await self._git(
            repo, "resolve_remote_head", "ls-remote", {}, ["origin", f"refs/heads/{branch}"]
        )
        tokens = output.split()
        if not tokens:
            raise SyncFailure(
                f"Branch {branch} not found at origin of {repo.handle}",
                repository=repo.url,
                step="resolve_remote_head",
            )
        return tokens[0]

    async def compare(self, repo: RepositoryRef) -> RevisionCheck:
        """
        Compare local and remote tips of the checked-out branch.

        Args:
            repo: Repository with an existing local clone

        Returns:
            RevisionCheck; ``changed`` is False when both tips are equal

        Raises:
            SyncFailure: If any git query fails
        """
        branch = await self.resolve_branch(repo)
        local = await self.resolve_local_head(repo)
        remote = await self.resolve_remote_head(repo, branch)

        check = RevisionCheck(branch=branch, revisions=RevisionPair(local=local, remote=remote))

        if check.changed:
            logger.info(
                f"There are new commits in repo '{repo.handle}' {local}..{remote}",
                extra={"repository": repo.url, "handle": repo.handle},
            )
        else:
            logger.debug(
                f"No new commits found for {repo.handle}",
                extra={"repository": repo.url, "handle": repo.handle},
            )

        return check
