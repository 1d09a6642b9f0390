"""
Local clone store.

Keeps one bare, shallow clone per watched repository under a single jail
directory, keyed by the repository handle.
"""

import asyncio
import shutil
from pathlib import Path
from typing import Callable, Optional

from notifier.models.repository import RepositoryRef
from notifier.services.git_runner import GitRunner, ProcessFailure
from notifier.utils.logging import get_logger


logger = get_logger(__name__)

RunnerFactory = Callable[..., GitRunner]


class CloneFailure(ProcessFailure):
    """Cloning failed; no directory is left at the clone path."""
    pass


class CloneStore:
    """Manages the jail directory and the clones inside it."""

    def __init__(
        self,
        jail_dir: Path,
        runner_factory: RunnerFactory = GitRunner,
        clone_depth: int = 1,
    ):
        """
        Initialize the store.

        Args:
            jail_dir: Directory holding all local clones
            runner_factory: Builds a GitRunner from global git options
            clone_depth: History depth of new clones
        """
        self.jail_dir = Path(jail_dir)
        self.runner_factory = runner_factory
        self.clone_depth = clone_depth

    def ensure_jail(self) -> None:
        """Create the jail directory if it does not exist yet."""
        if not self.jail_dir.exists():
            logger.info(f"Creating repo jail directory: {self.jail_dir}")
        self.jail_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, repo: RepositoryRef) -> Path:
        return self.jail_dir / repo.handle

    def exists(self, repo: RepositoryRef) -> bool:
        return self.path_for(repo).exists()

    def git_for(self, repo: RepositoryRef, **options) -> GitRunner:
        """Runner bound to the local clone of ``repo``."""
        return self.runner_factory(**{"git-dir": str(self.path_for(repo))}, **options)

    async def clone_if_missing(self, repo: RepositoryRef) -> bool:
        """
        Clone ``repo`` into the jail unless a clone already exists.

        Args:
            repo: Repository to clone

        Returns:
            True if a clone was made, False if one already existed

        Raises:
            CloneFailure: If the clone failed; any partial directory is removed
        """
        local_path = self.path_for(repo)
        if local_path.exists():
            return False

        self.ensure_jail()
        logger.info(
            f"Repo {repo.url} does not exist locally yet. Cloning to {local_path}",
            extra={"repository": repo.url, "handle": repo.handle},
        )

        git = self.runner_factory()
        try:
            await git.run(
                "clone",
                {"bare": True, "depth": self.clone_depth},
                [repo.url, str(local_path)],
            )
        except ProcessFailure as e:
            await self._remove_partial_clone(local_path)
            raise CloneFailure(
                f"Failed to clone {repo.url}: {e}",
                exit_code=e.exit_code,
                stderr=e.stderr,
                stdout=e.stdout,
            ) from e
        except asyncio.CancelledError:
            await self._remove_partial_clone(local_path)
            raise

        logger.info(f"Successfully cloned repo: {repo.handle}", extra={"handle": repo.handle})
        return True

    async def _remove_partial_clone(self, local_path: Path) -> None:
        if local_path.exists():
            logger.warning(f"Removing partial clone at {local_path}")
            await asyncio.to_thread(shutil.rmtree, local_path, ignore_errors=True)


def get_clone_store(runner_factory: Optional[RunnerFactory] = None) -> CloneStore:
    """
    Factory function to create a CloneStore with settings from config.

    Returns:
        CloneStore rooted at the configured jail directory
    """
    from notifier.config import settings

    return CloneStore(
        jail_dir=settings.repo_jail_dir,
        runner_factory=runner_factory or GitRunner,
        clone_depth=settings.clone_depth,
    )
