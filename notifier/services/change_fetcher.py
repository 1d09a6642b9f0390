"""
Change fetcher.

Fetches the tracked branch into the local clone and collects colored
``git log --stat`` and ``git diff`` output for the new range.
"""

import asyncio

from notifier.models.change_set import ChangeSet
from notifier.models.repository import RepositoryRef
from notifier.models.revision import RevisionCheck
from notifier.services.clone_store import CloneStore
from notifier.services.git_runner import ProcessFailure
from notifier.services.revision_comparator import SyncFailure
from notifier.utils.logging import get_logger


logger = get_logger(__name__)


class ChangeFetcher:
    """Retrieves log and diff text for newly arrived commits."""

    def __init__(self, clone_store: CloneStore):
        self.clone_store = clone_store

    async def fetch_changes(self, repo: RepositoryRef, check: RevisionCheck) -> ChangeSet:
        """
        Fetch ``+branch:branch`` from origin and read log and diff of the range.

        The refspec is forced so a rewritten origin branch replaces the
        local one instead of being rejected as non-fast-forward.

        Log and diff run concurrently; the first failure cancels the other.

        Args:
            repo: Repository with an existing local clone
            check: Changed revision check from the comparator

        Returns:
            ChangeSet with the raw colored text

        Raises:
            SyncFailure: If the fetch or either retrieval fails
        """
        git = self.clone_store.git_for(repo, **{"no-pager": True})
        branch = check.branch
        range_args = [check.revisions.range_spec]

        try:
            await git.run("fetch", {}, ["origin", f"+{branch}:{branch}"])
        except ProcessFailure as e:
            raise SyncFailure(
                f"fetch failed for {repo.handle}: {e}", repository=repo.url, step="fetch"
            ) from e

        # log and diff take [mostly] the same flags
        log_task = asyncio.create_task(git.run("log", {"color": True, "stat": True}, range_args))
        diff_task = asyncio.create_task(git.run("diff", {"color": True}, range_args))
        tasks = [log_task, diff_task]

        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        for task in (log_task, diff_task):
            if task.done() and not task.cancelled() and task.exception() is not None:
                raise SyncFailure(
                    f"Reading changes failed for {repo.handle}: {task.exception()}",
                    repository=repo.url,
                    step="log" if task is log_task else "diff",
                ) from task.exception()

        return ChangeSet(
            branch=branch,
            revisions=check.revisions,
            log_text=log_task.result(),
            diff_text=diff_task.result(),
        )
