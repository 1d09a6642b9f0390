"""
Git notifier pipeline.

Runs the per-repository pipeline (clone, compare, fetch, render, deliver)
and polls many repositories so that one repository's failure never stops
another.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from notifier.models.change_set import ChangeSet
from notifier.models.error import ErrorRecord
from notifier.models.notification import MailMessage, RenderedNotification
from notifier.models.poll_result import PollResult, PollStatus
from notifier.models.repository import RepositoryRef
from notifier.services.change_fetcher import ChangeFetcher
from notifier.services.clone_store import CloneStore
from notifier.services.git_runner import GitRunner, ProcessFailure
from notifier.services.mail_sender import DeliveryFailure, MailSender
from notifier.services.markup_renderer import MarkupRenderer
from notifier.services.revision_comparator import RevisionComparator, SyncFailure
from notifier.utils.logging import (
    get_logger,
    log_error_with_context,
    log_repository_event,
    log_stage_transition,
)
from notifier.utils.metrics import PollMetrics
from notifier.utils.resilience import handle_partial_failure


logger = get_logger(__name__)

PIPELINE_FAILURES = (ProcessFailure, SyncFailure, DeliveryFailure)


class GitNotifier:
    """Watches repositories and emails new commits."""

    def __init__(
        self,
        clone_store: CloneStore,
        renderer: MarkupRenderer,
        mail_sender: Optional[MailSender] = None,
        max_concurrent_repositories: int = 4,
        metrics: Optional[PollMetrics] = None,
    ):
        """
        Initialize the notifier.

        Args:
            clone_store: Store of local clones
            renderer: Markup renderer for notifications
            mail_sender: Delivery transport (None renders without sending)
            max_concurrent_repositories: Repositories processed at once
            metrics: Collector shared with the git runner
        """
        self.clone_store = clone_store
        self.comparator = RevisionComparator(clone_store)
        self.fetcher = ChangeFetcher(clone_store)
        self.renderer = renderer
        self.mail_sender = mail_sender
        self.max_concurrent_repositories = max(1, max_concurrent_repositories)
        self.metrics = metrics or PollMetrics()

    async def clone_repo_if_not_exists(self, repo: RepositoryRef) -> bool:
        """Make sure a local clone exists; True if one was just made."""
        return await self.clone_store.clone_if_missing(repo)

    async def check_for_new_commits(self, repo: RepositoryRef) -> Optional[ChangeSet]:
        """
        Compare the local clone with origin and fetch any new commits.

        Returns:
            ChangeSet for the new range, or None if there are no new commits

        Raises:
            SyncFailure: If a git step fails
        """
        check = await self.comparator.compare(repo)
        if not check.changed:
            return None
        return await self.fetcher.fetch_changes(repo, check)

    def build_notification(self, repo: RepositoryRef, change_set: ChangeSet) -> RenderedNotification:
        return self.renderer.render(repo, change_set.raw_text, change_set.revisions)

    async def send_notification(self, repo: RepositoryRef, change_set: ChangeSet) -> Optional[MailMessage]:
        """
        Render ``change_set`` and hand it to the mail sender.

        Returns:
            The message sent, or None when no mail sender is configured

        Raises:
            DeliveryFailure: If the mail server rejected the message
        """
        notification = self.build_notification(repo, change_set)
        if self.mail_sender is None:
            logger.info(f"No mail sender configured, not sending: {notification.subject}")
            return None
        return await self.mail_sender.send_notification(notification)

    async def process_repository(self, repo: RepositoryRef) -> PollResult:
        """
        Run the full pipeline for one repository.

        Failures are logged with the repository attached and returned as a
        failed PollResult; they are never raised.
        """
        result = await self._process_repository(repo)
        self.metrics.record_outcome(result.status.value)
        return result

    async def _process_repository(self, repo: RepositoryRef) -> PollResult:
        repo_logger = logger.with_context(repository=repo.url, handle=repo.handle)
        stage = "clone"

        try:
            log_stage_transition(repo_logger, repo.url, stage, "started")
            if await self.clone_repo_if_not_exists(repo):
                log_repository_event(repo_logger, repo.url, repo.handle, "cloned")

            stage = "compare"
            log_stage_transition(repo_logger, repo.url, stage, "started")
            change_set = await self.check_for_new_commits(repo)

            if change_set is None:
                log_repository_event(repo_logger, repo.url, repo.handle, "unchanged")
                return PollResult(repository=repo, status=PollStatus.UNCHANGED)

            stage = "deliver"
            log_stage_transition(repo_logger, repo.url, stage, "started")
            message = await self.send_notification(repo, change_set)

            log_repository_event(
                repo_logger,
                repo.url,
                repo.handle,
                "notified",
                local_revision=change_set.revisions.local,
                remote_revision=change_set.revisions.remote,
                recipient=message.recipient if message else None,
            )
            return PollResult(
                repository=repo,
                status=PollStatus.NOTIFIED,
                revisions=change_set.revisions,
            )

        except PIPELINE_FAILURES as e:
            if isinstance(e, SyncFailure) and e.step:
                stage = e.step
            log_error_with_context(
                repo_logger,
                f"Bailing out on repo {repo.url}: {e}",
                e,
                stage=stage,
            )
            return self._failed_result(repo, stage, e)

        except Exception as e:
            # Keep the rest of the cycle running
            log_error_with_context(
                repo_logger,
                f"Unexpected error on repo {repo.url}: {e}",
                e,
                stage=stage,
            )
            return self._failed_result(repo, stage, e)

    @staticmethod
    def _failed_result(repo: RepositoryRef, stage: str, error: Exception) -> PollResult:
        return PollResult(
            repository=repo,
            status=PollStatus.FAILED,
            error=ErrorRecord(
                repository=repo.url,
                stage=stage,
                error_type=type(error).__name__,
                message=str(error),
                exit_code=getattr(error, "exit_code", None),
                timestamp=datetime.now(timezone.utc),
            ),
        )

    @staticmethod
    def _unique_handles(repositories: List[RepositoryRef]) -> List[RepositoryRef]:
        # Two entries with one handle would share a clone directory
        seen: Dict[str, str] = {}
        unique: List[RepositoryRef] = []
        for repo in repositories:
            if repo.handle in seen:
                logger.warning(
                    f"Skipping {repo.url}: handle {repo.handle!r} already polled for {seen[repo.handle]}",
                    extra={"repository": repo.url, "handle": repo.handle},
                )
                continue
            seen[repo.handle] = repo.url
            unique.append(repo)
        return unique

    async def poll(self, repositories: List[RepositoryRef]) -> List[PollResult]:
        """
        Process every repository once.

        Repositories run concurrently up to ``max_concurrent_repositories``.
        Each handle is scheduled at most once per cycle; later entries
        sharing a handle are skipped with a warning.

        Returns:
            One PollResult per scheduled repository, in input order
        """
        self.metrics.start(cycle_id=uuid.uuid4().hex[:12])
        self.clone_store.ensure_jail()
        semaphore = asyncio.Semaphore(self.max_concurrent_repositories)

        async def bounded(repo: RepositoryRef) -> PollResult:
            async with semaphore:
                return await self.process_repository(repo)

        scheduled = self._unique_handles(repositories)
        results = await asyncio.gather(*(bounded(repo) for repo in scheduled))
        self.metrics.complete()

        failed = [r for r in results if r.status == PollStatus.FAILED]
        handle_partial_failure(
            "poll",
            total_items=len(results),
            successful_items=len(results) - len(failed),
            errors=[f"{r.repository.handle}: {r.error.message}" for r in failed if r.error],
            context={"cycle_id": self.metrics.cycle_id},
        )
        return list(results)


def get_git_notifier(mail_sender: Optional[MailSender] = None) -> GitNotifier:
    """
    Factory function to create GitNotifier with settings from config.

    Args:
        mail_sender: Delivery transport; None builds notifications without sending
    """
    from functools import partial

    from notifier.config import settings
    from notifier.services.clone_store import get_clone_store
    from notifier.services.markup_renderer import get_markup_renderer

    metrics = PollMetrics()
    runner_factory = partial(
        GitRunner,
        settings.git_binary,
        None,
        settings.git_timeout_seconds,
        metrics,
    )
    return GitNotifier(
        clone_store=get_clone_store(runner_factory=runner_factory),
        renderer=get_markup_renderer(),
        mail_sender=mail_sender,
        max_concurrent_repositories=settings.max_concurrent_repositories,
        metrics=metrics,
    )
