"""
Unit tests for the poller entry point.
"""

import pytest
from unittest.mock import AsyncMock, Mock, patch

from notifier import poller
from notifier.config import ConfigurationError
from notifier.models.poll_result import PollResult, PollStatus
from notifier.models.repository import RepositoryRef
from notifier.services.repository_config import RepositoryValidationError
from notifier.utils.metrics import PollMetrics


REPO = RepositoryRef(url="/srv/git/tools")


@pytest.fixture
def git_notifier():
    notifier = Mock()
    notifier.metrics = PollMetrics(cycle_id="cycle_1")
    notifier.metrics.start()
    notifier.metrics.record_outcome("unchanged")
    notifier.metrics.complete()
    notifier.poll = AsyncMock(
        return_value=[PollResult(repository=REPO, status=PollStatus.UNCHANGED)]
    )
    return notifier


class TestMain:
    """Test one poll cycle."""

    @pytest.mark.asyncio
    async def test_polls_configured_repositories(self, git_notifier):
        mail_sender = Mock()
        config_service = Mock()
        config_service.list_repositories.return_value = [REPO]

        with patch("notifier.poller.get_mail_sender", return_value=mail_sender), \
                patch("notifier.poller.get_repository_config_service", return_value=config_service), \
                patch("notifier.poller.get_git_notifier", return_value=git_notifier) as mock_factory, \
                patch("notifier.poller.emit_metric") as mock_emit:
            results = await poller.main()

        mock_factory.assert_called_once_with(mail_sender=mail_sender)
        git_notifier.poll.assert_awaited_once_with([REPO])
        assert results[0].status == PollStatus.UNCHANGED
        emitted = [c.args[0] for c in mock_emit.call_args_list]
        assert "repositories.unchanged" in emitted
        assert "poll.duration_ms" in emitted

    @pytest.mark.asyncio
    async def test_no_repositories(self):
        config_service = Mock()
        config_service.list_repositories.return_value = []

        with patch("notifier.poller.get_mail_sender"), \
                patch("notifier.poller.get_repository_config_service", return_value=config_service), \
                patch("notifier.poller.get_git_notifier") as mock_factory:
            results = await poller.main()

        assert results == []
        mock_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_addresses_fail_before_polling(self):
        with patch("notifier.poller.get_mail_sender", side_effect=ConfigurationError("Must configure email_to")), \
                patch("notifier.poller.get_repository_config_service") as mock_config:
            with pytest.raises(ConfigurationError):
                await poller.main()

        mock_config.assert_not_called()


class TestRun:
    """Test the console entry point."""

    @pytest.mark.parametrize("error", [
        ConfigurationError("Must configure email_to, email_from"),
        RepositoryValidationError("share the local handle"),
    ])
    def test_invalid_configuration_exits_1(self, error):
        with patch("notifier.poller.setup_logging"), \
                patch("notifier.poller.main", new=AsyncMock(side_effect=error)):
            with pytest.raises(SystemExit) as exc_info:
                poller.run()

        assert exc_info.value.code == 1

    def test_successful_cycle_returns(self):
        with patch("notifier.poller.setup_logging"), \
                patch("notifier.poller.main", new=AsyncMock(return_value=[])) as mock_main:
            poller.run()

        mock_main.assert_awaited_once()
