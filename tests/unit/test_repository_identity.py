"""Unit tests for repository identity helpers."""

import pytest

from notifier.models.repository import RepositoryRef
from notifier.repository_identity import (
    derive_handle,
    get_hosted_compare_url,
    is_hosted_repo,
    match_hosted_provider,
)


GITHUB_URLS = [
    "https://github.com/barwin/git-notifications.git",
    "https://github.com/barwin/git-notifications",
    "git@github.com:barwin/git-notifications.git",
]

NON_GITHUB_URLS = [
    "file:///Users/barwin/sites/test_repo",
    "git@bitbucket.org:testuser/test_repo.git",
    "https://testuser@bitbucket.org/testuser/notify_bot.git",
]


class TestDeriveHandle:
    """Test handle derivation."""

    def test_last_path_segment(self):
        assert derive_handle("https://github.com/barwin/git-notifications.git") == "git-notifications.git"
        assert derive_handle("git@github.com:barwin/git-notifications.git") == "git-notifications.git"
        assert derive_handle("/tmp/origin/testRepo") == "testRepo"

    def test_trailing_slash_ignored(self):
        assert derive_handle("/tmp/origin/testRepo/") == "testRepo"

    @pytest.mark.parametrize("url", GITHUB_URLS + NON_GITHUB_URLS)
    def test_deterministic(self, url):
        assert derive_handle(url) == derive_handle(url)

    def test_repository_ref_uses_handle(self):
        repo = RepositoryRef(url="https://github.com/barwin/git-notifications.git")
        assert repo.handle == "git-notifications.git"


class TestMatchHostedProvider:
    """Test hosted-provider recognition."""

    @pytest.mark.parametrize("url", GITHUB_URLS)
    def test_github_urls(self, url):
        assert match_hosted_provider(url) == "/barwin/git-notifications"
        assert is_hosted_repo(url) is True

    @pytest.mark.parametrize("url", NON_GITHUB_URLS)
    def test_non_github_urls(self, url):
        assert match_hosted_provider(url) is None
        assert is_hosted_repo(url) is False

    def test_trailing_slash_ignored(self):
        assert match_hosted_provider("https://github.com/barwin/git-notifications/") == "/barwin/git-notifications"
        assert match_hosted_provider("https://github.com/barwin/git-notifications.git/") == "/barwin/git-notifications"

    def test_other_host(self):
        url = "git@gitlab.example.com:team/tools.git"
        assert match_hosted_provider(url, host="gitlab.example.com") == "/team/tools"
        assert match_hosted_provider(url) is None


class TestHostedCompareUrl:
    """Test comparison URL generation."""

    @pytest.mark.parametrize("url", GITHUB_URLS)
    def test_compare_url(self, url):
        assert (
            get_hosted_compare_url(url, "foo", "bar")
            == "https://github.com/barwin/git-notifications/compare/foo...bar"
        )

    def test_trailing_slash_gives_clean_url(self):
        assert (
            get_hosted_compare_url("https://github.com/barwin/git-notifications/", "foo", "bar")
            == "https://github.com/barwin/git-notifications/compare/foo...bar"
        )

    def test_unrecognised_url(self):
        assert get_hosted_compare_url("git@bitbucket.org:u/r.git", "foo", "bar") is None
