"""
Unit tests for RepositoryConfigService.

Tests URL validation, YAML loading and handle collision detection.
"""

import pytest

from notifier.services.repository_config import (
    RepositoryConfigService,
    RepositoryValidationError,
)


class TestRepositoryURLValidation:
    """Test repository URL validation."""

    def test_validate_valid_url(self):
        service = RepositoryConfigService()

        assert (
            service.validate_repository_url("  git@github.com:barwin/git-notifications.git ")
            == "git@github.com:barwin/git-notifications.git"
        )

    def test_validate_local_path(self):
        service = RepositoryConfigService()

        assert service.validate_repository_url("/tmp/origin/testRepo") == "/tmp/origin/testRepo"

    @pytest.mark.parametrize("url", ["", "   ", None, 42, "/", "https://host/a b"])
    def test_validate_invalid_url(self, url):
        service = RepositoryConfigService()

        with pytest.raises(RepositoryValidationError):
            service.validate_repository_url(url)


class TestListRepositories:
    """Test loading the repository list."""

    def test_mapping_with_repositories_key(self, tmp_path):
        config = tmp_path / "repositories.yaml"
        config.write_text(
            "repositories:\n"
            "  - git_url: git@github.com:barwin/git-notifications.git\n"
            "  - https://example.org/team/tools.git\n"
        )
        service = RepositoryConfigService(config_path=config)

        repositories = service.list_repositories()

        assert [r.url for r in repositories] == [
            "git@github.com:barwin/git-notifications.git",
            "https://example.org/team/tools.git",
        ]
        assert [r.handle for r in repositories] == ["git-notifications.git", "tools.git"]

    def test_bare_list(self, tmp_path):
        config = tmp_path / "repositories.yaml"
        config.write_text("- /srv/git/one\n- /srv/git/two\n")
        service = RepositoryConfigService(config_path=config)

        assert [r.handle for r in service.list_repositories()] == ["one", "two"]

    def test_extra_urls_appended(self, tmp_path):
        config = tmp_path / "repositories.yaml"
        config.write_text("repositories:\n  - /srv/git/one\n")
        service = RepositoryConfigService(config_path=config, extra_urls=["/srv/git/two"])

        assert [r.handle for r in service.list_repositories()] == ["one", "two"]

    def test_missing_file_is_empty(self, tmp_path):
        service = RepositoryConfigService(config_path=tmp_path / "missing.yaml")

        assert service.list_repositories() == []

    def test_empty_file_is_empty(self, tmp_path):
        config = tmp_path / "repositories.yaml"
        config.write_text("")

        assert RepositoryConfigService(config_path=config).list_repositories() == []

    def test_duplicate_url_skipped(self):
        service = RepositoryConfigService(extra_urls=["/srv/git/one", "/srv/git/one"])

        assert len(service.list_repositories()) == 1

    def test_handle_collision_rejected(self):
        service = RepositoryConfigService(
            extra_urls=["/srv/git/tools", "https://example.org/other/tools"]
        )

        with pytest.raises(RepositoryValidationError) as exc_info:
            service.list_repositories()

        assert "tools" in str(exc_info.value)

    def test_invalid_yaml(self, tmp_path):
        config = tmp_path / "repositories.yaml"
        config.write_text("repositories: [unclosed\n")

        with pytest.raises(RepositoryValidationError):
            RepositoryConfigService(config_path=config).list_repositories()

    def test_not_a_list(self, tmp_path):
        config = tmp_path / "repositories.yaml"
        config.write_text("repositories: just-a-string\n")

        with pytest.raises(RepositoryValidationError):
            RepositoryConfigService(config_path=config).list_repositories()

    def test_entry_without_git_url(self, tmp_path):
        config = tmp_path / "repositories.yaml"
        config.write_text("repositories:\n  - name: tools\n")

        with pytest.raises(RepositoryValidationError):
            RepositoryConfigService(config_path=config).list_repositories()
