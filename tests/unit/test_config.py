"""
Unit tests for configuration management.
"""

import os
from pathlib import Path

import pytest
from unittest.mock import patch

from notifier.config import ConfigurationError, Settings, require_email_addresses


def test_settings_loads_from_environment():
    """Test that settings can be loaded from environment variables."""
    with patch.dict(os.environ, {
        'EMAIL_TO': 'team@example.com',
        'EMAIL_FROM': 'notifier@example.com',
        'REPO_JAIL_DIR': '/var/lib/notifier',
        'ANSI_SIZE_LIMIT_BYTES': '2048',
        'TABS_TO_SPACES': '8',
        'SMTP_HOST': 'mail.example.com',
        'SMTP_PORT': '587',
        'SMTP_STARTTLS': 'true',
        'LOG_LEVEL': 'DEBUG',
        'MAX_CONCURRENT_REPOSITORIES': '2',
    }):
        settings = Settings(_env_file=None)

        assert settings.email_to == 'team@example.com'
        assert settings.email_from == 'notifier@example.com'
        assert settings.repo_jail_dir == Path('/var/lib/notifier')
        assert settings.ansi_size_limit_bytes == 2048
        assert settings.tabs_to_spaces == 8
        assert settings.smtp_host == 'mail.example.com'
        assert settings.smtp_port == 587
        assert settings.smtp_starttls is True
        assert settings.log_level == 'DEBUG'
        assert settings.max_concurrent_repositories == 2


def test_settings_has_default_values():
    """Test that settings have appropriate default values."""
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)

        assert settings.repo_jail_dir == Path('var')
        assert settings.ansi_size_limit_bytes == 1024 * 1000
        assert settings.tabs_to_spaces == 4
        assert settings.hosted_provider_host == 'github.com'
        assert settings.email_to is None
        assert settings.email_from is None
        assert settings.smtp_port == 25
        assert settings.git_binary == 'git'
        assert settings.clone_depth == 1
        assert settings.log_level == 'INFO'


def test_repository_urls_from_json_environment():
    """Test that list settings are parsed from JSON."""
    with patch.dict(os.environ, {
        'REPOSITORY_URLS': '["git@github.com:barwin/git-notifications.git", "/srv/git/tools"]',
    }):
        settings = Settings(_env_file=None)

        assert settings.repository_urls == [
            'git@github.com:barwin/git-notifications.git',
            '/srv/git/tools',
        ]


def test_require_email_addresses_passes_when_configured():
    settings = Settings(_env_file=None, email_to='to@example.com', email_from='from@example.com')

    require_email_addresses(settings)


@pytest.mark.parametrize("email_to,email_from,missing", [
    (None, 'from@example.com', 'email_to'),
    ('to@example.com', None, 'email_from'),
    ('   ', 'from@example.com', 'email_to'),
])
def test_require_email_addresses_fails_fast(email_to, email_from, missing):
    settings = Settings(_env_file=None, email_to=email_to, email_from=email_from)

    with pytest.raises(ConfigurationError) as exc_info:
        require_email_addresses(settings)

    assert missing in str(exc_info.value)
