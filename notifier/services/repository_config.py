"""
Repository configuration service for the list of watched repositories.

Reads repository URLs from a YAML file (plus any URLs given through
settings) and validates that every URL maps to its own local handle.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from notifier.models.repository import RepositoryRef


logger = logging.getLogger(__name__)


class RepositoryValidationError(Exception):
    """Raised when the repository list is malformed."""
    pass


class RepositoryConfigService:
    """
    Service for loading the watched repository list.

    The YAML file holds either a mapping with a ``repositories`` list or a
    bare list; entries are URL strings or mappings with a ``git_url`` key:

        repositories:
          - git_url: git@github.com:barwin/git-notifications.git
          - https://example.org/team/tools.git
    """

    def __init__(self, config_path: Optional[Path] = None, extra_urls: Optional[Iterable[str]] = None):
        """
        Initialize the repository configuration service.

        Args:
            config_path: YAML file with the repository list (optional)
            extra_urls: Additional repository URLs, appended after the file's
        """
        self._config_path = Path(config_path) if config_path else None
        self._extra_urls = list(extra_urls or [])

    def validate_repository_url(self, repo_url: Any) -> str:
        """
        Validate a repository URL and return it stripped.

        Args:
            repo_url: URL or local path of a repository

        Returns:
            Stripped URL

        Raises:
            RepositoryValidationError: If the URL is empty or contains whitespace
        """
        if not isinstance(repo_url, str) or not repo_url.strip():
            raise RepositoryValidationError(f"Invalid repository URL: {repo_url!r}")

        url = repo_url.strip()
        if any(ch.isspace() for ch in url):
            raise RepositoryValidationError(f"Repository URL must not contain whitespace: {url!r}")
        if not url.rstrip("/"):
            raise RepositoryValidationError(f"Repository URL has no path: {url!r}")

        return url

    def _read_config_urls(self) -> List[Any]:
        if self._config_path is None:
            return []
        if not self._config_path.exists():
            logger.warning(f"Repository list {self._config_path} not found")
            return []

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise RepositoryValidationError(
                f"Could not parse repository list {self._config_path}: {e}"
            ) from e

        if data is None:
            return []
        if isinstance(data, dict):
            data = data.get("repositories") or []
        if not isinstance(data, list):
            raise RepositoryValidationError(
                f"Repository list {self._config_path} must be a list of repositories"
            )

        urls = []
        for entry in data:
            if isinstance(entry, dict):
                urls.append(entry.get("git_url"))
            else:
                urls.append(entry)
        return urls

    def list_repositories(self) -> List[RepositoryRef]:
        """
        Load, validate and de-duplicate the watched repositories.

        Returns:
            Repositories in configuration order

        Raises:
            RepositoryValidationError: If an entry is invalid or two URLs
                share a local handle
        """
        repositories: List[RepositoryRef] = []
        urls_by_handle: Dict[str, str] = {}

        for raw_url in self._read_config_urls() + self._extra_urls:
            url = self.validate_repository_url(raw_url)
            repo = RepositoryRef(url=url)

            existing = urls_by_handle.get(repo.handle)
            if existing == url:
                logger.debug(f"Skipping duplicate repository {url}")
                continue
            if existing is not None:
                raise RepositoryValidationError(
                    f"Repositories {existing} and {url} share the local handle {repo.handle!r}"
                )

            urls_by_handle[repo.handle] = url
            repositories.append(repo)

        logger.info(f"Loaded {len(repositories)} repositories")
        return repositories


def get_repository_config_service() -> RepositoryConfigService:
    """
    Factory function to create RepositoryConfigService with settings from config.
    """
    from notifier.config import settings

    return RepositoryConfigService(
        config_path=settings.repositories_file,
        extra_urls=settings.repository_urls,
    )
