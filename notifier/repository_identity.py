"""
Repository identity helpers.

Derives the local handle of a repository from its URL and recognises
hosted-provider URLs so notifications can link to the provider's web
comparison view.
"""

import posixpath
import re
from functools import lru_cache
from typing import Optional

DEFAULT_PROVIDER_HOST = "github.com"


def derive_handle(url: str) -> str:
    """
    Return the last path segment of a repository URL.

    The handle names the local clone directory under the jail and is the
    repository name shown in notifications.

    Args:
        url: Repository URL or local path

    Returns:
        Handle string, e.g. 'git-notifications.git'
    """
    return posixpath.basename(url.rstrip("/"))


@lru_cache(maxsize=None)
def _provider_pattern(host: str) -> re.Pattern:
    # Captures the repo path; a trailing '.git' is stripped afterwards.
    return re.compile(
        r'^(?:git@|https://)' + re.escape(host) + r'(?:/|:)(.*)(?:\.git)?$'
    )


def match_hosted_provider(url: str, host: str = DEFAULT_PROVIDER_HOST) -> Optional[str]:
    """
    Extract the repository path from a hosted-provider URL.

    Recognises ``git@<host>:<path>(.git)`` and ``https://<host>/<path>(.git)``.

    Args:
        url: Repository URL
        host: Provider host name

    Returns:
        Path with a leading slash and no '.git' suffix, or None if the URL
        is not hosted on ``host``
    """
    match = _provider_pattern(host).match(url.rstrip("/"))
    if not match or not match.group(1):
        return None

    repo_path = re.sub(r'\.git$', '', match.group(1))
    if not repo_path.startswith("/"):
        repo_path = f"/{repo_path}"
    return repo_path


def is_hosted_repo(url: str, host: str = DEFAULT_PROVIDER_HOST) -> bool:
    """True if ``url`` is a repository on the given hosted provider."""
    return match_hosted_provider(url, host) is not None


def get_hosted_compare_url(
    url: str,
    begin: str,
    end: str,
    host: str = DEFAULT_PROVIDER_HOST
) -> Optional[str]:
    """
    Build the provider's web comparison URL for ``begin...end``.

    Returns:
        Comparison URL, or None if the repository is not hosted on ``host``
    """
    repo_path = match_hosted_provider(url, host)
    if repo_path is None:
        return None
    return f"https://{host}{repo_path}/compare/{begin}...{end}"
