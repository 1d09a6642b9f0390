"""git-notifier: email new commits of watched git repositories."""

__version__ = "0.1.0"
