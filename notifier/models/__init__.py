"""Data models for git-notifier."""

from .change_set import ChangeSet
from .command import CommandInvocation, CommandResult, OptionValue
from .error import ErrorRecord
from .notification import MailMessage, RenderedNotification
from .poll_result import PollResult, PollStatus
from .repository import RepositoryRef
from .revision import RevisionCheck, RevisionPair

__all__ = [
    # Repository models
    "RepositoryRef",
    # Revision models
    "RevisionPair",
    "RevisionCheck",
    "ChangeSet",
    # Command models
    "OptionValue",
    "CommandInvocation",
    "CommandResult",
    # Notification models
    "RenderedNotification",
    "MailMessage",
    # Poll models
    "PollStatus",
    "PollResult",
    # Error models
    "ErrorRecord",
]
