"""Poll outcome data models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .error import ErrorRecord
from .repository import RepositoryRef
from .revision import RevisionPair


class PollStatus(str, Enum):
    """Outcome of polling one repository."""

    UNCHANGED = "unchanged"
    NOTIFIED = "notified"
    FAILED = "failed"


class PollResult(BaseModel):
    """Per-repository result of one poll cycle."""

    repository: RepositoryRef
    status: PollStatus
    revisions: Optional[RevisionPair] = None
    error: Optional[ErrorRecord] = None
