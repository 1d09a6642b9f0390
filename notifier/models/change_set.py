"""Change set data models."""

from pydantic import BaseModel

from .revision import RevisionPair


class ChangeSet(BaseModel):
    """Colored log and diff text for a range of new commits."""

    branch: str
    revisions: RevisionPair
    log_text: str
    diff_text: str

    @property
    def raw_text(self) -> str:
        """Log followed by diff, separated by a blank line."""
        return f"{self.log_text}\n\n{self.diff_text}"
