"""Revision data models."""

from pydantic import BaseModel, ConfigDict

SHORT_REVISION_LENGTH = 7


class RevisionPair(BaseModel):
    """Local and remote tip of the tracked branch."""

    model_config = ConfigDict(frozen=True)

    local: str
    remote: str

    @property
    def changed(self) -> bool:
        return self.local != self.remote

    @property
    def short_local(self) -> str:
        return self.local[:SHORT_REVISION_LENGTH]

    @property
    def short_remote(self) -> str:
        return self.remote[:SHORT_REVISION_LENGTH]

    @property
    def range_spec(self) -> str:
        """Revision range of the new commits, ``local..remote``."""
        return f"{self.local}..{self.remote}"


class RevisionCheck(BaseModel):
    """Outcome of comparing the local clone against origin."""

    branch: str
    revisions: RevisionPair

    @property
    def changed(self) -> bool:
        return self.revisions.changed
