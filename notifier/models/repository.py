"""Repository data models."""

from pydantic import BaseModel, ConfigDict

from notifier.repository_identity import derive_handle


class RepositoryRef(BaseModel):
    """A watched repository, identified by its source URL."""

    model_config = ConfigDict(frozen=True)

    url: str

    @property
    def handle(self) -> str:
        """Local clone directory name and display name."""
        return derive_handle(self.url)
