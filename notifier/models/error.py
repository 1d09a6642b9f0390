"""Error tracking data models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ErrorRecord(BaseModel):
    """Error record attributing a failure to a repository and stage."""

    repository: str
    stage: str
    error_type: str
    message: str
    exit_code: Optional[int] = None
    timestamp: datetime
