"""External command data models."""

from typing import Dict, List, Optional, Union

from pydantic import BaseModel

OptionValue = Union[bool, int, str, None]


class CommandInvocation(BaseModel):
    """One invocation of an external binary."""

    binary: str
    cwd: Optional[str] = None
    command: Optional[str] = None
    args: List[str] = []
    options: Dict[str, OptionValue] = {}
    global_options: Dict[str, OptionValue] = {}


class CommandResult(BaseModel):
    """Captured outcome of a finished process."""

    exit_status: int
    stdout: str
    stderr: str
