"""Change model for one file delta within a timeline step."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator


class ChangeStatus(str, Enum):
    """Kind of change applied to a file."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    RENAMED = "renamed"


def normalize_path(value: str) -> str:
    """Strip surrounding separators and reject paths the tree cannot hold."""
    path = value.strip("/")
    if not path:
        raise ValueError("path must not be empty or the root sentinel")
    if any(part == "" for part in path.split("/")):
        raise ValueError(f"path has an empty segment: {value!r}")
    return path


class ChangeRecord(BaseModel):
    """Represents a single file's delta within one timeline step."""

    path: str
    status: ChangeStatus
    additions: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0)
    previous_path: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("previous_path", "previousPath")
    )

    @field_validator("path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        return normalize_path(value)

    @field_validator("previous_path")
    @classmethod
    def _check_previous_path(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value.strip("/") == "":
            return None
        return normalize_path(value)

    @property
    def delta(self) -> int:
        """Net line delta carried by this record."""
        return self.additions - self.deletions


class TimelineEntry(BaseModel):
    """One input step: commit or merged PR metadata plus its changes."""

    id: str
    message: str = ""
    author: str = ""
    timestamp: datetime
    # Records stay raw dicts when they fail validation so the tracker can
    # reject the single step instead of the whole timeline load.
    changes: List[
        Annotated[
            Union[ChangeRecord, Dict[str, Any]], Field(union_mode="left_to_right")
        ]
    ] = []
