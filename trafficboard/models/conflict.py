"""Scheduling conflict report models."""

from typing import List, Optional
from pydantic import BaseModel, Field


class ConflictingTask(BaseModel):
    """An existing task that overlaps a proposed assignment."""

    id: str
    name: str
    project_name: Optional[str] = None
    start_date: str
    end_date: str


class Conflict(BaseModel):
    """One (user, conflicting task) pair."""

    user_id: str
    user_name: str
    conflicting_task: ConflictingTask


class ConflictReport(BaseModel):
    """Result of an overlap check. Computed on demand, never persisted."""

    has_conflicts: bool = False
    conflicts: List[Conflict] = Field(default_factory=list)
    conflict_message: str = ""
