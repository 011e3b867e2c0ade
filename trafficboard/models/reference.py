"""Reference entities mirrored from Notion (users, clients, projects)."""

from typing import Any, List, Optional
from pydantic import BaseModel, Field

from trafficboard.models.task import DatePeriod, FileRef


class User(BaseModel):
    """An assignable worker."""

    id: str
    name: Optional[str] = None
    profile_photo: List[FileRef] = Field(default_factory=list)
    team: List[str] = Field(default_factory=list, description="Related team ids")
    role: List[str] = Field(default_factory=list)
    email: Optional[str] = None


class Client(BaseModel):
    """A client of the agency."""

    id: str
    name: Optional[str] = None
    type: List[str] = Field(default_factory=list)
    contact_name: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    contact_email: Optional[str] = None


class Project(BaseModel):
    """A project, with its client relation denormalized into a display name."""

    id: str
    name: Optional[str] = None
    clients: List[str] = Field(default_factory=list, description="Related client ids")
    client: Optional[str] = Field(None, description="Resolved name of the first client")
    type: List[str] = Field(default_factory=list)
    status: Optional[str] = None
    start_date: Optional[DatePeriod] = None
    end_date: Optional[DatePeriod] = None
    drive_url: Optional[str] = None
    emoji: Optional[str] = None
    tasks: List[Any] = Field(default_factory=list)


class StatusOption(BaseModel):
    """A selectable task status."""

    id: str
    name: str
    color: Optional[str] = None
