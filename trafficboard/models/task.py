"""Task data models for trafficboard."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class DatePeriod(BaseModel):
    """A Notion date value: ISO start with an optional ISO end."""

    start: Optional[str] = Field(None, description="ISO date or timestamp")
    end: Optional[str] = Field(None, description="ISO date or timestamp (null for single dates)")


class FileRef(BaseModel):
    """A file attached to a Notion page (internally or externally hosted)."""

    name: Optional[str] = None
    url: Optional[str] = None


class PersonRef(BaseModel):
    """A Notion workspace member."""

    id: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class Task(BaseModel):
    """A task decoded from the Notion task database (not yet enriched)."""

    id: str = Field(..., description="Notion page id")
    name: str = Field(..., description="Task name")
    status: Optional[str] = Field(None, description="Status display string")
    work_period: Optional[DatePeriod] = Field(None, description="Scheduled period (null when unassigned)")
    project: List[str] = Field(default_factory=list, description="Related project ids")
    client: List[str] = Field(default_factory=list, description="Client rollup values (ids or names)")
    client_group: Optional[Any] = Field(None, description="Client group formula")
    assigned_users: List[str] = Field(default_factory=list, description="Assigned user ids")
    profile_names: List[Any] = Field(default_factory=list, description="Notion profile rollup of assigned users")
    team: List[Any] = Field(default_factory=list, description="Team rollup")
    billed_days: Optional[float] = None
    spent_days: Optional[float] = None
    add_to_calendar: bool = False
    add_to_retro_planning: bool = False
    google_event_id: Optional[str] = None
    project_lead: List[Any] = Field(default_factory=list, description="Project lead rollup")
    project_status: List[Any] = Field(default_factory=list, description="Project status rollup")
    notes: Optional[str] = None
    created_time: Optional[str] = None
    last_edited_time: Optional[str] = None

    @property
    def is_scheduled(self) -> bool:
        return bool(self.work_period and self.work_period.start)


class ExtendedProps(BaseModel):
    """Display properties carried alongside a calendar event."""

    client: Optional[str] = None
    project: Optional[str] = None
    assigned_users: List[str] = Field(default_factory=list)
    status: Optional[str] = None
    team: List[Any] = Field(default_factory=list)


class EnrichedTask(Task):
    """Task with resolved names, display color and calendar-event aliases."""

    client_name: Optional[str] = None
    client_names: List[str] = Field(default_factory=list)
    project_name: Optional[str] = None
    project_names: List[str] = Field(default_factory=list)
    assigned_users_names: List[str] = Field(default_factory=list)
    client_color: str
    start: Optional[str] = None
    end: Optional[str] = None
    title: str
    extended_props: ExtendedProps = Field(default_factory=ExtendedProps)


class TaskCreate(BaseModel):
    """Input for creating a task. Requiredness is checked by the repository."""

    name: Optional[str] = None
    project_id: Optional[str] = None
    start_date: Optional[str] = Field(None, description="ISO date or timestamp")
    end_date: Optional[str] = Field(None, description="ISO date or timestamp")
    status: Optional[str] = None
    assigned_users: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class TaskUpdate(BaseModel):
    """Partial task update. Only fields explicitly set are sent to Notion."""

    name: Optional[str] = None
    project_id: Optional[str] = None
    status: Optional[str] = None
    assigned_users: Optional[List[str]] = None
    notes: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    work_period: Optional[DatePeriod] = None

    def present_fields(self) -> Dict[str, Any]:
        """Fields the caller actually provided (presence, not value)."""
        return {name: getattr(self, name) for name in self.model_fields_set}
