"""Local override models: per-user preferences and per-client display colors."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from trafficboard.models.constants import HEX_COLOR_PATTERN


class VisibleProperty(str, Enum):
    """Task properties a user can choose to display on calendar events."""
    NAME = "name"
    CLIENT = "client"
    STATUS = "status"
    ASSIGNEE = "assignee"
    PROJECT = "project"
    DUE_DATE = "dueDate"
    PRIORITY = "priority"
    TAGS = "tags"


class CalendarView(str, Enum):
    """Calendar view granularity."""
    WEEK = "timeGridWeek"
    MONTH = "dayGridMonth"


DEFAULT_VISIBLE_PROPERTIES = [
    VisibleProperty.NAME,
    VisibleProperty.CLIENT,
    VisibleProperty.STATUS,
    VisibleProperty.ASSIGNEE,
]


class FilterPreferences(BaseModel):
    """Calendar filter criteria. Empty lists impose no constraint."""

    selected_creatives: List[str] = Field(default_factory=list, description="Assigned user names")
    selected_clients: List[str] = Field(default_factory=list, description="Client names")
    selected_projects: List[str] = Field(default_factory=list, description="Project names")
    show_completed: bool = Field(False, description="Include tasks with a completed-equivalent status")


class UserPreferences(BaseModel):
    """Per-user calendar preferences."""

    user_id: str
    visible_properties: List[VisibleProperty] = Field(default_factory=lambda: list(DEFAULT_VISIBLE_PROPERTIES))
    default_view: CalendarView = CalendarView.WEEK
    filter_preferences: FilterPreferences = Field(default_factory=FilterPreferences)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class UserPreferencesUpdate(BaseModel):
    """Partial preferences update."""

    visible_properties: Optional[List[VisibleProperty]] = None
    default_view: Optional[CalendarView] = None
    filter_preferences: Optional[FilterPreferences] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class ClientColorInput(BaseModel):
    """An explicit color assignment for a client."""

    client_id: str
    client_name: str
    color: str = Field(..., pattern=HEX_COLOR_PATTERN, description="Hex color (#RGB or #RRGGBB)")


class ClientColor(ClientColorInput):
    """A persisted client color."""

    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
