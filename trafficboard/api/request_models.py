"""Request/response models for the calendar, preferences and settings endpoints."""

from typing import List, Optional
from pydantic import BaseModel, Field

from trafficboard.models.preferences import ClientColorInput, FilterPreferences
from trafficboard.models.store_config import StoreDatabaseIds


class TaskFilterRequest(BaseModel):
    """Request model for filtering the tasks of a window."""
    start: str = Field(..., description="Window start (ISO date or timestamp)")
    end: str = Field(..., description="Window end (ISO date or timestamp)")
    view: Optional[str] = Field(None, description="Calendar view, used to pre-warm adjacent windows")
    filters: FilterPreferences = Field(default_factory=FilterPreferences)


class OverlapCheckRequest(BaseModel):
    """Request model for a scheduling conflict check."""
    assigned_users: List[str] = Field(default_factory=list)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    exclude_task_id: Optional[str] = Field(None, description="Task under edit")


class ClientColorsUpdate(BaseModel):
    colors: List[ClientColorInput]
    user_id: Optional[str] = None


class StoreConfigUpdate(BaseModel):
    """Request model for activating a stored Notion configuration."""
    api_key: str
    database_ids: StoreDatabaseIds
    name: str = "default"
    user_id: Optional[str] = None
