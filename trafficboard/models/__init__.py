"""Data models for trafficboard."""

from trafficboard.models.task import (
    DatePeriod,
    FileRef,
    PersonRef,
    Task,
    EnrichedTask,
    ExtendedProps,
    TaskCreate,
    TaskUpdate,
)
from trafficboard.models.reference import User, Client, Project, StatusOption
from trafficboard.models.conflict import Conflict, ConflictingTask, ConflictReport
from trafficboard.models.preferences import (
    CalendarView,
    ClientColor,
    ClientColorInput,
    FilterPreferences,
    UserPreferences,
    UserPreferencesUpdate,
    VisibleProperty,
)
from trafficboard.models.store_config import StoreConfig, StoreDatabaseIds

__all__ = [
    "DatePeriod",
    "FileRef",
    "PersonRef",
    "Task",
    "EnrichedTask",
    "ExtendedProps",
    "TaskCreate",
    "TaskUpdate",
    "User",
    "Client",
    "Project",
    "StatusOption",
    "Conflict",
    "ConflictingTask",
    "ConflictReport",
    "CalendarView",
    "ClientColor",
    "ClientColorInput",
    "FilterPreferences",
    "UserPreferences",
    "UserPreferencesUpdate",
    "VisibleProperty",
    "StoreConfig",
    "StoreDatabaseIds",
]
