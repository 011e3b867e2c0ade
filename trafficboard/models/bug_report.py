"""Support ticket (bug report) models."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class BugReportStatus(str, Enum):
    """Ticket lifecycle state."""
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class BugReportPriority(str, Enum):
    """Ticket priority."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ReporterInfo(BaseModel):
    """Who filed the ticket and from where."""

    user_id: str
    email: str
    name: str
    user_agent: str = ""
    current_url: str = ""


class BugReportCreate(BaseModel):
    """Input for filing a ticket. Screenshots are URLs of already uploaded files."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    screenshots: List[str] = Field(default_factory=list)
    priority: BugReportPriority = BugReportPriority.MEDIUM
    reporter: ReporterInfo

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        str_strip_whitespace = True


class BugReportUpdate(BaseModel):
    """Triage update. Only fields explicitly set are applied."""

    status: Optional[BugReportStatus] = None
    priority: Optional[BugReportPriority] = None
    admin_notes: Optional[str] = Field(None, max_length=1000)
    assigned_to: Optional[str] = Field(None, description="User id; null or empty unassigns")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class BugReport(BaseModel):
    """A persisted ticket."""

    id: str
    title: str
    description: str
    screenshots: List[str] = Field(default_factory=list)
    reporter: ReporterInfo
    status: BugReportStatus = BugReportStatus.OPEN
    priority: BugReportPriority = BugReportPriority.MEDIUM
    admin_notes: str = ""
    assigned_to: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class BugReportPage(BaseModel):
    """One page of tickets with pagination metadata."""

    items: List[BugReport] = Field(default_factory=list)
    current_page: int
    total_pages: int
    total_items: int
    has_next_page: bool
    has_prev_page: bool
    items_per_page: int


class BugReportStats(BaseModel):
    """Ticket counts overall, over the last week, by status and by priority."""

    total: int = 0
    recent: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_priority: Dict[str, int] = Field(default_factory=dict)
