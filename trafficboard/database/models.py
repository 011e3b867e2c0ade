"""SQLAlchemy database models for trafficboard's local overrides."""

from datetime import datetime
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, JSON, Integer

from trafficboard.database.database import Base
from trafficboard.models.bug_report import BugReport, ReporterInfo
from trafficboard.models.preferences import (
    ClientColor,
    FilterPreferences,
    UserPreferences,
)


class ClientColorDB(Base):
    """Explicit display color for a client (keyed by Notion client id)."""

    __tablename__ = "client_colors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(String, nullable=False, unique=True, index=True)
    client_name = Column(String, nullable=False, index=True)
    color = Column(String, nullable=False)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self) -> ClientColor:
        """Convert database model to Pydantic model."""
        return ClientColor(
            client_id=self.client_id,
            client_name=self.client_name,
            color=self.color,
            created_by=self.created_by,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class UserPreferencesDB(Base):
    """Calendar preferences of one user."""

    __tablename__ = "user_preferences"

    user_id = Column(String, primary_key=True)
    visible_properties = Column(JSON, nullable=False, default=list)
    default_view = Column(String, nullable=False)
    filter_preferences = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self) -> UserPreferences:
        """Convert database model to Pydantic model."""
        return UserPreferences(
            user_id=self.user_id,
            visible_properties=list(self.visible_properties or []),
            default_view=self.default_view,
            filter_preferences=FilterPreferences(**(self.filter_preferences or {})),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, preferences: UserPreferences) -> "UserPreferencesDB":
        """Create database model from Pydantic model."""
        return cls(
            user_id=preferences.user_id,
            visible_properties=list(preferences.visible_properties),
            default_view=preferences.default_view,
            filter_preferences=preferences.filter_preferences.model_dump(),
        )


class StoreConfigDB(Base):
    """A persisted Notion configuration. At most one row is active."""

    __tablename__ = "store_configs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False, default="default")
    api_key_enc = Column(String, nullable=False)
    users_database_id = Column(String, nullable=False)
    clients_database_id = Column(String, nullable=False)
    projects_database_id = Column(String, nullable=False)
    tasks_database_id = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=False, index=True)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class BugReportDB(Base):
    """A support ticket filed from the calendar UI."""

    __tablename__ = "bug_reports"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(200), nullable=False)
    description = Column(String(2000), nullable=False)
    screenshots = Column(JSON, nullable=False, default=list)
    reporter_id = Column(String, nullable=False, index=True)
    reporter_email = Column(String, nullable=False)
    reporter_name = Column(String, nullable=False)
    user_agent = Column(String, nullable=False, default="")
    current_url = Column(String, nullable=False, default="")
    status = Column(String, nullable=False, default="open", index=True)
    priority = Column(String, nullable=False, default="medium", index=True)
    admin_notes = Column(String(1000), nullable=False, default="")
    assigned_to = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self) -> BugReport:
        """Convert database model to Pydantic model."""
        return BugReport(
            id=self.id,
            title=self.title,
            description=self.description,
            screenshots=list(self.screenshots or []),
            reporter=ReporterInfo(
                user_id=self.reporter_id,
                email=self.reporter_email,
                name=self.reporter_name,
                user_agent=self.user_agent or "",
                current_url=self.current_url or "",
            ),
            status=self.status,
            priority=self.priority,
            admin_notes=self.admin_notes or "",
            assigned_to=self.assigned_to,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
