"""Notion store configuration model."""

from typing import Optional
from pydantic import BaseModel, Field


class StoreDatabaseIds(BaseModel):
    """Notion database ids for each mirrored collection."""

    users: str
    clients: str
    projects: str
    tasks: str


class StoreConfig(BaseModel):
    """Active configuration used to build the Notion client."""

    api_key: str = Field(..., description="Notion integration token (never logged)")
    database_ids: StoreDatabaseIds
    source: str = Field("environment", description="'database' or 'environment'")
    created_by: Optional[str] = None
