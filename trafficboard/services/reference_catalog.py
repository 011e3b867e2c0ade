"""Read-through accessor for the reference collections (users, clients, projects)."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from trafficboard.exceptions import StoreFetchError
from trafficboard.integrations.notion import DocumentStore, call_store
from trafficboard.integrations.notion_pages import (
    ClientProperty,
    ProjectProperty,
    TaskProperty,
    UserProperty,
    page_to_client,
    page_to_project,
    page_to_user,
)
from trafficboard.models.constants import FALLBACK_STATUS_OPTIONS
from trafficboard.models.reference import Client, Project, StatusOption, User
from trafficboard.models.store_config import StoreDatabaseIds

logger = logging.getLogger(__name__)


def _sort_by(property_name: str) -> List[dict]:
    return [{"property": property_name, "direction": "ascending"}]


@dataclass
class ReferenceMaps:
    """Id -> display name lookups used to join tasks against the catalog."""

    clients: Dict[str, str] = field(default_factory=dict)
    projects: Dict[str, str] = field(default_factory=dict)
    users: Dict[str, str] = field(default_factory=dict)
    project_clients: Dict[str, Optional[str]] = field(default_factory=dict)


def _name_map(entities) -> Dict[str, str]:
    return {entity.id: entity.name for entity in entities if entity.name}


class ReferenceCatalog:
    """Lists users, clients and projects from the store.

    No caching at this layer: every call queries the store. Failures surface
    as StoreFetchError.
    """

    def __init__(self, store: DocumentStore, database_ids: StoreDatabaseIds):
        self.store = store
        self.database_ids = database_ids

    async def list_users(self) -> List[User]:
        pages = await call_store(
            "fetch users",
            self.store.query(self.database_ids.users, sorts=_sort_by(UserProperty.NAME)),
        )
        return [page_to_user(page) for page in pages]

    async def list_clients(self) -> List[Client]:
        pages = await call_store(
            "fetch clients",
            self.store.query(self.database_ids.clients, sorts=_sort_by(ClientProperty.NAME)),
        )
        return [page_to_client(page) for page in pages]

    async def _list_raw_projects(self) -> List[Project]:
        pages = await call_store(
            "fetch projects",
            self.store.query(self.database_ids.projects, sorts=_sort_by(ProjectProperty.NAME)),
        )
        return [page_to_project(page) for page in pages]

    async def list_projects(self) -> List[Project]:
        """List projects with their first client resolved into `client`.

        When the client relation cannot be resolved the value already decoded
        from the page (a rollup, if any) is kept.
        """
        projects, clients = await asyncio.gather(self._list_raw_projects(), self.list_clients())
        return denormalize_project_clients(projects, _name_map(clients))

    async def reference_maps(self) -> ReferenceMaps:
        """Fetch all three collections concurrently and build the name lookups."""
        users, clients, projects = await asyncio.gather(
            self.list_users(),
            self.list_clients(),
            self._list_raw_projects(),
        )
        clients_map = _name_map(clients)
        projects = denormalize_project_clients(projects, clients_map)
        logger.debug(
            f"Loaded reference maps: {len(users)} users, {len(clients)} clients, {len(projects)} projects"
        )
        return ReferenceMaps(
            clients=clients_map,
            projects=_name_map(projects),
            users=_name_map(users),
            project_clients={project.id: project.client for project in projects},
        )

    async def status_options(self) -> List[StatusOption]:
        """Status options of the task database.

        Falls back to the three default statuses when the schema has no
        status property or cannot be read.
        """
        try:
            schema = await call_store(
                "fetch status options",
                self.store.retrieve_database(self.database_ids.tasks),
            )
        except StoreFetchError as e:
            logger.warning(f"Using fallback status options: {type(e).__name__}: {str(e)}")
            return [StatusOption(**option) for option in FALLBACK_STATUS_OPTIONS]

        status_prop = (schema.get("properties") or {}).get(TaskProperty.STATUS) or {}
        if status_prop.get("type") != "status":
            return [StatusOption(**option) for option in FALLBACK_STATUS_OPTIONS]
        return [
            StatusOption(id=option["id"], name=option["name"], color=option.get("color"))
            for option in (status_prop.get("status") or {}).get("options", [])
        ]


def denormalize_project_clients(projects: List[Project], clients_map: Dict[str, str]) -> List[Project]:
    """Fill each project's `client` with the name of its first resolvable client.

    Projects whose client ids resolve to nothing keep their rollup value.
    """
    resolved = []
    for project in projects:
        client_name = next((clients_map[c] for c in project.clients if c in clients_map), None)
        resolved.append(project.model_copy(update={"client": client_name or project.client}))
    return resolved
