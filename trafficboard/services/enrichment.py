"""Enrichment service: joins tasks against the reference catalog for calendar display.

Resolves relation ids into names (client, project, assigned users), picks a
display color per client and shapes each task as a calendar event. Also hosts
the scheduling conflict check.

Partial-join failures never fail a listing: unresolved ids pass through as
they are (with the default color) and a color map that cannot be read
degrades to generated colors.
"""

import asyncio
import logging
from typing import Callable, Dict, List, Optional, Tuple

from trafficboard.engine.colors import color_for
from trafficboard.engine.filtering import filter_tasks
from trafficboard.engine.overlap import find_conflicts
from trafficboard.engine.periods import GRANULARITY_MONTH, GRANULARITY_WEEK, normalize_period, parse_timestamp
from trafficboard.exceptions import ValidationError
from trafficboard.integrations.notion import NotionClient
from trafficboard.models.conflict import ConflictReport
from trafficboard.models.preferences import CalendarView, FilterPreferences
from trafficboard.models.reference import Client, Project, StatusOption, User
from trafficboard.models.store_config import StoreConfig
from trafficboard.models.task import EnrichedTask, ExtendedProps, Task, TaskCreate, TaskUpdate
from trafficboard.services.reference_catalog import ReferenceCatalog, ReferenceMaps
from trafficboard.services.task_cache import TaskCache
from trafficboard.services.task_repository import TaskRepository

logger = logging.getLogger(__name__)

ColorMapLoader = Callable[[], Dict[str, str]]

_VIEW_GRANULARITY = {
    CalendarView.WEEK.value: GRANULARITY_WEEK,
    CalendarView.MONTH.value: GRANULARITY_MONTH,
    GRANULARITY_WEEK: GRANULARITY_WEEK,
    GRANULARITY_MONTH: GRANULARITY_MONTH,
}


def granularity_for_view(view: Optional[str]) -> Optional[str]:
    """Pre-warm granularity for a calendar view name (None when unknown)."""
    if not view:
        return None
    return _VIEW_GRANULARITY.get(view)


def resolve_names(ids: Optional[List[str]], id_to_name: Dict[str, str]) -> Optional[List[str]]:
    """Map ids to names. Unresolved ids are kept as-is; None stays None."""
    if ids is None:
        return None
    return [id_to_name.get(item, item) for item in ids if item]


def resolve_client_name(
    task: Task,
    clients_map: Dict[str, str],
    project_clients: Dict[str, Optional[str]],
) -> Tuple[Optional[str], List[str]]:
    """Resolve a task's client name.

    The client rollup is used first. When it is empty, the client comes from
    the task's first project (as denormalized by the catalog).

    Returns:
        (client_name, client_names)
    """
    client_names = resolve_names(task.client, clients_map) or []
    if client_names:
        return client_names[0], client_names

    if task.project:
        fallback = project_clients.get(task.project[0])
        if fallback:
            return fallback, [fallback]

    return None, []


def client_color_key(client_name: Optional[str], clients_map: Dict[str, str]) -> Optional[str]:
    """The name to pick a color by, or None when the client did not resolve.

    Unresolved relation ids and rollup values naming no known client are
    still displayed, but they take the default color.
    """
    if client_name and client_name in clients_map.values():
        return client_name
    return None


def enrich(task: Task, maps: ReferenceMaps, color_map: Dict[str, str]) -> EnrichedTask:
    """Build the calendar-ready view of one task."""
    client_name, client_names = resolve_client_name(task, maps.clients, maps.project_clients)
    project_names = resolve_names(task.project, maps.projects) or []
    project_name = project_names[0] if project_names else None
    user_names = resolve_names(task.assigned_users, maps.users) or []
    period = task.work_period

    return EnrichedTask(
        **task.model_dump(),
        client_name=client_name,
        client_names=client_names,
        project_name=project_name,
        project_names=project_names,
        assigned_users_names=user_names,
        client_color=color_for(client_color_key(client_name, maps.clients), color_map),
        start=period.start if period else None,
        end=period.end if period else None,
        title=task.name,
        extended_props=ExtendedProps(
            client=client_name,
            project=project_name,
            assigned_users=user_names,
            status=task.status,
            team=task.team,
        ),
    )


class EnrichmentService:
    """Calendar-facing facade over the task repository and reference catalog.

    Constructed once at process start (see `from_config`) and closed on
    shutdown with `aclose`.
    """

    def __init__(
        self,
        repository: TaskRepository,
        catalog: ReferenceCatalog,
        color_loader: Optional[ColorMapLoader] = None,
        owned_client: Optional[NotionClient] = None,
    ):
        self.repository = repository
        self.catalog = catalog
        self.color_loader = color_loader
        self._owned_client = owned_client

    @classmethod
    def from_config(
        cls,
        config: StoreConfig,
        color_loader: Optional[ColorMapLoader] = None,
        cache: Optional[TaskCache] = None,
    ) -> "EnrichmentService":
        """Build the service and its Notion client from the active store configuration."""
        client = NotionClient(config.api_key)
        catalog = ReferenceCatalog(client, config.database_ids)
        repository = TaskRepository(client, config.database_ids.tasks, cache)
        logger.info(f"Enrichment service configured from {config.source}")
        return cls(repository, catalog, color_loader, owned_client=client)

    async def aclose(self) -> None:
        await self.repository.cache.aclose()
        if self._owned_client is not None:
            await self._owned_client.aclose()

    def load_color_map(self) -> Dict[str, str]:
        """Explicit client colors by client name; {} when unavailable."""
        if self.color_loader is None:
            return {}
        try:
            return dict(self.color_loader())
        except Exception as e:
            logger.warning(f"Client colors unavailable, using generated colors: {type(e).__name__}: {str(e)}")
            return {}

    async def _enrich_all(self, tasks: List[Task]) -> List[EnrichedTask]:
        maps = await self.catalog.reference_maps()
        color_map = await asyncio.to_thread(self.load_color_map)
        return [enrich(task, maps, color_map) for task in tasks]

    async def enrich_task(self, task: Task) -> EnrichedTask:
        enriched = await self._enrich_all([task])
        return enriched[0]

    async def tasks_with_colors(self, start: str, end: str, granularity: Optional[str] = None) -> List[EnrichedTask]:
        """Enriched tasks intersecting [start, end].

        Args:
            start: Window start
            end: Window end
            granularity: Calendar view or granularity ("timeGridWeek", "dayGridMonth",
                "week", "month"); when given, the adjacent windows are pre-warmed

        Raises:
            ValidationError: If the window is malformed
            StoreFetchError: If the tasks or the reference collections cannot be fetched
        """
        tasks = await self.repository.tasks_in_window(start, end)
        warm = granularity_for_view(granularity)
        if warm:
            self.repository.prewarm(start, end, warm)
        elif granularity:
            logger.debug(f"No pre-warm for unknown view {granularity!r}")
        return await self._enrich_all(tasks)

    async def unassigned_tasks_with_colors(self) -> List[EnrichedTask]:
        tasks = await self.repository.unassigned_tasks()
        return await self._enrich_all(tasks)

    async def get_task(self, task_id: str) -> EnrichedTask:
        return await self.enrich_task(await self.repository.get_task(task_id))

    async def create_task(self, data: TaskCreate) -> EnrichedTask:
        """Create a task and return it enriched."""
        return await self.enrich_task(await self.repository.create_task(data))

    async def update_task(self, task_id: str, updates: TaskUpdate) -> EnrichedTask:
        """Update a task and return it enriched."""
        return await self.enrich_task(await self.repository.update_task(task_id, updates))

    async def delete_task(self, task_id: str) -> None:
        await self.repository.delete_task(task_id)

    @staticmethod
    def filter_tasks(tasks: List[EnrichedTask], criteria: Optional[FilterPreferences] = None) -> List[EnrichedTask]:
        return filter_tasks(tasks, criteria)

    async def check_overlap(
        self,
        user_ids: List[str],
        start_date: Optional[str],
        end_date: Optional[str],
        exclude_task_id: Optional[str] = None,
    ) -> ConflictReport:
        """Check whether assigning `user_ids` over [start, end) clashes with existing tasks.

        Date-only bounds are expanded to the working day like on create.

        Returns:
            ConflictReport (never raises for the no-conflict case)

        Raises:
            ValidationError: If the period is missing, malformed or inverted
            StoreFetchError: If scheduled tasks or users cannot be fetched
        """
        period = normalize_period(start_date, end_date)
        if period is None:
            raise ValidationError("Start and end dates are required")
        if not user_ids:
            return ConflictReport()

        tasks, maps = await asyncio.gather(
            self.repository.scheduled_tasks(),
            self.catalog.reference_maps(),
        )
        report = find_conflicts(
            user_ids,
            parse_timestamp(period.start),
            parse_timestamp(period.end),
            tasks,
            maps.users,
            maps.projects,
            exclude_task_id=exclude_task_id,
        )
        if report.has_conflicts:
            logger.info(f"Overlap check found {len(report.conflicts)} conflict(s)")
        return report

    async def list_users(self) -> List[User]:
        return await self.catalog.list_users()

    async def list_clients(self) -> List[Client]:
        return await self.catalog.list_clients()

    async def list_projects(self) -> List[Project]:
        return await self.catalog.list_projects()

    async def status_options(self) -> List[StatusOption]:
        return await self.catalog.status_options()
