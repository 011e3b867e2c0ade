"""Task repository backed by the Notion task database.

Reads go through the TaskCache; every successful mutation invalidates it
before returning.
"""

import logging
import os
from datetime import timedelta
from typing import Any, Dict, List, Optional

from trafficboard.engine.periods import normalize_period, period_intersects, validate_period_order, window_bounds
from trafficboard.exceptions import ValidationError
from trafficboard.integrations.notion import DocumentStore, call_store
from trafficboard.integrations.notion_pages import TaskProperty, build_task_properties, page_to_task
from trafficboard.models.constants import DEFAULT_TASK_STATUS
from trafficboard.models.task import Task, TaskCreate, TaskUpdate
from trafficboard.services.task_cache import TaskCache

logger = logging.getLogger(__name__)

_PATCHABLE_FIELDS = ("name", "project_id", "status", "assigned_users", "notes")


def _period_filter(condition: Dict[str, Any]) -> dict:
    return {"property": TaskProperty.WORK_PERIOD, "date": condition}


class TaskRepository:
    """Repository for task operations against the external store."""

    def __init__(
        self,
        store: DocumentStore,
        database_id: str,
        cache: Optional[TaskCache] = None,
        lookback_days: Optional[int] = None,
    ):
        """Initialize the repository.

        Args:
            store: External document store
            database_id: Notion task database id
            cache: Shared task cache (a private one when None)
            lookback_days: Lower bound on period starts for window queries, in days
                before the window start. If None, reads TASK_WINDOW_LOOKBACK_DAYS
                (unset means unbounded).
        """
        self.store = store
        self.database_id = database_id
        self.cache = cache or TaskCache()
        if lookback_days is None and os.getenv("TASK_WINDOW_LOOKBACK_DAYS"):
            lookback_days = int(os.getenv("TASK_WINDOW_LOOKBACK_DAYS"))
        self.lookback_days = lookback_days

    async def _query(self, operation: str, filter: dict, sorts: List[dict]) -> List[Task]:
        pages = await call_store(operation, self.store.query(self.database_id, filter=filter, sorts=sorts))
        return [page_to_task(page) for page in pages if not page.get("archived")]

    async def tasks_in_window(self, start: str, end: str) -> List[Task]:
        """Get scheduled tasks whose work period intersects [start, end].

        Args:
            start: Window start (ISO date or timestamp)
            end: Window end (ISO date or timestamp, inclusive)

        The store filter only bounds period starts from above, so a cache miss
        pages through every scheduled task starting before the window end.
        With `lookback_days` set, starts are also bounded from below; tasks that
        began earlier than that and still run into the window are then missed.

        Returns:
            Tasks sorted by period start

        Raises:
            ValidationError: If the window is malformed or inverted
            StoreFetchError: If the store query fails
        """
        lower, upper = window_bounds(start, end)
        if upper < lower:
            raise ValidationError("Window end cannot be before window start")

        cached = self.cache.get(start, end)
        if cached is not None:
            logger.debug(f"Cache hit for window {start}..{end} ({len(cached)} tasks)")
            return cached

        logger.debug(f"Cache miss for window {start}..{end}")
        generation = self.cache.generation
        conditions = [
            _period_filter({"is_not_empty": True}),
            _period_filter({"on_or_before": end}),
        ]
        if self.lookback_days is not None:
            earliest = (lower - timedelta(days=self.lookback_days)).date().isoformat()
            conditions.append(_period_filter({"on_or_after": earliest}))
        candidates = await self._query(
            f"fetch tasks between {start} and {end}",
            filter={"and": conditions},
            sorts=[{"property": TaskProperty.WORK_PERIOD, "direction": "ascending"}],
        )
        # The store only bounds the period start; intersection is exact here
        tasks = [task for task in candidates if period_intersects(task.work_period, start, end)]
        self.cache.put(start, end, tasks, generation=generation)
        return list(tasks)

    async def unassigned_tasks(self) -> List[Task]:
        """Get tasks with an empty work period, sorted by name.

        Raises:
            StoreFetchError: If the store query fails
        """
        cached = self.cache.get_unassigned()
        if cached is not None:
            logger.debug(f"Cache hit for unassigned tasks ({len(cached)} tasks)")
            return cached

        logger.debug("Cache miss for unassigned tasks")
        generation = self.cache.generation
        tasks = await self._query(
            "fetch unassigned tasks",
            filter=_period_filter({"is_empty": True}),
            sorts=[{"property": TaskProperty.NAME, "direction": "ascending"}],
        )
        tasks = [task for task in tasks if not task.is_scheduled]
        self.cache.put_unassigned(tasks, generation=generation)
        return list(tasks)

    async def scheduled_tasks(self) -> List[Task]:
        """Get every task with a non-empty work period (uncached)."""
        tasks = await self._query(
            "fetch scheduled tasks",
            filter=_period_filter({"is_not_empty": True}),
            sorts=[{"property": TaskProperty.WORK_PERIOD, "direction": "ascending"}],
        )
        return [task for task in tasks if task.is_scheduled]

    async def get_task(self, task_id: str) -> Task:
        """Retrieve a single task by page id (archived tasks stay addressable)."""
        page = await call_store(f"fetch task {task_id}", self.store.retrieve(task_id))
        return page_to_task(page)

    async def create_task(self, data: TaskCreate) -> Task:
        """Create a task.

        Args:
            data: Task input; name and project_id are required

        Returns:
            The created task as decoded from the store response

        Raises:
            ValidationError: On missing name/project or an invalid period (before any store call)
            StoreFetchError: If the store rejects the creation
        """
        if not data.name or not data.project_id:
            raise ValidationError("Task name and project are required")

        fields: Dict[str, Any] = {
            "name": data.name,
            "project_id": data.project_id,
            "status": data.status or DEFAULT_TASK_STATUS,
        }
        period = normalize_period(data.start_date, data.end_date)
        if period is not None:
            fields["work_period"] = period
        if data.assigned_users:
            fields["assigned_users"] = data.assigned_users
        if data.notes:
            fields["notes"] = data.notes

        page = await call_store(
            "create task",
            self.store.create(self.database_id, build_task_properties(fields)),
        )
        self.cache.invalidate_all()
        task = page_to_task(page)
        logger.info(f"Created task {task.id}: {task.name[:50]}")
        return task

    def _update_fields(self, updates: TaskUpdate) -> Dict[str, Any]:
        present = updates.present_fields()
        fields = {key: present[key] for key in _PATCHABLE_FIELDS if key in present}

        if "name" in fields and not fields["name"]:
            raise ValidationError("Task name cannot be empty")

        if "work_period" in present:
            period = present["work_period"]
            if period is None or not period.start:
                fields["work_period"] = None
            else:
                validate_period_order(period.start, period.end)
                fields["work_period"] = period
        elif "start_date" in present or "end_date" in present:
            fields["work_period"] = normalize_period(present.get("start_date"), present.get("end_date"))

        return fields

    async def update_task(self, task_id: str, updates: TaskUpdate) -> Task:
        """Patch the fields present in `updates`.

        A present field set to None clears the property where Notion allows it
        (a None work_period unschedules the task).

        Raises:
            ValidationError: If nothing would be patched or the period is invalid
            StoreFetchError: If the store rejects the update
        """
        properties = build_task_properties(self._update_fields(updates))
        if not properties:
            raise ValidationError("No task fields to update")

        page = await call_store(f"update task {task_id}", self.store.update(task_id, properties))
        self.cache.invalidate_all()
        logger.info(f"Updated task {task_id}: {', '.join(sorted(properties))}")
        return page_to_task(page)

    async def delete_task(self, task_id: str) -> None:
        """Soft-archive a task.

        Raises:
            StoreFetchError: If the store rejects the archive
        """
        await call_store(f"delete task {task_id}", self.store.archive(task_id))
        self.cache.invalidate_all()
        logger.info(f"Archived task {task_id}")

    def prewarm(self, start: str, end: str, granularity: str):
        """Schedule background fetches of the windows adjacent to [start, end]."""
        return self.cache.prewarm(start, end, granularity, self.tasks_in_window)
