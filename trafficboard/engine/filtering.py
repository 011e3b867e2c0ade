"""In-memory filtering of enriched calendar tasks.

All criteria are conjunctive; an empty criterion imposes no constraint.
"""

from typing import List, Optional

from trafficboard.models.constants import COMPLETED_STATUSES
from trafficboard.models.preferences import FilterPreferences
from trafficboard.models.task import EnrichedTask


def is_completed(status: Optional[str]) -> bool:
    return status in COMPLETED_STATUSES


def matches_filters(task: EnrichedTask, criteria: FilterPreferences) -> bool:
    """Whether one enriched task satisfies every criterion."""
    if criteria.selected_creatives:
        if not any(name in criteria.selected_creatives for name in task.assigned_users_names):
            return False

    if criteria.selected_clients and task.client_name not in criteria.selected_clients:
        return False

    if criteria.selected_projects and task.project_name not in criteria.selected_projects:
        return False

    if not criteria.show_completed and is_completed(task.status):
        return False

    return True


def filter_tasks(tasks: List[EnrichedTask], criteria: Optional[FilterPreferences] = None) -> List[EnrichedTask]:
    """Filter enriched tasks, preserving order.

    Args:
        tasks: Already-enriched tasks
        criteria: Filter criteria (None behaves like default criteria: completed tasks hidden)

    Returns:
        Tasks satisfying all criteria
    """
    criteria = criteria or FilterPreferences()
    return [task for task in tasks if matches_filters(task, criteria)]
