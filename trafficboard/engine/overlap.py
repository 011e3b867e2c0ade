"""Scheduling conflict detection.

Two periods conflict when they overlap as half-open intervals:
``start < existing_end and end > existing_start``. Back-to-back periods
(one ending exactly when the other starts) do not conflict, and a
zero-duration proposal never conflicts.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from trafficboard.engine.periods import format_clock, parse_timestamp
from trafficboard.models.conflict import Conflict, ConflictingTask, ConflictReport
from trafficboard.models.task import Task


def intervals_overlap(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    """Half-open interval overlap test."""
    if start >= end:
        return False
    return start < other_end and end > other_start


def _first_name(ids: List[str], names: Dict[str, str]) -> Optional[str]:
    if not ids:
        return None
    return names.get(ids[0], ids[0])


def find_conflicts(
    user_ids: Iterable[str],
    start: datetime,
    end: datetime,
    tasks: List[Task],
    users_map: Dict[str, str],
    projects_map: Dict[str, str],
    exclude_task_id: Optional[str] = None,
) -> ConflictReport:
    """Find existing assignments that overlap a proposed period.

    Args:
        user_ids: Users the proposed task would be assigned to
        start: Proposed start (naive UTC)
        end: Proposed end (naive UTC)
        tasks: Scheduled tasks to check against
        users_map: User id -> name
        projects_map: Project id -> name
        exclude_task_id: Task under edit (never conflicts with itself)

    Returns:
        ConflictReport (has_conflicts False with an empty message when nothing overlaps)
    """
    conflicts: List[Conflict] = []

    for user_id in user_ids:
        user_name = users_map.get(user_id, user_id)
        for existing in tasks:
            if exclude_task_id and existing.id == exclude_task_id:
                continue
            if user_id not in existing.assigned_users:
                continue
            period = existing.work_period
            if not period or not period.start or not period.end:
                continue

            if intervals_overlap(start, end, parse_timestamp(period.start), parse_timestamp(period.end)):
                conflicts.append(
                    Conflict(
                        user_id=user_id,
                        user_name=user_name,
                        conflicting_task=ConflictingTask(
                            id=existing.id,
                            name=existing.name,
                            project_name=_first_name(existing.project, projects_map),
                            start_date=period.start,
                            end_date=period.end,
                        ),
                    )
                )

    return ConflictReport(
        has_conflicts=bool(conflicts),
        conflicts=conflicts,
        conflict_message=format_conflict_message(conflicts),
    )


def format_conflict_message(conflicts: List[Conflict]) -> str:
    """One sentence per conflict, comma-joined."""
    return ", ".join(
        f'{c.user_name} a déjà "{c.conflicting_task.name}" de '
        f"{format_clock(c.conflicting_task.start_date)} à {format_clock(c.conflicting_task.end_date)}"
        for c in conflicts
    )
