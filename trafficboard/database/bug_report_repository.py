"""Repository for support tickets."""

import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import asc, desc, func
from sqlalchemy.orm import Session

from trafficboard.database.models import BugReportDB
from trafficboard.exceptions import ValidationError
from trafficboard.models.bug_report import BugReport, BugReportCreate, BugReportPage, BugReportStats, BugReportUpdate

logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(days=7)

_SORTABLE_COLUMNS = {
    "created_at": BugReportDB.created_at,
    "updated_at": BugReportDB.updated_at,
    "status": BugReportDB.status,
    "priority": BugReportDB.priority,
    "title": BugReportDB.title,
}


class BugReportRepository:
    """Repository for BugReport database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _get_row(self, report_id: str) -> Optional[BugReportDB]:
        return self.db.query(BugReportDB).filter(BugReportDB.id == report_id).first()

    def create(self, data: BugReportCreate) -> BugReport:
        """File a new ticket (status open)."""
        try:
            row = BugReportDB(
                title=data.title,
                description=data.description,
                screenshots=list(data.screenshots),
                reporter_id=data.reporter.user_id,
                reporter_email=data.reporter.email,
                reporter_name=data.reporter.name,
                user_agent=data.reporter.user_agent,
                current_url=data.reporter.current_url,
                priority=data.priority,
            )
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.info(f"Created bug report {row.id} from {data.reporter.user_id}: {data.title[:50]}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create bug report: {type(e).__name__}: {str(e)}")
            raise

    def get(self, report_id: str) -> Optional[BugReport]:
        row = self._get_row(report_id)
        return row.to_pydantic() if row else None

    def list_reports(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        reporter_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> BugReportPage:
        """One page of tickets matching every given filter.

        Raises:
            ValidationError: On an unknown sort column or order, or a page/limit below 1
        """
        column = _SORTABLE_COLUMNS.get(sort_by)
        if column is None:
            raise ValidationError(f"Cannot sort bug reports by '{sort_by}'")
        if sort_order not in ("asc", "desc"):
            raise ValidationError("sort_order must be 'asc' or 'desc'")
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be at least 1")

        query = self.db.query(BugReportDB)
        if status:
            query = query.filter(BugReportDB.status == status)
        if priority:
            query = query.filter(BugReportDB.priority == priority)
        if reporter_id:
            query = query.filter(BugReportDB.reporter_id == reporter_id)

        total = query.count()
        order = desc(column) if sort_order == "desc" else asc(column)
        rows = query.order_by(order).offset((page - 1) * limit).limit(limit).all()
        total_pages = math.ceil(total / limit)
        return BugReportPage(
            items=[row.to_pydantic() for row in rows],
            current_page=page,
            total_pages=total_pages,
            total_items=total,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
            items_per_page=limit,
        )

    def list_for_reporter(self, reporter_id: str, status: Optional[str] = None,
                          page: int = 1, limit: int = 10) -> BugReportPage:
        """A reporter's own tickets, newest first."""
        return self.list_reports(status=status, reporter_id=reporter_id, page=page, limit=limit)

    def update(self, report_id: str, updates: BugReportUpdate) -> Optional[BugReport]:
        """Apply the provided triage fields. Returns None when the ticket does not exist."""
        row = self._get_row(report_id)
        if row is None:
            return None
        changes = updates.model_dump(exclude_unset=True)
        try:
            if changes.get("status"):
                row.status = changes["status"]
            if changes.get("priority"):
                row.priority = changes["priority"]
            if "admin_notes" in changes:
                row.admin_notes = changes["admin_notes"] or ""
            if "assigned_to" in changes:
                row.assigned_to = changes["assigned_to"] or None
            self.db.commit()
            self.db.refresh(row)
            logger.info(f"Updated bug report {report_id}: {sorted(changes)}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update bug report {report_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, report_id: str) -> bool:
        """Delete a ticket. Returns False when it does not exist."""
        row = self._get_row(report_id)
        if row is None:
            return False
        try:
            self.db.delete(row)
            self.db.commit()
            logger.info(f"Deleted bug report {report_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete bug report {report_id}: {type(e).__name__}: {str(e)}")
            raise

    def stats(self, now: Optional[datetime] = None) -> BugReportStats:
        """Counts overall, filed in the last seven days, by status and by priority."""
        total = self.db.query(BugReportDB).count()
        if total == 0:
            return BugReportStats()
        now = now or datetime.utcnow()
        recent = self.db.query(BugReportDB).filter(BugReportDB.created_at >= now - RECENT_WINDOW).count()
        by_status = self.db.query(BugReportDB.status, func.count(BugReportDB.id)).group_by(BugReportDB.status).all()
        by_priority = (
            self.db.query(BugReportDB.priority, func.count(BugReportDB.id))
            .group_by(BugReportDB.priority)
            .all()
        )
        return BugReportStats(
            total=total,
            recent=recent,
            by_status={status: count for status, count in by_status},
            by_priority={priority: count for priority, count in by_priority},
        )
