"""Repository for per-user calendar preferences."""

import logging

from sqlalchemy.orm import Session

from trafficboard.database.models import UserPreferencesDB
from trafficboard.models.preferences import UserPreferences, UserPreferencesUpdate

logger = logging.getLogger(__name__)


class UserPreferencesRepository:
    """Repository for UserPreferences database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _get_row(self, user_id: str):
        return self.db.query(UserPreferencesDB).filter(UserPreferencesDB.user_id == user_id).first()

    def get_or_create(self, user_id: str) -> UserPreferences:
        """Get preferences for a user, creating the defaults on first read."""
        row = self._get_row(user_id)
        if row is not None:
            return row.to_pydantic()
        try:
            row = UserPreferencesDB.from_pydantic(UserPreferences(user_id=user_id))
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Created default preferences for user {user_id}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create preferences for user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def save(self, user_id: str, updates: UserPreferencesUpdate) -> UserPreferences:
        """Apply the provided fields over the stored (or default) preferences."""
        try:
            row = self._get_row(user_id)
            if row is None:
                row = UserPreferencesDB.from_pydantic(UserPreferences(user_id=user_id))
                self.db.add(row)

            changes = updates.model_dump(exclude_unset=True, exclude_none=True)
            if "visible_properties" in changes:
                row.visible_properties = list(changes["visible_properties"])
            if "default_view" in changes:
                row.default_view = changes["default_view"]
            if "filter_preferences" in changes:
                row.filter_preferences = changes["filter_preferences"]

            self.db.commit()
            self.db.refresh(row)
            logger.info(f"Saved preferences for user {user_id}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to save preferences for user {user_id}: {type(e).__name__}: {str(e)}")
            raise
