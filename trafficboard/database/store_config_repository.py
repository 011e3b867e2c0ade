"""Repository for the persisted Notion store configuration.

Security notes:
- The Notion API key is a secret: stored Fernet-encrypted and never logged.
- Reading or writing an override requires TOKEN_ENCRYPTION_KEY.
"""

import logging
import os
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy.orm import Session

from trafficboard.database.models import StoreConfigDB
from trafficboard.exceptions import ConfigurationError
from trafficboard.models.store_config import StoreConfig, StoreDatabaseIds

logger = logging.getLogger(__name__)


def _require_fernet() -> Fernet:
    key = os.getenv("TOKEN_ENCRYPTION_KEY", "").strip()
    if not key:
        raise ConfigurationError(
            "TOKEN_ENCRYPTION_KEY is not set. "
            "Set it to a Fernet key (base64 urlsafe 32-byte) to store the Notion configuration."
        )
    return Fernet(key)


def encrypt_secret(raw: str) -> str:
    return _require_fernet().encrypt(raw.encode("utf-8")).decode("utf-8")


def decrypt_secret(enc: str) -> str:
    f = _require_fernet()
    try:
        return f.decrypt(enc.encode("utf-8")).decode("utf-8")
    except InvalidToken as e:
        raise ConfigurationError("Stored Notion key could not be decrypted; TOKEN_ENCRYPTION_KEY may be wrong.") from e


class StoreConfigRepository:
    def __init__(self, db: Session):
        self.db = db

    def _active_row(self) -> Optional[StoreConfigDB]:
        return self.db.query(StoreConfigDB).filter(StoreConfigDB.is_active.is_(True)).first()

    def get_active(self) -> Optional[StoreConfig]:
        """The active override, or None when the environment should be used."""
        row = self._active_row()
        if row is None:
            return None
        return StoreConfig(
            api_key=decrypt_secret(row.api_key_enc),
            database_ids=StoreDatabaseIds(
                users=row.users_database_id,
                clients=row.clients_database_id,
                projects=row.projects_database_id,
                tasks=row.tasks_database_id,
            ),
            source="database",
            created_by=row.created_by,
        )

    def save_active(self, config: StoreConfig, created_by: Optional[str] = None, name: str = "default") -> StoreConfig:
        """Store a configuration and make it the only active one."""
        try:
            api_key_enc = encrypt_secret(config.api_key)
            for row in self.db.query(StoreConfigDB).filter(StoreConfigDB.is_active.is_(True)).all():
                row.is_active = False
            ids = config.database_ids
            self.db.add(StoreConfigDB(
                name=name,
                api_key_enc=api_key_enc,
                users_database_id=ids.users,
                clients_database_id=ids.clients,
                projects_database_id=ids.projects,
                tasks_database_id=ids.tasks,
                is_active=True,
                created_by=created_by,
            ))
            self.db.commit()
            logger.info(f"Activated stored Notion configuration '{name}'")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to save Notion configuration: {type(e).__name__}: {str(e)}")
            raise
        return self.get_active()

    def deactivate_all(self) -> int:
        """Fall back to the environment configuration.

        Returns:
            Number of configurations deactivated
        """
        try:
            rows = self.db.query(StoreConfigDB).filter(StoreConfigDB.is_active.is_(True)).all()
            for row in rows:
                row.is_active = False
            self.db.commit()
            return len(rows)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to deactivate Notion configuration: {type(e).__name__}: {str(e)}")
            raise
