"""Repository for explicit client display colors."""

import logging
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from trafficboard.database.models import ClientColorDB
from trafficboard.engine.colors import generate_color_for_client
from trafficboard.models.preferences import ClientColor, ClientColorInput
from trafficboard.models.reference import Client

logger = logging.getLogger(__name__)


class ClientColorRepository:
    """Repository for ClientColor database operations."""

    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> List[ClientColor]:
        """All client colors sorted by client name."""
        rows = self.db.query(ClientColorDB).order_by(ClientColorDB.client_name).all()
        return [row.to_pydantic() for row in rows]

    def color_map(self) -> Dict[str, str]:
        """Client name -> color, as used by enrichment."""
        return {row.client_name: row.color for row in self.db.query(ClientColorDB).all()}

    def _upsert(self, color: ClientColorInput, created_by: Optional[str]) -> ClientColorDB:
        row = self.db.query(ClientColorDB).filter(ClientColorDB.client_id == color.client_id).first()
        if row is None:
            row = ClientColorDB(client_id=color.client_id)
            self.db.add(row)
        row.client_name = color.client_name
        row.color = color.color
        row.created_by = created_by
        return row

    def upsert_many(self, colors: Iterable[ClientColorInput], created_by: Optional[str] = None) -> List[ClientColor]:
        """Create or update colors by client id in one transaction."""
        try:
            rows = [self._upsert(color, created_by) for color in colors]
            self.db.commit()
            for row in rows:
                self.db.refresh(row)
            logger.info(f"Saved {len(rows)} client color(s)")
            return [row.to_pydantic() for row in rows]
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to save client colors: {type(e).__name__}: {str(e)}")
            raise

    def generate_missing(self, clients: Iterable[Client], created_by: Optional[str] = None) -> List[ClientColor]:
        """Persist the palette color for every named client that has no entry yet.

        Returns:
            The newly created colors
        """
        existing = {row.client_id for row in self.db.query(ClientColorDB.client_id).all()}
        missing = [
            ClientColorInput(
                client_id=client.id,
                client_name=client.name,
                color=generate_color_for_client(client.name),
            )
            for client in clients
            if client.name and client.id not in existing
        ]
        if not missing:
            return []
        return self.upsert_many(missing, created_by)


def load_color_map(session_factory: Callable[[], Session]) -> Callable[[], Dict[str, str]]:
    """Build a color map loader that opens a short-lived session per call."""
    def _load() -> Dict[str, str]:
        db = session_factory()
        try:
            return ClientColorRepository(db).color_map()
        finally:
            db.close()
    return _load
