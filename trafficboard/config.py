"""Runtime configuration for trafficboard.

Settings come from the environment (a `.env` file is loaded on import). The
Notion store configuration can be overridden by an active record in the local
database; otherwise it is read from the NOTION_* variables.
"""

import logging
import os
from typing import Dict, List, Optional

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from trafficboard.database.store_config_repository import StoreConfigRepository
from trafficboard.exceptions import ConfigurationError
from trafficboard.models.store_config import StoreConfig, StoreDatabaseIds

load_dotenv()

logger = logging.getLogger(__name__)

# Environment variable per store configuration field
STORE_ENV_VARS: Dict[str, str] = {
    "api_key": "NOTION_API_KEY",
    "users": "NOTION_DATABASE_USERS_ID",
    "clients": "NOTION_DATABASE_CLIENTS_ID",
    "projects": "NOTION_DATABASE_PROJECTS_ID",
    "tasks": "NOTION_DATABASE_TRAFIC_ID",
}


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging from LOG_LEVEL (defaults to INFO)."""
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def missing_env_vars() -> List[str]:
    """NOTION_* variables that are unset or empty."""
    return [name for name in STORE_ENV_VARS.values() if not os.getenv(name, "").strip()]


def env_store_config() -> StoreConfig:
    """Store configuration from the environment.

    Raises:
        ConfigurationError: If any NOTION_* variable is missing
    """
    missing = missing_env_vars()
    if missing:
        raise ConfigurationError(f"Incomplete Notion configuration; missing: {', '.join(missing)}")
    values = {field: os.getenv(name).strip() for field, name in STORE_ENV_VARS.items()}
    return StoreConfig(
        api_key=values.pop("api_key"),
        database_ids=StoreDatabaseIds(**values),
        source="environment",
    )


def load_active_store_config(db: Session) -> StoreConfig:
    """Active store configuration: the database override first, then the environment.

    Raises:
        ConfigurationError: If neither source provides a complete configuration
    """
    stored = StoreConfigRepository(db).get_active()
    if stored is not None:
        return stored
    return env_store_config()


def config_status(db: Session) -> dict:
    """Describe where the active configuration comes from (never includes the key)."""
    try:
        config = load_active_store_config(db)
    except ConfigurationError as e:
        return {"configured": False, "source": None, "missing": missing_env_vars(), "error": str(e)}
    return {
        "configured": True,
        "source": config.source,
        "missing": [],
        "database_ids": config.database_ids.model_dump(),
    }
