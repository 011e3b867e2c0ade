"""FastAPI web application for trafficboard.

Thin HTTP layer over the enrichment service and the local override store.
The enrichment service is built once at startup from the active Notion
configuration and closed at shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from trafficboard.api.request_models import (
    ClientColorsUpdate,
    OverlapCheckRequest,
    StoreConfigUpdate,
    TaskFilterRequest,
)
from trafficboard.config import config_status, configure_logging, load_active_store_config
from trafficboard.database.bug_report_repository import BugReportRepository
from trafficboard.database.client_color_repository import ClientColorRepository, load_color_map
from trafficboard.database.database import SessionLocal, get_db, init_db
from trafficboard.database.store_config_repository import StoreConfigRepository
from trafficboard.database.user_preferences_repository import UserPreferencesRepository
from trafficboard.exceptions import ConfigurationError, StoreFetchError, ValidationError
from trafficboard.models.bug_report import (
    BugReport,
    BugReportCreate,
    BugReportPage,
    BugReportPriority,
    BugReportStats,
    BugReportStatus,
    BugReportUpdate,
)
from trafficboard.models.conflict import ConflictReport
from trafficboard.models.preferences import ClientColor, UserPreferences, UserPreferencesUpdate
from trafficboard.models.reference import Client, Project, StatusOption, User
from trafficboard.models.store_config import StoreConfig
from trafficboard.models.task import EnrichedTask, TaskCreate, TaskUpdate
from trafficboard.services.enrichment import EnrichmentService

logger = logging.getLogger(__name__)


async def install_service(app: FastAPI, config: StoreConfig) -> EnrichmentService:
    """Replace the running enrichment service with one built from `config`."""
    previous = getattr(app.state, "enrichment_service", None)
    app.state.enrichment_service = EnrichmentService.from_config(
        config,
        color_loader=load_color_map(SessionLocal),
    )
    if previous is not None:
        await previous.aclose()
    return app.state.enrichment_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    app.state.enrichment_service = None
    db = SessionLocal()
    try:
        await install_service(app, load_active_store_config(db))
    except ConfigurationError as e:
        logger.warning(f"Notion is not configured, calendar endpoints will return 503: {e}")
    finally:
        db.close()

    yield

    service = app.state.enrichment_service
    if service is not None:
        await service.aclose()


app = FastAPI(
    title="trafficboard API",
    description="Agency traffic calendar backed by Notion",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(StoreFetchError)
async def store_fetch_error_handler(request: Request, exc: StoreFetchError):
    return JSONResponse(status_code=502, content={"detail": str(exc)})


def get_enrichment_service(request: Request) -> EnrichmentService:
    """The process-wide enrichment service (dependency for FastAPI).

    Raises:
        ConfigurationError: If no Notion configuration was available at startup
    """
    service = getattr(request.app.state, "enrichment_service", None)
    if service is None:
        raise ConfigurationError("Notion configuration is missing or incomplete")
    return service


@app.get("/health")
async def health(request: Request):
    return {
        "status": "ok",
        "notion_configured": getattr(request.app.state, "enrichment_service", None) is not None,
    }


# Calendar

@app.get("/calendar/tasks", response_model=List[EnrichedTask])
async def list_tasks(
    start: str = Query(..., description="Window start (ISO date or timestamp)"),
    end: str = Query(..., description="Window end (ISO date or timestamp)"),
    view: Optional[str] = Query(None, description="timeGridWeek or dayGridMonth"),
    service: EnrichmentService = Depends(get_enrichment_service),
):
    """Enriched tasks scheduled within [start, end]."""
    return await service.tasks_with_colors(start, end, view)


@app.post("/calendar/tasks/filter", response_model=List[EnrichedTask])
async def filter_tasks(
    request: TaskFilterRequest,
    service: EnrichmentService = Depends(get_enrichment_service),
):
    tasks = await service.tasks_with_colors(request.start, request.end, request.view)
    return service.filter_tasks(tasks, request.filters)


@app.get("/calendar/unassigned-tasks", response_model=List[EnrichedTask])
async def list_unassigned_tasks(service: EnrichmentService = Depends(get_enrichment_service)):
    return await service.unassigned_tasks_with_colors()


@app.post("/calendar/tasks/check-overlap", response_model=ConflictReport)
async def check_overlap(
    request: OverlapCheckRequest,
    service: EnrichmentService = Depends(get_enrichment_service),
):
    return await service.check_overlap(
        request.assigned_users,
        request.start_date,
        request.end_date,
        request.exclude_task_id,
    )


@app.post("/calendar/tasks", response_model=EnrichedTask, status_code=201)
async def create_task(
    task_data: TaskCreate,
    service: EnrichmentService = Depends(get_enrichment_service),
):
    return await service.create_task(task_data)


@app.get("/calendar/tasks/{task_id}", response_model=EnrichedTask)
async def get_task(task_id: str, service: EnrichmentService = Depends(get_enrichment_service)):
    return await service.get_task(task_id)


@app.patch("/calendar/tasks/{task_id}", response_model=EnrichedTask)
async def update_task(
    task_id: str,
    updates: TaskUpdate,
    service: EnrichmentService = Depends(get_enrichment_service),
):
    return await service.update_task(task_id, updates)


@app.delete("/calendar/tasks/{task_id}", status_code=204)
async def delete_task(task_id: str, service: EnrichmentService = Depends(get_enrichment_service)):
    await service.delete_task(task_id)
    return Response(status_code=204)


@app.get("/calendar/users", response_model=List[User])
async def list_users(service: EnrichmentService = Depends(get_enrichment_service)):
    return await service.list_users()


@app.get("/calendar/clients", response_model=List[Client])
async def list_clients(service: EnrichmentService = Depends(get_enrichment_service)):
    return await service.list_clients()


@app.get("/calendar/projects", response_model=List[Project])
async def list_projects(service: EnrichmentService = Depends(get_enrichment_service)):
    return await service.list_projects()


@app.get("/calendar/status-options", response_model=List[StatusOption])
async def list_status_options(service: EnrichmentService = Depends(get_enrichment_service)):
    return await service.status_options()


# Preferences

@app.get("/preferences/client-colors", response_model=List[ClientColor])
def list_client_colors(db: Session = Depends(get_db)):
    return ClientColorRepository(db).list_all()


@app.put("/preferences/client-colors", response_model=List[ClientColor])
def save_client_colors(request: ClientColorsUpdate, db: Session = Depends(get_db)):
    return ClientColorRepository(db).upsert_many(request.colors, created_by=request.user_id)


@app.post("/preferences/client-colors/generate", response_model=List[ClientColor])
async def generate_client_colors(
    user_id: Optional[str] = None,
    service: EnrichmentService = Depends(get_enrichment_service),
    db: Session = Depends(get_db),
):
    """Persist palette colors for clients that have none yet."""
    clients = await service.list_clients()
    return ClientColorRepository(db).generate_missing(clients, created_by=user_id)


@app.get("/preferences/{user_id}", response_model=UserPreferences)
def get_preferences(user_id: str, db: Session = Depends(get_db)):
    return UserPreferencesRepository(db).get_or_create(user_id)


@app.put("/preferences/{user_id}", response_model=UserPreferences)
def save_preferences(user_id: str, updates: UserPreferencesUpdate, db: Session = Depends(get_db)):
    return UserPreferencesRepository(db).save(user_id, updates)


# Settings

@app.get("/settings/notion")
def notion_settings_status(db: Session = Depends(get_db)):
    return config_status(db)


@app.put("/settings/notion")
async def save_notion_settings(
    request: StoreConfigUpdate,
    http_request: Request,
    db: Session = Depends(get_db),
):
    """Store a Notion configuration override and switch the running service to it."""
    config = StoreConfigRepository(db).save_active(
        StoreConfig(api_key=request.api_key, database_ids=request.database_ids, source="database"),
        created_by=request.user_id,
        name=request.name,
    )
    await install_service(http_request.app, config)
    return config_status(db)


# Support tickets

@app.post("/bug-reports", response_model=BugReport, status_code=201)
def create_bug_report(data: BugReportCreate, db: Session = Depends(get_db)):
    return BugReportRepository(db).create(data)


@app.get("/bug-reports/my", response_model=BugReportPage)
def list_my_bug_reports(
    user_id: str,
    status: Optional[BugReportStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Tickets filed by `user_id`, newest first."""
    return BugReportRepository(db).list_for_reporter(
        user_id,
        status=status.value if status else None,
        page=page,
        limit=limit,
    )


@app.get("/bug-reports/stats", response_model=BugReportStats)
def bug_report_stats(db: Session = Depends(get_db)):
    return BugReportRepository(db).stats()


@app.get("/bug-reports", response_model=BugReportPage)
def list_bug_reports(
    status: Optional[BugReportStatus] = None,
    priority: Optional[BugReportPriority] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: str = "created_at",
    sort_order: str = "desc",
    db: Session = Depends(get_db),
):
    return BugReportRepository(db).list_reports(
        status=status.value if status else None,
        priority=priority.value if priority else None,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@app.get("/bug-reports/{report_id}", response_model=BugReport)
def get_bug_report(report_id: str, db: Session = Depends(get_db)):
    report = BugReportRepository(db).get(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Bug report not found")
    return report


@app.patch("/bug-reports/{report_id}", response_model=BugReport)
def update_bug_report(report_id: str, updates: BugReportUpdate, db: Session = Depends(get_db)):
    report = BugReportRepository(db).update(report_id, updates)
    if report is None:
        raise HTTPException(status_code=404, detail="Bug report not found")
    return report


@app.delete("/bug-reports/{report_id}", status_code=204)
def delete_bug_report(report_id: str, db: Session = Depends(get_db)):
    if not BugReportRepository(db).delete(report_id):
        raise HTTPException(status_code=404, detail="Bug report not found")
    return Response(status_code=204)
