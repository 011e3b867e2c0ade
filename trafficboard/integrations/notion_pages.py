"""Mapping between raw Notion pages and trafficboard models.

Property names are those of the agency's Notion workspace.
"""

from typing import Any, Dict, List, Optional

from trafficboard.integrations.notion_properties import PropertyKind, as_list, get_property_value
from trafficboard.models.constants import DEFAULT_TASK_NAME
from trafficboard.models.reference import Client, Project, User
from trafficboard.models.task import DatePeriod, Task


class TaskProperty:
    """Property names in the task ("trafic") database."""
    NAME = "Nom de tâche"
    NAME_FORMULA = "Nom de la tache"
    PROJECTS = "📁 Projets"
    CLIENT = "Client"
    CLIENT_GROUP = "Client (Group)"
    USERS = "Utilisateurs"
    PROFILES = "Profil Notion"
    TEAM = "Équipe"
    STATUS = "État"
    WORK_PERIOD = "Période de travail"
    BILLED_DAYS = "Nombre de jours facturés"
    SPENT_DAYS = "Nombre de jours passés"
    ADD_TO_CALENDAR = "Ajouter au Calendrier"
    ADD_TO_RETRO_PLANNING = "Ajouter au rétroplannning client"
    GOOGLE_EVENT_ID = "Google Event ID"
    PROJECT_LEAD = "Project Lead"
    PROJECT_STATUS = "Statut du projet"
    NOTES = "Commentaire"


class UserProperty:
    NAME = "Nom"
    PHOTO = "Photo de profil"
    TEAM = "Équipe"
    ROLE = "Rôle"
    EMAIL = "Email"


class ClientProperty:
    NAME = "Nom du client"
    TYPE = "Type de client"
    CONTACT_NAME = "Nom contact principal"
    STATUS = "Client Status"
    NOTES = "Notes"
    CONTACT_EMAIL = "Email contact"


class ProjectProperty:
    NAME = "Nom"
    CLIENTS = "🫡 Clients"
    TYPE = "Type"
    STATUS = "Statut du projet"
    START_DATE = "Date de début"
    END_DATE = "Date de fin"
    DRIVE = "Drive"
    TASKS = "Tâches"
    EMOJI = "Emoji"


def _value(properties: Dict[str, Any], name: str, kind: PropertyKind, sub_kind: Optional[str] = None) -> Any:
    return get_property_value(properties.get(name), kind.value, sub_kind)


def page_to_task(page: dict) -> Task:
    """Normalize a Notion task page to the Task model."""
    props = page.get("properties") or {}
    name = (
        _value(props, TaskProperty.NAME, PropertyKind.TITLE)
        or _value(props, TaskProperty.NAME_FORMULA, PropertyKind.FORMULA)
        or DEFAULT_TASK_NAME
    )
    return Task(
        id=page["id"],
        name=str(name),
        status=_value(props, TaskProperty.STATUS, PropertyKind.STATUS),
        work_period=_value(props, TaskProperty.WORK_PERIOD, PropertyKind.DATE),
        project=as_list(_value(props, TaskProperty.PROJECTS, PropertyKind.RELATION)),
        client=[str(v) for v in as_list(_value(props, TaskProperty.CLIENT, PropertyKind.ROLLUP))],
        client_group=_value(props, TaskProperty.CLIENT_GROUP, PropertyKind.FORMULA),
        assigned_users=as_list(_value(props, TaskProperty.USERS, PropertyKind.RELATION)),
        profile_names=as_list(_value(props, TaskProperty.PROFILES, PropertyKind.ROLLUP)),
        team=as_list(_value(props, TaskProperty.TEAM, PropertyKind.ROLLUP)),
        billed_days=_value(props, TaskProperty.BILLED_DAYS, PropertyKind.NUMBER),
        spent_days=_value(props, TaskProperty.SPENT_DAYS, PropertyKind.NUMBER),
        add_to_calendar=bool(_value(props, TaskProperty.ADD_TO_CALENDAR, PropertyKind.CHECKBOX)),
        add_to_retro_planning=bool(_value(props, TaskProperty.ADD_TO_RETRO_PLANNING, PropertyKind.CHECKBOX)),
        google_event_id=_value(props, TaskProperty.GOOGLE_EVENT_ID, PropertyKind.RICH_TEXT),
        project_lead=as_list(_value(props, TaskProperty.PROJECT_LEAD, PropertyKind.ROLLUP)),
        project_status=as_list(_value(props, TaskProperty.PROJECT_STATUS, PropertyKind.ROLLUP)),
        notes=_value(props, TaskProperty.NOTES, PropertyKind.RICH_TEXT),
        created_time=page.get("created_time"),
        last_edited_time=page.get("last_edited_time"),
    )


def page_to_user(page: dict) -> User:
    props = page.get("properties") or {}
    return User(
        id=page["id"],
        name=_value(props, UserProperty.NAME, PropertyKind.TITLE),
        profile_photo=as_list(_value(props, UserProperty.PHOTO, PropertyKind.FILES)),
        team=as_list(_value(props, UserProperty.TEAM, PropertyKind.RELATION)),
        role=as_list(_value(props, UserProperty.ROLE, PropertyKind.MULTI_SELECT)),
        email=_value(props, UserProperty.EMAIL, PropertyKind.EMAIL),
    )


def page_to_client(page: dict) -> Client:
    props = page.get("properties") or {}
    return Client(
        id=page["id"],
        name=_value(props, ClientProperty.NAME, PropertyKind.TITLE),
        type=as_list(_value(props, ClientProperty.TYPE, PropertyKind.MULTI_SELECT)),
        contact_name=_value(props, ClientProperty.CONTACT_NAME, PropertyKind.RICH_TEXT),
        status=_value(props, ClientProperty.STATUS, PropertyKind.SELECT),
        notes=_value(props, ClientProperty.NOTES, PropertyKind.RICH_TEXT),
        contact_email=_value(props, ClientProperty.CONTACT_EMAIL, PropertyKind.EMAIL),
    )


def page_to_project(page: dict) -> Project:
    """Normalize a project page. The `client` name is filled in by the catalog."""
    props = page.get("properties") or {}
    clients_prop = props.get(ProjectProperty.CLIENTS) or {}
    # The clients column is a relation in most workspaces, a rollup in some
    if clients_prop.get("type") == PropertyKind.ROLLUP.value:
        rollup_values = as_list(get_property_value(clients_prop, PropertyKind.ROLLUP.value))
        client_ids: List[str] = []
        client_name = str(rollup_values[0]) if rollup_values else None
    else:
        client_ids = as_list(get_property_value(clients_prop, PropertyKind.RELATION.value))
        client_name = None
    return Project(
        id=page["id"],
        name=_value(props, ProjectProperty.NAME, PropertyKind.TITLE),
        clients=client_ids,
        client=client_name,
        type=as_list(_value(props, ProjectProperty.TYPE, PropertyKind.MULTI_SELECT)),
        status=_value(props, ProjectProperty.STATUS, PropertyKind.SELECT),
        start_date=_value(props, ProjectProperty.START_DATE, PropertyKind.DATE),
        end_date=_value(props, ProjectProperty.END_DATE, PropertyKind.DATE),
        drive_url=_value(props, ProjectProperty.DRIVE, PropertyKind.URL),
        emoji=_value(props, ProjectProperty.EMOJI, PropertyKind.RICH_TEXT),
        tasks=as_list(_value(props, ProjectProperty.TASKS, PropertyKind.RELATION)),
    )


def _text(content: str) -> List[dict]:
    return [{"text": {"content": content}}]


def build_task_properties(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Build a Notion property patch from the task fields present in `fields`.

    Only keys present in `fields` are written; a present key with a None value
    clears the property where Notion allows it.

    Recognized keys: name, project_id, work_period (DatePeriod or None),
    status, assigned_users, notes.
    """
    properties: Dict[str, Any] = {}

    if "name" in fields:
        properties[TaskProperty.NAME] = {"title": _text(fields["name"] or "")}

    if "project_id" in fields:
        project_id = fields["project_id"]
        properties[TaskProperty.PROJECTS] = {"relation": [{"id": project_id}] if project_id else []}

    if "work_period" in fields:
        period: Optional[DatePeriod] = fields["work_period"]
        if period is None or not period.start:
            properties[TaskProperty.WORK_PERIOD] = {"date": None}
        else:
            properties[TaskProperty.WORK_PERIOD] = {"date": {"start": period.start, "end": period.end}}

    if "status" in fields and fields["status"]:
        properties[TaskProperty.STATUS] = {"status": {"name": fields["status"]}}

    if "assigned_users" in fields:
        properties[TaskProperty.USERS] = {
            "relation": [{"id": user_id} for user_id in fields["assigned_users"] or []]
        }

    if "notes" in fields:
        properties[TaskProperty.NOTES] = {"rich_text": _text(fields["notes"] or "")}

    return properties
