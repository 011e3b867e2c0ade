"""Tests for the local store: preferences, client colors, store configuration and support tickets."""

from datetime import datetime, timedelta

import pytest
from cryptography.fernet import Fernet
from pydantic import ValidationError as PydanticValidationError

from trafficboard.config import config_status, env_store_config, load_active_store_config
from trafficboard.database.bug_report_repository import BugReportRepository
from trafficboard.database.client_color_repository import ClientColorRepository, load_color_map
from trafficboard.database.models import BugReportDB, StoreConfigDB
from trafficboard.database.store_config_repository import StoreConfigRepository
from trafficboard.database.user_preferences_repository import UserPreferencesRepository
from trafficboard.engine.colors import generate_color_for_client
from trafficboard.exceptions import ConfigurationError, ValidationError
from trafficboard.models.bug_report import BugReportCreate, BugReportUpdate, ReporterInfo
from trafficboard.models.preferences import ClientColorInput, FilterPreferences, UserPreferencesUpdate
from trafficboard.models.reference import Client
from trafficboard.models.store_config import StoreConfig, StoreDatabaseIds

from fakes import DATABASE_IDS

NOTION_ENV = {
    "NOTION_API_KEY": "secret_env_key",
    "NOTION_DATABASE_USERS_ID": "env-users",
    "NOTION_DATABASE_CLIENTS_ID": "env-clients",
    "NOTION_DATABASE_PROJECTS_ID": "env-projects",
    "NOTION_DATABASE_TRAFIC_ID": "env-tasks",
}


@pytest.fixture
def notion_env(monkeypatch):
    for name, value in NOTION_ENV.items():
        monkeypatch.setenv(name, value)


@pytest.fixture
def no_notion_env(monkeypatch):
    for name in NOTION_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def encryption_key(monkeypatch):
    monkeypatch.setenv("TOKEN_ENCRYPTION_KEY", Fernet.generate_key().decode("utf-8"))


class TestUserPreferencesRepository:
    def test_defaults_created_on_first_read(self, db_session):
        prefs = UserPreferencesRepository(db_session).get_or_create("user-1")
        assert prefs.user_id == "user-1"
        assert prefs.visible_properties == ["name", "client", "status", "assignee"]
        assert prefs.default_view == "timeGridWeek"
        assert prefs.filter_preferences == FilterPreferences()
        assert prefs.created_at is not None

    def test_second_read_returns_same_record(self, db_session):
        repo = UserPreferencesRepository(db_session)
        first = repo.get_or_create("user-1")
        second = repo.get_or_create("user-1")
        assert first.created_at == second.created_at

    def test_partial_save_keeps_other_fields(self, db_session):
        repo = UserPreferencesRepository(db_session)
        repo.get_or_create("user-1")
        saved = repo.save("user-1", UserPreferencesUpdate(default_view="dayGridMonth"))
        assert saved.default_view == "dayGridMonth"
        assert saved.visible_properties == ["name", "client", "status", "assignee"]

    def test_save_upserts_missing_record(self, db_session):
        saved = UserPreferencesRepository(db_session).save("user-2", UserPreferencesUpdate(
            filter_preferences=FilterPreferences(selected_clients=["Acme"], show_completed=True),
        ))
        assert saved.filter_preferences.selected_clients == ["Acme"]
        assert saved.filter_preferences.show_completed is True
        assert saved.default_view == "timeGridWeek"

    def test_unknown_view_rejected(self):
        with pytest.raises(PydanticValidationError):
            UserPreferencesUpdate(default_view="listYear")


class TestClientColorRepository:
    def test_upsert_by_client_id(self, db_session):
        repo = ClientColorRepository(db_session)
        repo.upsert_many([ClientColorInput(client_id="C1", client_name="Acme", color="#ff0000")], created_by="admin")
        repo.upsert_many([ClientColorInput(client_id="C1", client_name="Acme Corp", color="#00ff00")])

        colors = repo.list_all()
        assert len(colors) == 1
        assert colors[0].client_name == "Acme Corp"
        assert colors[0].color == "#00ff00"

    def test_list_sorted_by_name_and_color_map_keyed_by_name(self, db_session):
        repo = ClientColorRepository(db_session)
        repo.upsert_many([
            ClientColorInput(client_id="C2", client_name="Globex", color="#222"),
            ClientColorInput(client_id="C1", client_name="Acme", color="#111111"),
        ])
        assert [c.client_name for c in repo.list_all()] == ["Acme", "Globex"]
        assert repo.color_map() == {"Acme": "#111111", "Globex": "#222"}

    def test_invalid_color_rejected(self):
        with pytest.raises(PydanticValidationError):
            ClientColorInput(client_id="C1", client_name="Acme", color="red")

    def test_generate_missing_uses_palette_color(self, db_session):
        repo = ClientColorRepository(db_session)
        repo.upsert_many([ClientColorInput(client_id="C1", client_name="Acme", color="#111111")])

        created = repo.generate_missing([
            Client(id="C1", name="Acme"),
            Client(id="C2", name="Globex"),
            Client(id="C3", name=None),
        ])

        assert [(c.client_id, c.color) for c in created] == [("C2", generate_color_for_client("Globex"))]
        assert repo.color_map()["Acme"] == "#111111"
        assert repo.generate_missing([Client(id="C2", name="Globex")]) == []

    def test_load_color_map_uses_fresh_sessions(self, db_session):
        ClientColorRepository(db_session).upsert_many([
            ClientColorInput(client_id="C1", client_name="Acme", color="#111111"),
        ])
        closed = []

        class _Session:
            def __init__(self, inner):
                self.inner = inner

            def query(self, *args, **kwargs):
                return self.inner.query(*args, **kwargs)

            def close(self):
                closed.append(True)

        loader = load_color_map(lambda: _Session(db_session))
        assert loader() == {"Acme": "#111111"}
        assert closed == [True]


class TestStoreConfigRepository:
    def test_api_key_encrypted_at_rest(self, db_session, encryption_key):
        repo = StoreConfigRepository(db_session)
        repo.save_active(StoreConfig(api_key="secret_db_key", database_ids=DATABASE_IDS), created_by="admin")

        row = db_session.query(StoreConfigDB).one()
        assert row.api_key_enc != "secret_db_key"
        active = repo.get_active()
        assert active.api_key == "secret_db_key"
        assert active.source == "database"
        assert active.created_by == "admin"

    def test_only_latest_config_is_active(self, db_session, encryption_key):
        repo = StoreConfigRepository(db_session)
        repo.save_active(StoreConfig(api_key="first", database_ids=DATABASE_IDS))
        repo.save_active(StoreConfig(api_key="second", database_ids=DATABASE_IDS))
        assert repo.get_active().api_key == "second"
        assert db_session.query(StoreConfigDB).filter(StoreConfigDB.is_active.is_(True)).count() == 1

        assert repo.deactivate_all() == 1
        assert repo.get_active() is None

    def test_missing_encryption_key(self, db_session, monkeypatch):
        monkeypatch.delenv("TOKEN_ENCRYPTION_KEY", raising=False)
        with pytest.raises(ConfigurationError):
            StoreConfigRepository(db_session).save_active(StoreConfig(api_key="x", database_ids=DATABASE_IDS))
        assert db_session.query(StoreConfigDB).count() == 0


class TestSettingsProvider:
    """The database override wins over the environment."""

    def test_environment_config(self, db_session, notion_env):
        config = load_active_store_config(db_session)
        assert config.source == "environment"
        assert config.api_key == "secret_env_key"
        assert config.database_ids == StoreDatabaseIds(
            users="env-users", clients="env-clients", projects="env-projects", tasks="env-tasks",
        )

    def test_database_override_wins(self, db_session, notion_env, encryption_key):
        StoreConfigRepository(db_session).save_active(StoreConfig(api_key="secret_db_key", database_ids=DATABASE_IDS))
        config = load_active_store_config(db_session)
        assert config.source == "database"
        assert config.database_ids.tasks == DATABASE_IDS.tasks

    def test_incomplete_environment_raises(self, db_session, no_notion_env, monkeypatch):
        monkeypatch.setenv("NOTION_API_KEY", "secret_env_key")
        with pytest.raises(ConfigurationError) as exc_info:
            load_active_store_config(db_session)
        assert "NOTION_DATABASE_TRAFIC_ID" in str(exc_info.value)

    def test_env_store_config_requires_every_variable(self, no_notion_env):
        with pytest.raises(ConfigurationError):
            env_store_config()

    def test_config_status(self, db_session, notion_env):
        status = config_status(db_session)
        assert status["configured"] is True
        assert status["source"] == "environment"
        assert "api_key" not in status

    def test_config_status_when_unconfigured(self, db_session, no_notion_env):
        status = config_status(db_session)
        assert status["configured"] is False
        assert "NOTION_API_KEY" in status["missing"]


def _ticket(title: str, user_id: str = "user-1", **kwargs) -> BugReportCreate:
    reporter = ReporterInfo(user_id=user_id, email=f"{user_id}@example.com", name=user_id.title())
    return BugReportCreate(title=title, description=f"{title} details", reporter=reporter, **kwargs)


class TestBugReportRepository:
    """Support tickets: filing, triage, paging and counts."""

    def test_create_defaults(self, db_session):
        report = BugReportRepository(db_session).create(_ticket("  Calendar blank  ", screenshots=["/uploads/a.png"]))
        assert report.id
        assert report.title == "Calendar blank"
        assert report.status == "open"
        assert report.priority == "medium"
        assert report.admin_notes == ""
        assert report.assigned_to is None
        assert report.screenshots == ["/uploads/a.png"]
        assert report.reporter.email == "user-1@example.com"
        assert report.created_at is not None

    def test_title_length_enforced(self):
        with pytest.raises(PydanticValidationError):
            _ticket("x" * 201)

    def test_get_unknown_returns_none(self, db_session):
        assert BugReportRepository(db_session).get("missing") is None

    def test_list_for_reporter_only_sees_own_tickets(self, db_session):
        repo = BugReportRepository(db_session)
        repo.create(_ticket("Mine"))
        repo.create(_ticket("Theirs", user_id="user-2"))
        page = repo.list_for_reporter("user-1")
        assert [r.title for r in page.items] == ["Mine"]
        assert page.total_items == 1
        assert page.items_per_page == 10

    def test_filters_and_pagination(self, db_session):
        repo = BugReportRepository(db_session)
        for title in ("A", "B", "C"):
            repo.create(_ticket(title, priority="high"))
        repo.create(_ticket("D"))

        first = repo.list_reports(priority="high", page=1, limit=2, sort_by="title", sort_order="asc")
        assert [r.title for r in first.items] == ["A", "B"]
        assert first.total_items == 3
        assert first.total_pages == 2
        assert first.has_next_page and not first.has_prev_page

        second = repo.list_reports(priority="high", page=2, limit=2, sort_by="title", sort_order="asc")
        assert [r.title for r in second.items] == ["C"]
        assert not second.has_next_page and second.has_prev_page

    def test_empty_listing(self, db_session):
        page = BugReportRepository(db_session).list_reports()
        assert page.items == []
        assert page.total_pages == 0
        assert not page.has_next_page

    @pytest.mark.parametrize("kwargs", [
        {"sort_by": "reporter_email"},
        {"sort_order": "sideways"},
        {"page": 0},
        {"limit": 0},
    ])
    def test_bad_listing_arguments_rejected(self, db_session, kwargs):
        with pytest.raises(ValidationError):
            BugReportRepository(db_session).list_reports(**kwargs)

    def test_update_applies_set_fields(self, db_session):
        repo = BugReportRepository(db_session)
        report = repo.create(_ticket("Crash"))
        updated = repo.update(report.id, BugReportUpdate(status="in-progress", admin_notes="Looking", assigned_to="admin"))
        assert updated.status == "in-progress"
        assert updated.priority == "medium"
        assert updated.admin_notes == "Looking"
        assert updated.assigned_to == "admin"

        unassigned = repo.update(report.id, BugReportUpdate(assigned_to=""))
        assert unassigned.assigned_to is None
        assert unassigned.status == "in-progress"
        assert unassigned.admin_notes == "Looking"

    def test_update_unknown_returns_none(self, db_session):
        assert BugReportRepository(db_session).update("missing", BugReportUpdate(status="closed")) is None

    def test_delete(self, db_session):
        repo = BugReportRepository(db_session)
        report = repo.create(_ticket("Crash"))
        assert repo.delete(report.id) is True
        assert repo.get(report.id) is None
        assert repo.delete(report.id) is False

    def test_stats(self, db_session):
        repo = BugReportRepository(db_session)
        assert repo.stats().total == 0

        old = repo.create(_ticket("Old", priority="low"))
        repo.create(_ticket("New", priority="critical"))
        row = db_session.query(BugReportDB).filter(BugReportDB.id == old.id).first()
        row.created_at = datetime.utcnow() - timedelta(days=30)
        db_session.commit()
        repo.update(old.id, BugReportUpdate(status="resolved"))

        stats = repo.stats()
        assert stats.total == 2
        assert stats.recent == 1
        assert stats.by_status == {"open": 1, "resolved": 1}
        assert stats.by_priority == {"low": 1, "critical": 1}
        assert repo.stats(now=datetime.utcnow() + timedelta(days=60)).recent == 0
