"""Tests for mapping Notion pages to models and task fields to property patches."""

from trafficboard.integrations.notion_pages import (
    ProjectProperty,
    TaskProperty,
    build_task_properties,
    page_to_project,
    page_to_task,
    page_to_user,
)
from trafficboard.models.task import DatePeriod

from fakes import formula_string, page, project_page, task_page, title, user_page


class TestPageToTask:
    """Test task page decoding."""

    def test_decodes_task_fields(self):
        task = page_to_task(task_page(
            "T1", "Shoot", "2024-05-01T09:00:00", "2024-05-01T18:00:00",
            project=["P1"], users=["U1", "U2"], clients=["C1"], notes="Drone",
        ))
        assert task.id == "T1"
        assert task.name == "Shoot"
        assert task.status == "Pas commencé"
        assert task.work_period == DatePeriod(start="2024-05-01T09:00:00", end="2024-05-01T18:00:00")
        assert task.project == ["P1"]
        assert task.assigned_users == ["U1", "U2"]
        assert task.client == ["C1"]
        assert task.notes == "Drone"
        assert task.is_scheduled

    def test_empty_period_is_unscheduled(self):
        task = page_to_task(task_page("T2", "Edit"))
        assert task.work_period is None
        assert not task.is_scheduled

    def test_name_falls_back_to_formula_then_default(self):
        from_formula = page_to_task(page("T3", {
            TaskProperty.NAME: title(None),
            TaskProperty.NAME_FORMULA: formula_string("Montage"),
        }))
        assert from_formula.name == "Montage"

        untitled = page_to_task(page("T4", {}))
        assert untitled.name == "Tâche sans nom"
        assert untitled.project == []
        assert untitled.add_to_calendar is False


class TestReferencePages:
    def test_user(self):
        user = page_to_user(user_page("U1", "Alice"))
        assert user.id == "U1"
        assert user.name == "Alice"
        assert user.role == ["Créa"]

    def test_project_with_relation_clients(self):
        project = page_to_project(project_page("P1", "Brand Film", ["C1", "C2"]))
        assert project.clients == ["C1", "C2"]
        assert project.client is None

    def test_project_with_rollup_clients_keeps_rollup_name(self):
        project = page_to_project(page("P9", {
            ProjectProperty.NAME: title("Legacy"),
            ProjectProperty.CLIENTS: {"type": "rollup", "rollup": {"type": "string", "string": "Acme"}},
        }))
        assert project.clients == []
        assert project.client == "Acme"


class TestBuildTaskProperties:
    """Only keys present in the input are written."""

    def test_full_create_shape(self):
        properties = build_task_properties({
            "name": "Shoot",
            "project_id": "P1",
            "work_period": DatePeriod(start="2024-05-01T09:00:00", end="2024-05-01T18:00:00"),
            "status": "Pas commencé",
            "assigned_users": ["U1"],
            "notes": "Drone",
        })
        assert properties[TaskProperty.NAME] == {"title": [{"text": {"content": "Shoot"}}]}
        assert properties[TaskProperty.PROJECTS] == {"relation": [{"id": "P1"}]}
        assert properties[TaskProperty.WORK_PERIOD] == {
            "date": {"start": "2024-05-01T09:00:00", "end": "2024-05-01T18:00:00"}
        }
        assert properties[TaskProperty.STATUS] == {"status": {"name": "Pas commencé"}}
        assert properties[TaskProperty.USERS] == {"relation": [{"id": "U1"}]}
        assert properties[TaskProperty.NOTES] == {"rich_text": [{"text": {"content": "Drone"}}]}

    def test_absent_keys_are_not_written(self):
        assert build_task_properties({"notes": "x"}) == {
            TaskProperty.NOTES: {"rich_text": [{"text": {"content": "x"}}]}
        }
        assert build_task_properties({}) == {}

    def test_present_none_values_clear(self):
        properties = build_task_properties({"work_period": None, "notes": None, "assigned_users": []})
        assert properties[TaskProperty.WORK_PERIOD] == {"date": None}
        assert properties[TaskProperty.NOTES] == {"rich_text": [{"text": {"content": ""}}]}
        assert properties[TaskProperty.USERS] == {"relation": []}

    def test_empty_status_is_skipped(self):
        assert build_task_properties({"status": None}) == {}
