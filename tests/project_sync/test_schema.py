from integrations.github.project_items import ProjectField
from integrations.notion.mappers import INFRASTRUCTURE_PROPERTIES
from project_sync.schema import ReconcileResult, SchemaGate, reconcile_project_schema, reconcile_schema

FIELDS = [
    ProjectField(name="Title", data_type="TITLE"),
    ProjectField(name="Status", data_type="SINGLE_SELECT", options=["Todo", "Done"]),
]


def test_reconcile_issues_single_update_with_missing_properties(notion):
    result = reconcile_schema(notion, FIELDS)

    assert result.ok
    assert len(notion.schema_updates) == 1
    assert set(notion.schema_updates[0]) == set(INFRASTRUCTURE_PROPERTIES) | {"Status"}
    assert result.available["Status"] == "select"
    assert result.available["Title"] == "title"


def test_reconcile_skips_update_when_complete(notion):
    notion.property_types.update({name: d["type"] for name, d in INFRASTRUCTURE_PROPERTIES.items()})
    notion.property_types["Status"] = "select"

    result = reconcile_schema(notion, FIELDS)

    assert result.ok
    assert result.created == []
    assert "add_properties" not in notion.calls


def test_reconcile_update_failure_is_not_fatal(notion):
    notion.fail_schema_update = True

    result = reconcile_schema(notion, FIELDS)

    assert not result.ok
    assert result.available == {"Title": "title"}


def test_reconcile_project_schema_reports_fetch_failure(notion, fake_github_cls):
    github = fake_github_cls(fields=FIELDS)
    github.fail_fields = True

    result = reconcile_project_schema(github, notion, "PVT_1")

    assert not result.ok
    assert notion.calls == []


def test_schema_gate_runs_once_after_success():
    gate = SchemaGate()
    runs = []

    def reconcile():
        runs.append(1)
        return ReconcileResult(created=["Due"], available={"Due": "date"})

    assert gate.ensure(reconcile) is not None
    assert gate.ensure(reconcile) is None
    assert len(runs) == 1
    assert gate.initialized
    assert gate.available_types == {"Due": "date"}


def test_schema_gate_retries_after_failure():
    gate = SchemaGate()
    results = [ReconcileResult(error="boom"), ReconcileResult(available={"Title": "title"})]

    first = gate.ensure(lambda: results.pop(0))
    assert not first.ok
    assert not gate.initialized

    second = gate.ensure(lambda: results.pop(0))
    assert second.ok
    assert gate.initialized
