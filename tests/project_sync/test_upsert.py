import pytest

from integrations.github.project_items import normalize_item
from project_sync.upsert import DuplicatePageError, ProjectItemUpserter, UpsertAction, UpsertOutcome


def test_upsert_creates_then_updates_same_page(notion, make_item):
    upserter = ProjectItemUpserter(notion)
    record = normalize_item(make_item())

    first = upserter.upsert(record, UpsertAction.CREATE)
    properties_after_first = notion.pages[first.page_id]["properties"]
    second = upserter.upsert(record, UpsertAction.UPDATE)

    assert first.outcome is UpsertOutcome.CREATED
    assert second.outcome is UpsertOutcome.UPDATED
    assert second.page_id == first.page_id
    assert len(notion.live_pages) == 1
    assert notion.pages[first.page_id]["properties"] == properties_after_first


def test_update_without_existing_page_creates_one(notion, make_item):
    result = ProjectItemUpserter(notion).upsert(normalize_item(make_item()), UpsertAction.UPDATE)

    assert result.outcome is UpsertOutcome.CREATED
    assert len(notion.live_pages) == 1


def test_delete_without_page_is_a_no_op(notion, make_item):
    result = ProjectItemUpserter(notion).upsert(normalize_item(make_item()), UpsertAction.DELETE)

    assert result.outcome is UpsertOutcome.UNCHANGED
    assert notion.pages == {}
    assert "create" not in notion.calls
    assert "update" not in notion.calls
    assert "archive" not in notion.calls


def test_delete_archives_matching_page(notion, make_item):
    upserter = ProjectItemUpserter(notion)
    record = normalize_item(make_item())
    created = upserter.upsert(record, UpsertAction.CREATE)

    result = upserter.upsert(record, UpsertAction.DELETE)

    assert result.outcome is UpsertOutcome.ARCHIVED
    assert notion.pages[created.page_id]["archived"] is True
    assert notion.live_pages == {}


def test_duplicate_matches_raise_without_writing(notion, make_item):
    upserter = ProjectItemUpserter(notion)
    record = normalize_item(make_item())
    upserter.upsert(record, UpsertAction.CREATE)
    notion.create_page(dict(notion.pages["page-1"]["properties"]))
    notion.calls.clear()

    with pytest.raises(DuplicatePageError):
        upserter.upsert(record, UpsertAction.UPDATE)

    assert notion.calls == ["query"]


def test_dry_run_skips_writes(notion, make_item):
    result = ProjectItemUpserter(notion, dry_run=True).upsert(normalize_item(make_item()), UpsertAction.CREATE)

    assert result.outcome is UpsertOutcome.SKIPPED
    assert notion.pages == {}


def test_custom_fields_follow_available_types(notion, make_item):
    item = make_item(extra_values=[{"date": "2024-06-01", "field": {"name": "Due"}}])
    result = ProjectItemUpserter(notion).upsert(
        normalize_item(item),
        UpsertAction.CREATE,
        available_types={"Due": "date"},
    )

    assert notion.pages[result.page_id]["properties"]["Due"] == {"date": {"start": "2024-06-01"}}
