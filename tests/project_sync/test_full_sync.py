from project_sync.full_sync import sync_project
from project_sync.upsert import ProjectItemUpserter


def test_full_sync_creates_pages_and_skips_contentless_items(notion, make_item, fake_github_cls):
    draft = make_item(7)
    draft["content"] = None
    github = fake_github_cls(items=[make_item(1), draft, make_item(2, repo="gadgets")], project_title="Roadmap")

    summary = sync_project(github, ProjectItemUpserter(notion), "PVT_1")

    assert summary.processed == 3
    assert summary.created == 2
    assert summary.skipped == 1
    assert summary.failed == 0
    github_ids = sorted(
        page["properties"]["GitHub ID"]["rich_text"][0]["text"]["content"] for page in notion.live_pages.values()
    )
    assert github_ids == ["acme/gadgets#2", "acme/widgets#1"]


def test_full_sync_uses_project_title_for_pages(notion, make_item, fake_github_cls):
    github = fake_github_cls(items=[make_item(1, project_title=None)], project_title="Platform")

    sync_project(github, ProjectItemUpserter(notion), "PVT_1")

    page = next(iter(notion.live_pages.values()))
    assert page["properties"]["Project Name"]["rich_text"][0]["text"]["content"] == "Platform"


def test_full_sync_is_idempotent(notion, make_item, fake_github_cls):
    github = fake_github_cls(items=[make_item(1), make_item(2)])
    upserter = ProjectItemUpserter(notion)

    sync_project(github, upserter, "PVT_1")
    summary = sync_project(github, upserter, "PVT_1")

    assert summary.updated == 2
    assert summary.created == 0
    assert len(notion.live_pages) == 2


def test_full_sync_records_item_failures_and_continues(notion, make_item, fake_github_cls):
    notion.fail_writes = True
    github = fake_github_cls(items=[make_item(1), make_item(2)])

    summary = sync_project(github, ProjectItemUpserter(notion), "PVT_1")

    assert summary.failed == 2
    assert [error["github_id"] for error in summary.errors] == ["acme/widgets#1", "acme/widgets#2"]
