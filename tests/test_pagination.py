"""
Pagination helper tests: envelope arithmetic and the fixed newest-first
ordering, both in isolation and through the task listing.
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.exceptions import InvalidArgumentError
from taskboard.models import Task, TaskPriority, TaskStatus
from taskboard.pagination import PageRequest, build_page
from taskboard.services import task_service


# ---------------------------------------------------------------------------
# Pure helper
# ---------------------------------------------------------------------------

def test_offset_is_zero_based():
    assert PageRequest(1, 20).offset == 0
    assert PageRequest(3, 20).offset == 40


@pytest.mark.parametrize("page,size", [(0, 20), (1, 0), (-1, 5)])
def test_page_request_rejects_non_positive_values(page, size):
    with pytest.raises(InvalidArgumentError):
        PageRequest(page, size)


def test_empty_collection_is_both_first_and_last():
    page = build_page([], 0, PageRequest(1, 20), lambda row: row)
    assert page.items == []
    assert page.total_pages == 0
    assert page.is_first is True
    assert page.is_last is True


def test_empty_collection_past_page_one_is_both_first_and_last():
    page = build_page([], 0, PageRequest(3, 20), lambda row: row)
    assert page.page == 3
    assert page.total_pages == 0
    assert page.is_first is True
    assert page.is_last is True


def test_envelope_for_middle_page():
    page = build_page(range(10), 35, PageRequest(2, 10), lambda n: {"n": n})
    assert page.page == 2
    assert page.size == 10
    assert page.total_elements == 35
    assert page.total_pages == 4
    assert page.is_first is False
    assert page.is_last is False
    assert page.items[0] == {"n": 0}


# ---------------------------------------------------------------------------
# Through the task listing
# ---------------------------------------------------------------------------

async def _seed_tasks(db: AsyncSession, author_id: int, assignee_id: int, count: int) -> None:
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for i in range(count):
        db.add(
            Task(
                title=f"Task {i:02d}",
                description="Seeded task",
                status=TaskStatus.TODO,
                priority=TaskPriority.MEDIUM,
                author_id=author_id,
                assignee_id=assignee_id,
                created_at=base + timedelta(minutes=i),
            )
        )
    await db.commit()


@pytest.mark.asyncio
async def test_forty_five_tasks_in_pages_of_twenty(db_session: AsyncSession, cache, make_user):
    author, actor = await make_user()
    assignee, _ = await make_user()
    await _seed_tasks(db_session, author.id, assignee.id, 45)

    first = await task_service.get_tasks(db_session, cache, actor, page=1, size=20)
    assert len(first.items) == 20
    assert first.is_first is True
    assert first.is_last is False
    assert first.total_pages == 3
    assert first.total_elements == 45

    last = await task_service.get_tasks(db_session, cache, actor, page=3, size=20)
    assert len(last.items) == 5
    assert last.is_last is True

    beyond = await task_service.get_tasks(db_session, cache, actor, page=4, size=20)
    assert beyond.items == []
    assert beyond.is_last is True


@pytest.mark.asyncio
async def test_listing_is_newest_first(db_session: AsyncSession, cache, make_user):
    author, actor = await make_user()
    assignee, _ = await make_user()
    await _seed_tasks(db_session, author.id, assignee.id, 5)

    page = await task_service.get_tasks(db_session, cache, actor, page=1, size=5)
    assert [t["title"] for t in page.items] == [f"Task {i:02d}" for i in range(4, -1, -1)]


@pytest.mark.asyncio
async def test_pages_never_overlap(db_session: AsyncSession, cache, make_user):
    author, actor = await make_user()
    assignee, _ = await make_user()
    await _seed_tasks(db_session, author.id, assignee.id, 12)

    seen: list[int] = []
    for number in (1, 2, 3):
        page = await task_service.get_tasks(db_session, cache, actor, page=number, size=5)
        seen.extend(t["id"] for t in page.items)
    assert len(seen) == 12
    assert len(set(seen)) == 12
