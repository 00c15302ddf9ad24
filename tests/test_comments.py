"""
Comment endpoint tests: covers posting, editing and deleting comments on a
task, author-only mutation, and the scoped listings.

Comments are always posted by the caller as their own author, so most tests
start from a task with an author and an assignee and let one of them write.
"""
import pytest
from httpx import AsyncClient


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _create_task(client: AsyncClient, make_user, auth_headers):
    """Create a task between two fresh users, returning (task_id, author, assignee)."""
    author, _ = await make_user()
    assignee, _ = await make_user()
    resp = await client.post(
        "/api/v1/tasks",
        json={
            "title": "Review pull request",
            "description": "Check the migration before merge",
            "status": "TODO",
            "priority": "MEDIUM",
            "author_id": author.id,
            "assignee_id": assignee.id,
        },
        headers=auth_headers(author.id),
    )
    assert resp.status_code == 201
    return resp.json()["data"]["id"], author, assignee


async def _post_comment(client: AsyncClient, auth_headers, user_id: int, task_id: int, content: str = "Looks good"):
    return await client.post(
        "/api/v1/comments",
        json={"content": content, "task_id": task_id, "author_id": user_id},
        headers=auth_headers(user_id),
    )


# ---------------------------------------------------------------------------
# Add comment
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_add_comment(async_client: AsyncClient, make_user, auth_headers):
    """Posting a comment returns 201 with the correct fields."""
    task_id, _, assignee = await _create_task(async_client, make_user, auth_headers)

    resp = await _post_comment(async_client, auth_headers, assignee.id, task_id)
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Comment added successfully"
    assert body["data"]["content"] == "Looks good"
    assert body["data"]["task_id"] == task_id
    assert body["data"]["author_id"] == assignee.id


@pytest.mark.asyncio
async def test_add_comment_on_behalf_of_another_user_is_403(async_client: AsyncClient, make_user, auth_headers):
    """A foreign author id is refused even when the task does not exist."""
    user, _ = await make_user()
    other, _ = await make_user()
    resp = await async_client.post(
        "/api/v1/comments",
        json={"content": "Spoofed", "task_id": 99999, "author_id": other.id},
        headers=auth_headers(user.id),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_add_comment_to_missing_task_is_404(async_client: AsyncClient, make_user, auth_headers):
    user, _ = await make_user()
    resp = await _post_comment(async_client, auth_headers, user.id, 99999)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Task not found"


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "x" * 1001])
async def test_add_comment_content_bounds_are_422(async_client: AsyncClient, make_user, auth_headers, content):
    task_id, author, _ = await _create_task(async_client, make_user, auth_headers)
    resp = await _post_comment(async_client, auth_headers, author.id, task_id, content)
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_comment_listings(async_client: AsyncClient, make_user, auth_headers):
    task_id, author, assignee = await _create_task(async_client, make_user, auth_headers)
    await _post_comment(async_client, auth_headers, author.id, task_id, "First")
    await _post_comment(async_client, auth_headers, assignee.id, task_id, "Second")
    reader, _ = await make_user()
    headers = auth_headers(reader.id)

    resp = await async_client.get(f"/api/v1/comments/by-task/{task_id}", headers=headers)
    assert resp.status_code == 200
    assert [c["content"] for c in resp.json()["items"]] == ["Second", "First"]

    resp = await async_client.get(f"/api/v1/comments/by-author/{author.id}", headers=headers)
    assert resp.json()["total_elements"] == 1

    resp = await async_client.get(
        f"/api/v1/comments/by-task/{task_id}/author/{assignee.id}", headers=headers
    )
    assert [c["content"] for c in resp.json()["items"]] == ["Second"]

    resp = await async_client.get("/api/v1/comments", headers=headers)
    assert resp.json()["total_elements"] == 2


@pytest.mark.asyncio
async def test_comments_by_unknown_author_is_404(async_client: AsyncClient, make_user, auth_headers):
    user, _ = await make_user()
    resp = await async_client.get("/api/v1/comments/by-author/99999", headers=auth_headers(user.id))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Author not found"


# ---------------------------------------------------------------------------
# Update / delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_edit_and_delete_own_comment(async_client: AsyncClient, make_user, auth_headers):
    task_id, author, _ = await _create_task(async_client, make_user, auth_headers)
    created = await _post_comment(async_client, auth_headers, author.id, task_id)
    comment_id = created.json()["data"]["id"]
    headers = auth_headers(author.id)

    resp = await async_client.put(
        "/api/v1/comments", json={"id": comment_id, "content": "Looks great"}, headers=headers
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["content"] == "Looks great"

    resp = await async_client.get(f"/api/v1/comments/{comment_id}", headers=headers)
    assert resp.json()["content"] == "Looks great"

    resp = await async_client.delete(f"/api/v1/comments/{comment_id}", headers=headers)
    assert resp.status_code == 200

    resp = await async_client.get(f"/api/v1/comments/{comment_id}", headers=headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_task_author_cannot_edit_someone_elses_comment(async_client: AsyncClient, make_user, auth_headers):
    task_id, author, assignee = await _create_task(async_client, make_user, auth_headers)
    created = await _post_comment(async_client, auth_headers, assignee.id, task_id)
    comment_id = created.json()["data"]["id"]
    headers = auth_headers(author.id)

    resp = await async_client.put(
        "/api/v1/comments", json={"id": comment_id, "content": "Edited by author"}, headers=headers
    )
    assert resp.status_code == 403
    resp = await async_client.delete(f"/api/v1/comments/{comment_id}", headers=headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_comments_disappear_with_their_task(async_client: AsyncClient, make_user, auth_headers):
    task_id, author, _ = await _create_task(async_client, make_user, auth_headers)
    created = await _post_comment(async_client, auth_headers, author.id, task_id)
    comment_id = created.json()["data"]["id"]
    headers = auth_headers(author.id)

    # Prime the comment cache before the task goes away.
    resp = await async_client.get("/api/v1/comments", headers=headers)
    assert resp.json()["total_elements"] == 1

    await async_client.delete(f"/api/v1/tasks/{task_id}", headers=headers)

    resp = await async_client.get("/api/v1/comments", headers=headers)
    assert resp.json()["total_elements"] == 0
    resp = await async_client.get(f"/api/v1/comments/{comment_id}", headers=headers)
    assert resp.status_code == 404
