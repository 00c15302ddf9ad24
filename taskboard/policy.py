"""
Ownership policy.

Every rule is a pure function of the acting user and the stored ownership
fields of the target; nothing here touches the database or the cache.  A rule
returns a ``Decision`` and callers turn it into an exception with
``enforce``.

Targets are accepted either as ORM instances or as cached DTO dicts, so the
same rule can be applied on a cache hit without reloading the entity.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any

from taskboard.exceptions import ForbiddenError, InvalidArgumentError
from taskboard.security import ActingUser


class Verdict(str, Enum):
    ALLOW = "ALLOW"
    DENY = "DENY"
    INVALID = "INVALID"


@dataclass(frozen=True)
class Decision:
    verdict: Verdict
    reason: str | None = None

    @property
    def allowed(self) -> bool:
        return self.verdict is Verdict.ALLOW


ALLOW = Decision(Verdict.ALLOW)


def deny(reason: str) -> Decision:
    return Decision(Verdict.DENY, reason)


def invalid(reason: str) -> Decision:
    return Decision(Verdict.INVALID, reason)


def enforce(decision: Decision) -> None:
    """Raise the failure matching a non-ALLOW decision."""
    if decision.verdict is Verdict.DENY:
        raise ForbiddenError(decision.reason or "Operation not permitted")
    if decision.verdict is Verdict.INVALID:
        raise InvalidArgumentError(decision.reason or "Invalid request")


def _field(target: Any, name: str) -> Any:
    if isinstance(target, dict):
        return target[name]
    return getattr(target, name)


# ---------------------------------------------------------------------------
# Task rules
# ---------------------------------------------------------------------------

def can_create_task(actor: ActingUser, author_id: int, assignee_id: int) -> Decision:
    if author_id != actor.id:
        return deny("You are not authorized to create a task for another user")
    if assignee_id == author_id:
        return invalid("Assignee and author cannot be the same")
    return ALLOW


def can_modify_task(actor: ActingUser, task: Any, action: str = "update") -> Decision:
    if _field(task, "author_id") != actor.id:
        return deny(f"You are not authorized to {action} this task")
    return ALLOW


def can_view_task(actor: ActingUser, task: Any) -> Decision:
    if actor.id not in (_field(task, "author_id"), _field(task, "assignee_id")):
        return deny("You are not authorized to view this task")
    return ALLOW


def can_list_tasks_for(actor: ActingUser, user_id: int) -> Decision:
    if actor.id != user_id:
        return deny("You are not authorized to view tasks for another user")
    return ALLOW


def can_browse_tasks(actor: ActingUser) -> Decision:
    # Any authenticated caller; narrowing is applied as a query filter by the
    # service when TASK_BROWSE_SCOPE is "involved".
    return ALLOW


# ---------------------------------------------------------------------------
# Comment rules
# ---------------------------------------------------------------------------

def can_create_comment(actor: ActingUser, author_id: int) -> Decision:
    if author_id != actor.id:
        return deny("You are not allowed to comment on behalf of another user")
    return ALLOW


def can_modify_comment(actor: ActingUser, comment: Any, action: str = "update") -> Decision:
    if _field(comment, "author_id") != actor.id:
        return deny(f"You are not allowed to {action} this comment")
    return ALLOW


def can_view_comments(actor: ActingUser) -> Decision:
    return ALLOW


# ---------------------------------------------------------------------------
# User rules
# ---------------------------------------------------------------------------

def can_manage_user(actor: ActingUser, target: Any, action: str = "update") -> Decision:
    if actor.id != _field(target, "id") and not actor.is_admin:
        return deny(f"You are not authorized to {action} this user")
    return ALLOW


def can_list_users(actor: ActingUser) -> Decision:
    if not actor.is_admin:
        return deny("You are not authorized to list users")
    return ALLOW


def can_update_password(actor: ActingUser, target: Any) -> Decision:
    # No admin override: a password change always requires the owner's old password.
    if actor.id != _field(target, "id"):
        return deny("You are not authorized to update this user's password")
    return ALLOW
