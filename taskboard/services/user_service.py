"""
User service: profile reads and maintenance for the User aggregate.

A user may read, update or delete their own account; administrators may do
so for anyone.  Listing every user is reserved to administrators.  Password
changes have no administrative override and always require the old password.

Account registration lives outside this service.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from taskboard import audit, policy
from taskboard.audit import audited
from taskboard.cache import USERS, CacheManager
from taskboard.exceptions import ForbiddenError, NotFoundError
from taskboard.models import User
from taskboard.pagination import Page, PageRequest, build_page
from taskboard.repositories import UserRepository
from taskboard.schemas import PasswordUpdate, UserUpdate
from taskboard.security import ActingUser, PasswordVerifier, password_verifier

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _user_to_dict(user: User) -> dict:
    """Serialise a User without its credential."""
    return {
        "id": user.id,
        "firstname": user.firstname,
        "lastname": user.lastname,
        "email": user.email,
        "gender": user.gender.value if user.gender else None,
        "account_locked": user.account_locked,
        "enabled": user.enabled,
        "roles": sorted(role.value for role in user.role_names),
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "updated_at": user.updated_at.isoformat() if user.updated_at else None,
        "modified_by": user.modified_by,
    }


async def _require_user(db: AsyncSession, user_id: int) -> User:
    user = await UserRepository(db).get(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@audited("user.get")
async def get_user(
    db: AsyncSession, cache: CacheManager, actor: ActingUser, user_id: int
) -> dict:
    async def load() -> dict:
        user = await _require_user(db, user_id)
        policy.enforce(policy.can_manage_user(actor, user, "retrieve"))
        return _user_to_dict(user)

    data = await cache.get_or_load(USERS, "get", (user_id,), load)
    policy.enforce(policy.can_manage_user(actor, data, "retrieve"))
    return data


@audited("user.list")
async def get_users(
    db: AsyncSession, cache: CacheManager, actor: ActingUser, page: int = 1, size: int = 20
) -> Page:
    """Return every active user, newest first.  Administrators only."""
    request = PageRequest(page, size)
    policy.enforce(policy.can_list_users(actor))

    async def load() -> dict:
        rows, total = await UserRepository(db).find_page(request)
        return build_page(rows, total, request, _user_to_dict).model_dump(mode="json")

    data = await cache.get_or_load(USERS, "all", (request.page, request.size), load)
    logger.info("Users retrieved with page number: %s and size: %s", page, size)
    return Page(**data)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

@audited("user.update")
async def update_user(
    db: AsyncSession, cache: CacheManager, actor: ActingUser, data: UserUpdate
) -> dict:
    """Update names and, when supplied, gender."""
    user = await _require_user(db, data.id)
    policy.enforce(policy.can_manage_user(actor, user, "update"))

    user.firstname = data.firstname
    user.lastname = data.lastname
    if data.gender is not None:
        user.gender = data.gender
    user.modified_by = actor.id

    await UserRepository(db).save(user, before_commit=lambda: cache.invalidate(USERS))
    await cache.invalidate(USERS)

    audit.record("user.update", user.id, actor)
    return _user_to_dict(user)


@audited("user.delete")
async def delete_user(
    db: AsyncSession, cache: CacheManager, actor: ActingUser, user_id: int
) -> None:
    """Soft-delete the account and disable it."""
    user = await _require_user(db, user_id)
    policy.enforce(policy.can_manage_user(actor, user, "delete"))

    user.is_deleted = True
    user.enabled = False
    user.modified_by = actor.id

    await UserRepository(db).save(user, before_commit=lambda: cache.invalidate(USERS))
    await cache.invalidate(USERS)

    audit.record("user.delete", user.id, actor)


@audited("user.update_password")
async def update_password(
    db: AsyncSession,
    cache: CacheManager,
    actor: ActingUser,
    data: PasswordUpdate,
    verifier: PasswordVerifier = password_verifier,
) -> None:
    """
    Replace the caller's password.

    The old password must verify against the stored hash first; a mismatch
    is a ``ForbiddenError`` and leaves the stored credential untouched.
    """
    user = await _require_user(db, data.id)
    policy.enforce(policy.can_update_password(actor, user))

    if not verifier.verify(data.old_password, user.password):
        raise ForbiddenError("Old password is incorrect")

    user.password = verifier.hash(data.new_password)
    user.modified_by = actor.id

    await UserRepository(db).save(user, before_commit=lambda: cache.invalidate(USERS))
    await cache.invalidate(USERS)

    audit.record("user.update_password", user.id, actor)
