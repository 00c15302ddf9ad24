import inspect
import logging
from functools import wraps

from taskboard.exceptions import ServiceError

audit_logger = logging.getLogger("taskboard.audit")


def record(operation: str, entity_id, actor) -> None:
    """Emit the single success line for a write."""
    audit_logger.info("%s ok id=%s actor=%s", operation, entity_id, actor.id)


def audited(operation: str):
    """
    Log every failure of the wrapped service function with the acting user
    and the attempted operation, then re-raise it unchanged.

    The wrapped function must take an ``actor`` parameter.
    """

    def decorator(func):
        signature = inspect.signature(func)

        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except ServiceError as exc:
                actor = signature.bind_partial(*args, **kwargs).arguments.get("actor")
                audit_logger.warning(
                    "%s %s actor=%s: %s",
                    operation,
                    exc.kind,
                    getattr(actor, "id", None),
                    exc.message,
                )
                raise

        return wrapper

    return decorator
