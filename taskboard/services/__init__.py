# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# authorization, caching and persistence for a single entity kind:
#
#   task_service    : tasks, visible to their author and assignee
#   comment_service : comments on tasks, mutable by their author only
#   user_service    : profiles, passwords, admin listing
#
# Every service function takes (db, cache, actor, ...): the AsyncSession of
# the request, the CacheManager, and the resolved ActingUser.  Failures are
# raised as taskboard.exceptions.ServiceError subclasses.
