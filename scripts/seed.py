"""Database seeder for local development.

Creates an admin, a handful of regular users, tasks between them and comments
on those tasks, then prints a bearer token per user for trying the API.
"""
import asyncio
import argparse
import random
import time
from datetime import datetime, timezone, timedelta

from taskboard.database import async_session, dispose_db, init_db
from taskboard.models import Comment, Role, RoleName, Task, TaskPriority, TaskStatus, User
from taskboard.security import create_access_token, password_verifier

FIRSTNAMES = ["Ada", "Grace", "Alan", "Linus", "Barbara", "Ken", "Margaret", "Dennis"]
LASTNAMES = ["Lovelace", "Hopper", "Turing", "Torvalds", "Liskov", "Thompson", "Hamilton", "Ritchie"]
VERBS = ["Refactor", "Document", "Benchmark", "Review", "Deploy", "Fix", "Design", "Test"]
NOUNS = ["login flow", "task board", "cache layer", "comment thread", "user profile", "pagination"]

DEFAULT_PASSWORD = "password123"


async def seed(small: bool = False):
    num_users = 5 if small else 25
    num_tasks = 40 if small else 2000
    max_comments_per_task = 2 if small else 6

    print(f"Seeding: {num_users} users (+1 admin), {num_tasks} tasks, up to {max_comments_per_task} comments each")
    start = time.perf_counter()

    await init_db(drop=True)

    async with async_session() as session:
        user_role = Role(name=RoleName.USER)
        admin_role = Role(name=RoleName.ADMIN)
        session.add_all([user_role, admin_role])
        await session.flush()

        # Hash once; bcrypt is deliberately slow.
        hashed = password_verifier.hash(DEFAULT_PASSWORD)

        admin = User(
            firstname="Admin",
            lastname="User",
            email="admin@example.com",
            password=hashed,
            roles=[user_role, admin_role],
        )
        session.add(admin)

        users = []
        for i in range(num_users):
            user = User(
                firstname=random.choice(FIRSTNAMES),
                lastname=random.choice(LASTNAMES),
                email=f"user_{i:04d}@example.com",
                password=hashed,
                roles=[user_role],
            )
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created {len(users) + 1} users")

        tasks = []
        for i in range(num_tasks):
            author, assignee = random.sample(users, k=2)
            task = Task(
                title=f"{random.choice(VERBS)} the {random.choice(NOUNS)} #{i}",
                description=f"Task {i} created by the seeder.",
                status=random.choice(list(TaskStatus)),
                priority=random.choice(list(TaskPriority)),
                author_id=author.id,
                assignee_id=assignee.id,
                created_by=author.id,
                created_at=datetime.now(timezone.utc) - timedelta(minutes=num_tasks - i),
            )
            session.add(task)
            tasks.append(task)
        await session.flush()
        print(f"  Created {len(tasks)} tasks")

        total_comments = 0
        for task in tasks:
            for _ in range(random.randint(0, max_comments_per_task)):
                author_id = random.choice([task.author_id, task.assignee_id])
                session.add(
                    Comment(
                        content="Looks good, picking this up next.",
                        task_id=task.id,
                        author_id=author_id,
                        created_by=author_id,
                    )
                )
                total_comments += 1
        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Comments: {total_comments}")
    print(f"  Password for every account: {DEFAULT_PASSWORD}")
    print(f"  Admin token: {create_access_token(admin.id)}")
    for user in users[:3]:
        print(f"  {user.email} token: {create_access_token(user.id)}")

    await dispose_db()


def main():
    parser = argparse.ArgumentParser(description="Seed the taskboard database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (40 tasks)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
