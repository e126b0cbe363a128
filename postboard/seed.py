"""
Seed data for development databases.

Everything here is a pure function: rows are built and returned, and SQL is
rendered as text. Applying them is left to ``database/seed.py``.
"""

from datetime import timedelta

from faker import Faker
from sqlalchemy import delete, insert
from sqlalchemy.dialects import postgresql, sqlite

from postboard.ids import new_id
from postboard.models import Comment, Post, User, utcnow

ALICE_ID = "11111111-1111-4111-8111-111111111111"
BOB_ID = "22222222-2222-4222-8222-222222222222"
POST_IDS = [
    "33333333-3333-4333-8333-333333333333",
    "44444444-4444-4444-8444-444444444444",
    "55555555-5555-4555-8555-555555555555",
]

# Children are cleared before parents
TABLES = (Comment, Post, User)

DIALECTS = {
    "postgresql": postgresql.dialect(),
    "sqlite": sqlite.dialect(),
}


def sample_rows(now=None):
    """The fixed two-user demo conversation, keyed by table name."""
    now = now or utcnow()
    users = [
        {"id": ALICE_ID, "name": "Alice Johnson", "email": "alice.johnson@example.com", "created_at": now},
        {"id": BOB_ID, "name": "Bob Smith", "email": "bob.smith@example.com", "created_at": now},
    ]
    posts = [
        {
            "id": POST_IDS[0],
            "user_id": ALICE_ID,
            "title": "Introduction",
            "content": "Hello, World! Excited to join this community.",
            "created_at": now,
        },
        {
            "id": POST_IDS[1],
            "user_id": BOB_ID,
            "title": "Welcome",
            "content": "Hello, Alice! Welcome to the community!",
            "created_at": now,
        },
        {
            "id": POST_IDS[2],
            "user_id": ALICE_ID,
            "title": "Thank You",
            "content": "Thanks, Bob! Glad to be here.",
            "created_at": now,
        },
    ]
    comments = [
        {
            "id": "66666666-6666-4666-8666-666666666666",
            "user_id": BOB_ID,
            "post_id": POST_IDS[0],
            "content": "Welcome, Alice! Looking forward to your posts.",
            "created_at": now,
        },
        {
            "id": "77777777-7777-4777-8777-777777777777",
            "user_id": ALICE_ID,
            "post_id": POST_IDS[1],
            "content": "Thank you, Bob! Excited to be part of the conversation.",
            "created_at": now,
        },
    ]
    return {"users": users, "posts": posts, "comments": comments}


def fake_rows(num_users, num_posts, num_comments, seed=None):
    """
    Generate a random but referentially consistent dataset.

    Every post belongs to one of the generated users and every comment to a
    generated user and post. Emails are unique across the batch.
    """
    fake = Faker()
    if seed is not None:
        fake.seed_instance(seed)

    start = utcnow() - timedelta(days=30)

    users = []
    for _ in range(num_users):
        users.append({
            "id": new_id(),
            "email": fake.unique.email(),
            "name": fake.name(),
            "created_at": fake.date_time_between(start_date=start, tzinfo=start.tzinfo),
        })

    posts = []
    if users:
        for _ in range(num_posts):
            posts.append({
                "id": new_id(),
                "user_id": fake.random_element(users)["id"],
                "title": fake.sentence()[:256],
                "content": fake.text(),
                "created_at": fake.date_time_between(start_date=start, tzinfo=start.tzinfo),
            })

    comments = []
    if users and posts:
        for _ in range(num_comments):
            comments.append({
                "id": new_id(),
                "user_id": fake.random_element(users)["id"],
                "post_id": fake.random_element(posts)["id"],
                "content": fake.text(),
                "created_at": fake.date_time_between(start_date=start, tzinfo=start.tzinfo),
            })

    return {"users": users, "posts": posts, "comments": comments}


def seed_statements(rows, dialect="sqlite"):
    """Render a delete-then-insert script for ``rows`` as a list of SQL strings."""
    target = DIALECTS[dialect]

    statements = []
    for model in TABLES:
        statements.append(str(delete(model).compile(dialect=target)))

    for model in reversed(TABLES):
        table_rows = rows.get(model.__tablename__) or []
        if not table_rows:
            continue
        stmt = insert(model).values(table_rows)
        statements.append(
            str(stmt.compile(dialect=target, compile_kwargs={"literal_binds": True}))
        )
    return statements


def seed_sql(rows, dialect="sqlite"):
    return ";\n".join(seed_statements(rows, dialect)) + ";\n"
