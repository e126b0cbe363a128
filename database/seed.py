import argparse
import asyncio
import time
from pathlib import Path

from sqlalchemy import delete, insert

from postboard.database import DATABASE_URL, build_engine, init_models
from postboard.models import Comment, Post, User
from postboard.seed import TABLES, fake_rows, sample_rows, seed_sql

BATCH_SIZE = 1000


async def insert_rows(conn, model, rows):
    print(f"Seeding {len(rows)} {model.__tablename__}...")
    for start in range(0, len(rows), BATCH_SIZE):
        await conn.execute(insert(model), rows[start:start + BATCH_SIZE])


async def apply_rows(url, rows):
    engine = build_engine(url)
    await init_models(engine)

    async with engine.begin() as conn:
        print("Cleaning up existing data...")
        for model in TABLES:
            await conn.execute(delete(model))

        await insert_rows(conn, User, rows["users"])
        await insert_rows(conn, Post, rows["posts"])
        await insert_rows(conn, Comment, rows["comments"])

    await engine.dispose()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Load seed data into the Postboard database.")
    parser.add_argument("--url", default=DATABASE_URL, help="database URL (defaults to the app's)")
    parser.add_argument("--fake", action="store_true", help="generate random data instead of the sample set")
    parser.add_argument("--users", type=int, default=100)
    parser.add_argument("--posts", type=int, default=500)
    parser.add_argument("--comments", type=int, default=1000)
    parser.add_argument("--seed", type=int, default=None, help="Faker seed for repeatable data")
    parser.add_argument("--sql", type=Path, default=None, help="write a SQL script here instead of touching the database")
    parser.add_argument("--dialect", choices=("sqlite", "postgresql"), default="sqlite")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    start_time = time.time()

    if args.fake:
        rows = fake_rows(args.users, args.posts, args.comments, seed=args.seed)
    else:
        rows = sample_rows()

    if args.sql:
        args.sql.parent.mkdir(parents=True, exist_ok=True)
        args.sql.write_text(seed_sql(rows, dialect=args.dialect))
        print(f"Seed SQL file generated at: {args.sql}")
    else:
        asyncio.run(apply_rows(args.url, rows))

    print(f"Total Seeding Time: {time.time() - start_time:.2f} seconds")


if __name__ == "__main__":
    main()
