"""
Example 03: Schema Synchronization

This example demonstrates creating, truncating and dropping the tables of
models that reference each other, including a reference cycle.
"""

import asyncio
import tempfile
from pathlib import Path

from sqlweave import Column, Engine, QueryType


async def main():
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    engine = Engine(dialect="sqlite", storage=db_path)

    # Defined out of order; sync creates users before posts
    engine.define(
        "Post",
        {
            "id": Column("INTEGER", primary_key=True),
            "author_id": {"type": "INTEGER", "references": {"model": "User", "on_delete": "CASCADE"}},
            "title": "TEXT",
        },
        table_name="posts",
    )
    engine.define(
        "User",
        {
            "id": Column("INTEGER", primary_key=True),
            "name": "TEXT",
            "favorite_post_id": {"type": "INTEGER", "references": "Post"},
        },
        table_name="users",
    )

    print("=== Schema Synchronization ===\n")

    order = engine.models.topologically_sorted_models()
    print(f"1. Dependency order: {order and [model.name for model in order]}")
    print("   (None means the models form a cycle)\n")

    print("2. Sync:")
    await engine.sync()
    for table in ("users", "posts"):
        columns = await engine.query_interface.describe_table(table)
        print(f"   {table}: {columns}")
    print()

    await engine.query("INSERT INTO users (id, name) VALUES (1, 'Alice')", type=QueryType.INSERT)
    await engine.query(
        "INSERT INTO posts (id, author_id, title) VALUES (1, 1, 'Hello')", type=QueryType.INSERT
    )

    print("3. Truncate (cascade, foreign key checks disabled for the cycle):")
    await engine.truncate(cascade=True)
    row = await engine.query("SELECT COUNT(*) AS n FROM posts", type=QueryType.SELECT, plain=True)
    print(f"   Posts left: {row['n']}\n")

    print("4. Drop:")
    await engine.drop()
    print(f"   users exists: {await engine.query_interface.table_exists('users')}\n")

    await engine.close()
    Path(db_path).unlink()


if __name__ == "__main__":
    asyncio.run(main())
