"""
Example 01: Basic Query Execution

This example demonstrates raw queries, replacements, bind parameters and
model mapping with SQLWeave's Engine.
"""

import asyncio
import tempfile
from dataclasses import dataclass
from pathlib import Path

from sqlweave import Column, Engine, QueryType


@dataclass
class User:
    id: int
    name: str
    email: str


async def main():
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    engine = Engine(dialect="sqlite", storage=db_path, logging=lambda message, elapsed: print(f"   [sql] {message}"))
    engine.define(
        "User",
        {
            "id": Column("INTEGER", primary_key=True),
            "name": Column("TEXT", allow_null=False),
            "email": Column("TEXT", unique=True),
        },
        table_name="users",
        target=User,
    )
    await engine.sync()

    print("=== Basic Query Execution ===\n")

    # Inserts return (rows, metadata)
    print("1. Insert with bind parameters:")
    for name, email in [("Alice", "alice@example.com"), ("Bob", "bob@example.com")]:
        _, metadata = await engine.query(
            "INSERT INTO users (name, email) VALUES ($1, $2)",
            bind=[name, email],
            type=QueryType.INSERT,
        )
        print(f"   Inserted {name} with id {metadata.lastrowid}")
    print()

    # Replacements are escaped into the statement text
    print("2. Select with replacements:")
    rows = await engine.query(
        "SELECT * FROM users WHERE name = :name",
        replacements={"name": "Alice"},
        type=QueryType.SELECT,
    )
    print(f"   {rows}\n")

    # Mapped to the model's target class
    print("3. Select mapped to a model:")
    users = await engine.query("SELECT * FROM users ORDER BY id", model="User")
    for user in users:
        print(f"   - {user.name} ({user.email})")
    print()

    print("4. Plain result:")
    total = await engine.query("SELECT COUNT(*) AS total FROM users", type=QueryType.SELECT, plain=True)
    print(f"   Total users: {total['total']}\n")

    await engine.close()
    Path(db_path).unlink()


if __name__ == "__main__":
    asyncio.run(main())
