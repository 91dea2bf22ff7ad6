"""
Example 02: Transactions

This example demonstrates managed and manual transactions, and the ambient
transaction picked up by queries running inside a managed callback.
"""

import asyncio
import tempfile
from pathlib import Path

from sqlweave import Column, Engine, QueryType, UniqueConstraintError, install_ambient_context


async def count_users(engine):
    row = await engine.query("SELECT COUNT(*) AS n FROM users", type=QueryType.SELECT, plain=True)
    return row["n"]


async def main():
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    # Installed before the engine is built so the engine picks it up
    install_ambient_context()
    engine = Engine(dialect="sqlite", storage=db_path)
    engine.define(
        "User",
        {
            "id": Column("INTEGER", primary_key=True),
            "email": Column("TEXT", unique=True, allow_null=False),
        },
        table_name="users",
    )
    await engine.sync()

    print("=== Transactions ===\n")

    # Managed: committed when the callback returns
    print("1. Managed transaction (commit):")

    async def register(transaction):
        await engine.query("INSERT INTO users (email) VALUES ('alice@example.com')", type=QueryType.INSERT)
        await engine.query("INSERT INTO users (email) VALUES ('bob@example.com')", type=QueryType.INSERT)

    await engine.transaction(register)
    print(f"   Users after commit: {await count_users(engine)}\n")

    # Managed: rolled back when the callback raises
    print("2. Managed transaction (rollback):")

    async def duplicate(transaction):
        await engine.query("INSERT INTO users (email) VALUES ('carol@example.com')", type=QueryType.INSERT)
        await engine.query("INSERT INTO users (email) VALUES ('alice@example.com')", type=QueryType.INSERT)

    try:
        await engine.transaction(duplicate)
    except UniqueConstraintError as e:
        print(f"   Rolled back: {e}")
    print(f"   Users after rollback: {await count_users(engine)}\n")

    # Manual: the caller commits
    print("3. Manual transaction:")
    transaction = await engine.transaction(isolation_level="SERIALIZABLE")
    await engine.query(
        "INSERT INTO users (email) VALUES ('dave@example.com')",
        type=QueryType.INSERT,
        transaction=transaction,
    )
    await transaction.commit()
    print(f"   Transaction {transaction.id} finished with {transaction.finished}")
    print(f"   Users after commit: {await count_users(engine)}\n")

    await engine.close()
    Path(db_path).unlink()


if __name__ == "__main__":
    asyncio.run(main())
