"""
Nested transaction example: helpers open their own scope and join the caller's.

Run:
    poetry run python examples/sample_transactions.py
"""

from sqlaccess import Database


# ==================================================
# Config
# ==================================================

CONNECTION_URL = "sqlite:///static/test-sqlite/transactions.sqlite"


def transfer(db: Database, source: int, target: int, amount: int) -> None:
    with db.begin_transaction() as tx:
        db.execute("UPDATE accounts SET balance = balance - @0 WHERE id = @1", amount, source)
        db.execute("UPDATE accounts SET balance = balance + @0 WHERE id = @1", amount, target)
        tx.commit()


def main() -> None:
    db = Database(CONNECTION_URL)
    db.hooks.on_end_transaction = lambda _db, success: print(f"scope ended: committed={success}")

    # Clean setup
    db.database_tools.drop_table("accounts")
    db.execute("CREATE TABLE accounts (id INTEGER PRIMARY KEY, balance INTEGER NOT NULL)")
    db.execute("INSERT INTO accounts (id, balance) VALUES (1, 100), (2, 0)")

    # Both transfers commit together with the outer scope
    with db.begin_transaction(isolation_level="IMMEDIATE") as tx:
        transfer(db, 1, 2, 30)
        transfer(db, 1, 2, 20)
        tx.commit()

    # Leaving the outer scope without commit discards the nested transfer
    with db.begin_transaction():
        transfer(db, 2, 1, 50)

    print(db.fetch_all("SELECT id, balance FROM accounts ORDER BY id", as_type=dict))
    db.close()


if __name__ == "__main__":
    main()
