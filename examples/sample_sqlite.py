from dataclasses import dataclass
from pathlib import Path

from sqlaccess import Database


@dataclass
class User:
    id: int
    name: str
    age: int


def main():
    # Define database path
    db_dir = Path("static") / "test-sqlite"
    db_dir.mkdir(parents=True, exist_ok=True)
    db = Database(f"sqlite:///{db_dir / 'db.sqlite'}")

    print("Creating table 'sample_users'...")
    db.execute("CREATE TABLE IF NOT EXISTS sample_users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, age INTEGER)")
    print("Table created successfully!")

    print("Inserting sample data...")
    users_data = [
        ("Alice", 30),
        ("Bob", 25),
        ("Charlie", 35)
    ]
    for name, age in users_data:
        db.execute("INSERT INTO sample_users (name, age) VALUES (@0, @1)", name, age)
    print(f"Inserted {len(users_data)} users successfully!")

    print("Selecting users older than 26...")
    for user in db.query("SELECT id, name, age FROM sample_users WHERE age > @0 ORDER BY age", 26, as_type=User):
        print(f"ID: {user.id}, Name: {user.name}, Age: {user.age}")

    page = db.fetch_page(0, 2, "SELECT name FROM sample_users ORDER BY name", as_type=str)
    print(f"First page: {page.items} of {page.total_count} users")

    print("Dropping table 'sample_users'...")
    db.database_tools.drop_table("sample_users")
    print("Table dropped successfully!")

    db.close()

if __name__ == "__main__":
    main()
